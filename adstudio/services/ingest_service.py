"""
Ingest service - brand identity from landing pages, product details from shop pages.

Brand ingestion never fails the caller: when the page can't be read the default
palette comes back with a message saying why. Product scraping reports errors.
"""
import logging
import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from adstudio.core.exceptions import AdStudioException, TransportError, raise_validation_error
from adstudio.schemas.ingest import BrandIdentity, DEFAULT_COLORS, ScrapedProduct
from adstudio.services.integrations.base import FetchedPage, PageFetcher
from adstudio.services.integrations.providers import get_page_fetcher
from adstudio.services.integrations.web import DirectPageFetcher

logger = logging.getLogger(__name__)

MAX_COLORS = 5
MAX_IMAGES = 10
MAX_VIDEOS = 5

HEX_COLOR = re.compile(r"#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})\b")
RGB_COLOR = re.compile(r"rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)")
FONT_FAMILY = re.compile(r"font-family:\s*([^;}]+)", re.IGNORECASE)
BACKGROUND_COLORS = {"#ffffff", "#fff", "#000000", "#000"}

IMAGE_EXTENSION = re.compile(r"\.(jpg|jpeg|png|webp|gif|avif)", re.IGNORECASE)
VIDEO_EXTENSION = re.compile(r"\.(mp4|webm|mov|m3u8)", re.IGNORECASE)
YOUTUBE_ID = re.compile(r"(?:youtube(?:-nocookie)?\.com/(?:embed/|watch\?v=)|youtu\.be/)([a-zA-Z0-9_-]{11})")
VIMEO_ID = re.compile(r"vimeo\.com/(?:video/)?(\d+)")
PRICE = re.compile(r"(?:\$|£|€|USD|GBP|EUR)\s*[\d,]+(?:\.\d{2})?")


def _unique(values: Iterable[str]) -> List[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _style_text(soup: BeautifulSoup) -> str:
    """All CSS on the page: <style> blocks plus inline style attributes."""
    blocks = [tag.get_text() for tag in soup.find_all("style")]
    blocks += [tag["style"] for tag in soup.find_all(style=True)]
    return "\n".join(blocks)


def extract_brand_identity(html: str) -> BrandIdentity:
    """Up to five non-background colours and the first two font families."""
    css = _style_text(BeautifulSoup(html, "html.parser"))

    hex_colors = [f"#{match.lower()}" for match in HEX_COLOR.findall(css)]
    rgb_colors = ["#{:02x}{:02x}{:02x}".format(*(int(c) for c in match)) for match in RGB_COLOR.findall(css)]
    colors = [c for c in _unique(hex_colors + rgb_colors) if c not in BACKGROUND_COLORS][:MAX_COLORS]

    fonts = _unique(
        match.strip().split(",")[0].strip().strip("\"'")
        for match in FONT_FAMILY.findall(css)
    )
    heading = fonts[0] if fonts else "Inter"
    body = fonts[1] if len(fonts) > 1 else heading

    return BrandIdentity(colors=colors or list(DEFAULT_COLORS), fonts={"heading": heading, "body": body})


def is_product_image(url: str) -> bool:
    if not url or url.startswith("data:"):
        return False
    lower = url.lower()
    if any(word in lower for word in ("icon", "logo", "favicon", "1x1", "pixel")):
        return False
    return bool(IMAGE_EXTENSION.search(lower)) or "/images/" in lower or "/product" in lower or "cdn" in lower


def is_video_file(url: str) -> bool:
    return bool(url and VIDEO_EXTENSION.search(url.lower()))


def _meta(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    return tag.get("content") if tag else None


def _markdown_title(markdown: str) -> Optional[str]:
    match = re.search(r"^#\s+(.+)$", markdown, re.MULTILINE)
    return match.group(1).strip() if match else None


def _markdown_description(markdown: str) -> Optional[str]:
    for paragraph in markdown.split("\n\n"):
        text = paragraph.strip()
        if text and not text.startswith("#") and 50 < len(text) < 500:
            return text
    return None


def extract_product(page: FetchedPage) -> ScrapedProduct:
    """Title, description, media and price from a scraped product page."""
    soup = BeautifulSoup(page.html, "html.parser")
    metadata = page.metadata

    images = [tag.get("content") for tag in soup.find_all("meta", attrs={"property": "og:image"})]
    images += [tag.get("src") for tag in soup.find_all("img")]
    images = [url for url in _unique(images) if is_product_image(url)]

    videos = [tag.get("src") for tag in soup.find_all("video")]
    videos += [tag.get("src") for video in soup.find_all("video") for tag in video.find_all("source")]
    videos = [url for url in _unique(videos) if is_video_file(url)]

    embeds = " ".join(tag.get("src", "") for tag in soup.find_all("iframe")) + " " + page.html + " " + page.markdown
    videos += [f"https://www.youtube.com/watch?v={video_id}" for video_id in YOUTUBE_ID.findall(embeds)]
    videos += [f"https://vimeo.com/{video_id}" for video_id in VIMEO_ID.findall(embeds)]
    videos = _unique(videos)

    title_tag = soup.find("title")
    title = (
        metadata.get("title")
        or _meta(soup, property="og:title")
        or (title_tag.get_text(strip=True) if title_tag else None)
        or _markdown_title(page.markdown)
        or "Product"
    )
    description = (
        metadata.get("description")
        or _meta(soup, name="description")
        or _markdown_description(page.markdown)
        or ""
    )
    price = PRICE.search(page.html) or PRICE.search(page.markdown)

    return ScrapedProduct(
        title=title,
        description=description,
        images=images[:MAX_IMAGES],
        videos=videos[:MAX_VIDEOS],
        brand=metadata.get("siteName") or _meta(soup, property="og:site_name"),
        price=price.group(0) if price else None
    )


class IngestService:
    """Service for reading brand and product pages."""

    def __init__(self, page_fetcher: Optional[PageFetcher] = None, landing_page_fetcher: Optional[PageFetcher] = None):
        self.page_fetcher = page_fetcher or get_page_fetcher()
        self.landing_page_fetcher = landing_page_fetcher or DirectPageFetcher()

    async def ingest_brand(self, landing_page_url: Optional[str]) -> BrandIdentity:
        if not landing_page_url:
            return BrandIdentity(message="No URL provided")

        try:
            page = await self.landing_page_fetcher.fetch(landing_page_url)
        except TransportError as e:
            logger.info(f"Could not fetch landing page {landing_page_url}: {e.message}")
            return BrandIdentity(message="Could not fetch landing page, using defaults")
        except AdStudioException as e:
            logger.info(f"Landing page {landing_page_url} not accessible: {e.message}")
            return BrandIdentity(message="Landing page not accessible")

        identity = extract_brand_identity(page.html)
        logger.info(f"Extracted brand identity from {page.url}: {identity.colors} {identity.fonts}")
        return identity

    async def scrape_product(self, url: Optional[str]) -> ScrapedProduct:
        if not url or not url.strip():
            raise_validation_error("URL is required", "url")

        page = await self.page_fetcher.fetch(url)
        product = extract_product(page)
        logger.info(f"Scraped {page.url}: {len(product.images)} images, {len(product.videos)} videos")
        return product
