"""
Web page retrieval for brand and product ingestion.

Firecrawl renders JavaScript-heavy shop pages and returns HTML, markdown and
page metadata; the direct fetcher is a plain GET used for landing pages and
when no Firecrawl key is configured.
"""
import logging
from typing import Optional

import httpx

from adstudio.config import settings
from adstudio.core.exceptions import (
    ConfigurationError,
    TransportError,
    UpstreamError,
    raise_for_upstream_status,
)
from adstudio.services.integrations.base import FetchedPage, PageFetcher

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; AdStudioIngest/1.0)"


def normalize_url(url: str) -> str:
    """Trim and default to https when the scheme is missing."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


class DirectPageFetcher(PageFetcher):
    """Plain HTTP GET of the page."""

    name = "Web page"

    def __init__(self, timeout: float = 20.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> FetchedPage:
        url = normalize_url(url)
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        raise_for_upstream_status(self.name, response.status_code, f"HTTP {response.status_code}")
        return FetchedPage(url=url, html=response.text)


class FirecrawlPageFetcher(PageFetcher):
    """Firecrawl ``/v1/scrape`` (rendered HTML, markdown, metadata)."""

    name = "Firecrawl"
    BASE_URL = "https://api.firecrawl.dev/v1"

    def __init__(
        self,
        api_key: str = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.FIRECRAWL_API_KEY
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> FetchedPage:
        if not self.api_key:
            raise ConfigurationError("FIRECRAWL_API_KEY")

        url = normalize_url(url)
        logger.info(f"Scraping {url} via Firecrawl")
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/scrape",
                    headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                    json={
                        "url": url,
                        "formats": ["markdown", "html", "links"],
                        "onlyMainContent": False,
                        "waitFor": 2000
                    }
                )
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        if response.status_code >= 400:
            logger.error(f"Firecrawl API error: {response.status_code} {response.text}")
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text
            raise_for_upstream_status(self.name, response.status_code, message)

        body = response.json()
        data = body.get("data") or body
        if not isinstance(data, dict):
            raise UpstreamError(self.name, "Unexpected scrape response")
        return FetchedPage(
            url=url,
            html=data.get("html") or "",
            markdown=data.get("markdown") or "",
            metadata=data.get("metadata") or {}
        )
