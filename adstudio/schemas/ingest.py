"""
Brand and product ingestion schemas.
"""
from typing import Optional, Dict, List

from adstudio.schemas.generation import GenerationRequest
from adstudio.schemas.storyboard import Document

DEFAULT_COLORS = ["#000000"]
DEFAULT_FONTS = {"heading": "Inter", "body": "Inter"}


class BrandIngestRequest(GenerationRequest):
    landing_page_url: Optional[str] = None


class BrandIdentity(Document):
    """Colours and fonts read off a landing page; defaults when it can't be read."""
    colors: List[str] = list(DEFAULT_COLORS)
    fonts: Dict[str, str] = dict(DEFAULT_FONTS)
    message: Optional[str] = None


class ProductScrapeRequest(GenerationRequest):
    url: Optional[str] = None


class ScrapedProduct(Document):
    title: str = "Product"
    description: str = ""
    images: List[str] = []
    videos: List[str] = []
    brand: Optional[str] = None
    price: Optional[str] = None


class ProductScrapeResponse(Document):
    success: bool = True
    product: ScrapedProduct
