"""
Provider factory.
Picks the text, video, image, storage and page-fetching implementations from
settings. Each getter doubles as a FastAPI dependency, so tests override them
on the app.
"""
import logging

from adstudio.config import settings
from adstudio.services.integrations.base import (
    ImageGenerator,
    MediaStorage,
    PageFetcher,
    TextGenerator,
    VideoGenerator,
)
from adstudio.services.integrations.image import ImagenImageGenerator, MockImageGenerator
from adstudio.services.integrations.text import GatewayTextGenerator, GeminiTextGenerator
from adstudio.services.integrations.video import (
    FalVideoGenerator,
    MockVideoGenerator,
    ReplicateVideoGenerator,
)
from adstudio.services.integrations.storage import BucketMediaStorage, PassthroughMediaStorage
from adstudio.services.integrations.web import DirectPageFetcher, FirecrawlPageFetcher

logger = logging.getLogger(__name__)

_text_generator: TextGenerator = None
_video_generator: VideoGenerator = None
_media_storage: MediaStorage = None
_image_generator: ImageGenerator = None
_page_fetcher: PageFetcher = None


def video_mock_enabled() -> bool:
    return settings.MOCK_VIDEO_GENERATION or settings.VIDEO_PROVIDER == "mock"


def get_text_generator() -> TextGenerator:
    """Get the current text generator instance."""
    global _text_generator
    if _text_generator is None:
        if settings.TEXT_PROVIDER == "gemini":
            _text_generator = GeminiTextGenerator()
        else:
            _text_generator = GatewayTextGenerator()
        logger.info(f"Text generation via {_text_generator.name}")
    return _text_generator


def get_video_generator() -> VideoGenerator:
    """Get the current video generator instance."""
    global _video_generator
    if _video_generator is None:
        if video_mock_enabled():
            _video_generator = MockVideoGenerator()
        elif settings.VIDEO_PROVIDER == "fal":
            _video_generator = FalVideoGenerator()
        else:
            _video_generator = ReplicateVideoGenerator()
        logger.info(f"Video generation via {_video_generator.name}")
    return _video_generator


def get_media_storage() -> MediaStorage:
    """Get the current media storage instance."""
    global _media_storage
    if _media_storage is None:
        if video_mock_enabled():
            _media_storage = PassthroughMediaStorage()
        elif not settings.STORAGE_URL:
            logger.warning("STORAGE_URL not configured; keeping provider video URLs")
            _media_storage = PassthroughMediaStorage()
        else:
            _media_storage = BucketMediaStorage()
    return _media_storage


def get_image_generator() -> ImageGenerator:
    """Get the current still-frame generator instance."""
    global _image_generator
    if _image_generator is None:
        if video_mock_enabled():
            _image_generator = MockImageGenerator()
        else:
            _image_generator = ImagenImageGenerator()
        logger.info(f"Image generation via {_image_generator.name}")
    return _image_generator


def get_page_fetcher() -> PageFetcher:
    """Get the fetcher used for product page scraping."""
    global _page_fetcher
    if _page_fetcher is None:
        if settings.FIRECRAWL_API_KEY:
            _page_fetcher = FirecrawlPageFetcher()
        else:
            logger.warning("FIRECRAWL_API_KEY not configured; scraping product pages directly")
            _page_fetcher = DirectPageFetcher()
    return _page_fetcher
