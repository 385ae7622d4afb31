"""
Base interfaces for integration providers.
Abstract base classes for the generative AI, rendering, storage and web
retrieval services.
"""
from abc import ABC, abstractmethod
from typing import Dict, Any

from pydantic import BaseModel


class TextGenerator(ABC):
    """Base interface for text/JSON generation (AI gateway, Gemini, etc.)"""

    name: str = "AI gateway"

    @abstractmethod
    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Ask the model for a JSON object matching ``parameters`` (a JSON schema).

        Raises:
            RateLimitError, QuotaExceededError, UpstreamError, TransportError
        """
        pass


class VideoGenerator(ABC):
    """Base interface for video rendering (Replicate, fal.ai, mock)"""

    name: str = "Video service"

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when credentials are missing."""
        return None

    @abstractmethod
    async def render_scene(
        self,
        prompt: str,
        audio_prompt: str,
        duration: int,
        aspect_ratio: str,
        scene_number: int = 1
    ) -> str:
        """Render one scene clip. Returns a downloadable video URL."""
        pass

    @abstractmethod
    async def render_script(
        self,
        prompt: str,
        duration: int,
        aspect_ratio: str
    ) -> str:
        """Render a whole ad from its script. Returns a downloadable video URL."""
        pass


class MediaStorage(ABC):
    """Base interface for the rendered-media bucket."""

    @abstractmethod
    async def store_video(self, source_url: str, key: str) -> str:
        """Copy the video at ``source_url`` under ``key``. Returns its public URL."""
        pass

    @abstractmethod
    async def store_image(self, data: bytes, key: str, content_type: str = "image/png") -> str:
        """Upload raw image bytes under ``key``. Returns its public URL."""
        pass


class ImageGenerator(ABC):
    """Base interface for still-frame generation (Imagen, mock)"""

    name: str = "Image service"

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when credentials are missing."""
        return None

    @abstractmethod
    async def render_image(self, prompt: str, aspect_ratio: str = "16:9") -> bytes:
        """Render one frame. Returns PNG bytes."""
        pass


class FetchedPage(BaseModel):
    """A web page as returned by a fetcher."""
    url: str
    html: str = ""
    markdown: str = ""
    metadata: Dict[str, Any] = {}


class PageFetcher(ABC):
    """Base interface for web page retrieval (direct HTTP, Firecrawl)"""

    name: str = "Page fetcher"

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """
        Retrieve ``url``.

        Raises:
            UpstreamError, TransportError, ConfigurationError
        """
        pass
