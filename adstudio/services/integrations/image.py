"""
Still-frame generation providers.

Imagen is called through the Gemini API's ``predict`` endpoint with httpx; the
mock returns a placeholder frame.
"""
import asyncio
import base64
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
from adstudio.services.integrations.base import ImageGenerator

logger = logging.getLogger(__name__)

# 1x1 grey PNG
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class ImagenImageGenerator(ImageGenerator):
    """Google Imagen via generativelanguage.googleapis.com."""

    name = "Imagen"
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.IMAGEN_MODEL
        self.timeout = timeout or settings.UPSTREAM_TIMEOUT_SECONDS
        self.transport = transport

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY")

    async def render_image(self, prompt: str, aspect_ratio: str = "16:9") -> bytes:
        self.ensure_configured()
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/models/{self.model}:predict",
                    headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                    json={
                        "instances": [{"prompt": prompt}],
                        "parameters": {"sampleCount": 1, "aspectRatio": aspect_ratio}
                    }
                )
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        if response.status_code >= 400:
            logger.error(f"Imagen API error: {response.status_code} {response.text}")
            raise_for_upstream_status(self.name, response.status_code, response.text)

        predictions = response.json().get("predictions") or []
        encoded = predictions[0].get("bytesBase64Encoded") if predictions else None
        if not encoded:
            raise UpstreamError(self.name, "No image generated")
        return base64.b64decode(encoded)


class MockImageGenerator(ImageGenerator):
    """Returns a placeholder frame after the mock render delay."""

    name = "Mock image renderer"

    def __init__(self, delay: float = None):
        self.delay = settings.MOCK_RENDER_DELAY_SECONDS if delay is None else delay

    async def render_image(self, prompt: str, aspect_ratio: str = "16:9") -> bytes:
        await asyncio.sleep(self.delay)
        return PLACEHOLDER_PNG
