"""
Rendered-media storage.

Provider URLs expire, so finished renders are copied into our own bucket before
their URL is written to a storyboard. Generated stills arrive as bytes and are
uploaded directly.
"""
import base64
import logging
from typing import Optional

import httpx

from adstudio.config import settings
from adstudio.core.exceptions import TransportError, raise_for_upstream_status
from adstudio.services.integrations.base import MediaStorage

logger = logging.getLogger(__name__)


class BucketMediaStorage(MediaStorage):
    """Supabase-style storage REST API (``/storage/v1/object/...``)."""

    name = "Media storage"

    def __init__(
        self,
        base_url: str = None,
        service_key: str = None,
        bucket: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.STORAGE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.STORAGE_SERVICE_KEY
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.transport = transport

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)

    async def _upload(self, client: httpx.AsyncClient, content: bytes, key: str, content_type: str) -> str:
        upload = await client.post(
            f"{self.base_url}/storage/v1/object/{self.bucket}/{key}",
            content=content,
            headers={
                "Authorization": f"Bearer {self.service_key}",
                "Content-Type": content_type,
                "x-upsert": "false"
            }
        )
        raise_for_upstream_status(self.name, upload.status_code, upload.text)
        return self.public_url(key)

    async def store_video(self, source_url: str, key: str) -> str:
        try:
            async with self._client() as client:
                download = await client.get(source_url, follow_redirects=True)
                raise_for_upstream_status("Video download", download.status_code, download.text[:200])
                url = await self._upload(client, download.content, key, "video/mp4")
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        logger.info(f"Video uploaded to: {url}")
        return url

    async def store_image(self, data: bytes, key: str, content_type: str = "image/png") -> str:
        try:
            async with self._client() as client:
                url = await self._upload(client, data, key, content_type)
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        logger.info(f"Image uploaded to: {url}")
        return url


class PassthroughMediaStorage(MediaStorage):
    """Keeps the provider URL as-is (mock mode, or no bucket configured)."""

    async def store_video(self, source_url: str, key: str) -> str:
        return source_url

    async def store_image(self, data: bytes, key: str, content_type: str = "image/png") -> str:
        # No bucket to hold the bytes, so inline them
        return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
