"""
Video rendering providers.

Replicate and fal.ai are called over their REST APIs with httpx. The mock
provider returns stock clips after a short delay so the whole workflow can be
exercised without paying for renders.
"""
import asyncio
import logging
import time
from typing import Optional, Dict, Any

import httpx

from adstudio.config import settings
from adstudio.core.exceptions import (
    ConfigurationError,
    TransportError,
    UpstreamError,
    raise_for_upstream_status,
)
from adstudio.services.integrations.base import VideoGenerator

logger = logging.getLogger(__name__)

NEGATIVE_PROMPT = "low resolution, error, worst quality, low quality, defects, blurry, distorted"


class ReplicateVideoGenerator(VideoGenerator):
    """
    Replicate predictions API.
    Creates a prediction (asking the API to hold the response open), then polls
    it until it succeeds or fails.
    """

    name = "Replicate"
    BASE_URL = "https://api.replicate.com/v1"

    def __init__(
        self,
        api_token: str = None,
        model: str = None,
        poll_interval: float = 2.0,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_token = api_token if api_token is not None else settings.REPLICATE_API_TOKEN
        self.model = model or settings.REPLICATE_SCENE_MODEL
        self.poll_interval = poll_interval
        self.timeout = timeout or settings.UPSTREAM_TIMEOUT_SECONDS
        self.transport = transport

    def ensure_configured(self) -> None:
        if not self.api_token:
            raise ConfigurationError("REPLICATE_API_TOKEN")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json"
        }

    async def render_scene(
        self,
        prompt: str,
        audio_prompt: str,
        duration: int,
        aspect_ratio: str,
        scene_number: int = 1
    ) -> str:
        return await self._predict({
            "prompt": prompt,
            "audio_prompt": audio_prompt,
            "duration": duration,
            "aspect_ratio": aspect_ratio
        })

    async def render_script(self, prompt: str, duration: int, aspect_ratio: str) -> str:
        return await self._predict({
            "prompt": prompt,
            "duration": duration,
            "aspect_ratio": aspect_ratio
        })

    async def _predict(self, model_input: Dict[str, Any]) -> str:
        self.ensure_configured()
        deadline = time.monotonic() + self.timeout

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/models/{self.model}/predictions",
                    headers={**self.headers, "Prefer": "wait"},
                    json={"input": model_input}
                )
                if response.status_code >= 400:
                    logger.error(f"Replicate API error: {response.status_code} {response.text}")
                    raise_for_upstream_status(self.name, response.status_code, response.text)

                prediction = response.json()
                logger.info(f"Prediction {prediction.get('id')} started, status {prediction.get('status')}")

                while prediction.get("status") not in ("succeeded", "failed", "canceled"):
                    if time.monotonic() > deadline:
                        raise UpstreamError(self.name, f"Prediction {prediction.get('id')} timed out")
                    await asyncio.sleep(self.poll_interval)
                    poll = await client.get(
                        f"{self.BASE_URL}/predictions/{prediction['id']}",
                        headers=self.headers
                    )
                    raise_for_upstream_status(self.name, poll.status_code, poll.text)
                    prediction = poll.json()
                    logger.debug(f"Prediction {prediction.get('id')} status: {prediction.get('status')}")
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        if prediction.get("status") != "succeeded":
            raise UpstreamError(self.name, prediction.get("error") or "Video generation failed")

        output = prediction.get("output")
        if isinstance(output, list):
            output = output[0] if output else None
        if not output:
            raise UpstreamError(self.name, "No video URL returned")
        return output


class FalVideoGenerator(VideoGenerator):
    """fal.ai synchronous text-to-video endpoint."""

    name = "Fal.ai"
    BASE_URL = "https://fal.run"

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.FAL_KEY
        self.model = model or settings.FAL_TEXT_TO_VIDEO_MODEL
        self.timeout = timeout or settings.UPSTREAM_TIMEOUT_SECONDS
        self.transport = transport

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("FAL_KEY")

    async def render_scene(
        self,
        prompt: str,
        audio_prompt: str,
        duration: int,
        aspect_ratio: str,
        scene_number: int = 1
    ) -> str:
        return await self.render_script(prompt, duration, aspect_ratio)

    async def render_script(self, prompt: str, duration: int, aspect_ratio: str) -> str:
        self.ensure_configured()
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.BASE_URL}/{self.model}",
                    headers={
                        "Authorization": f"Key {self.api_key}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "prompt": prompt,
                        "negative_prompt": NEGATIVE_PROMPT,
                        "aspect_ratio": aspect_ratio,
                        "duration": str(duration),
                        "enable_prompt_expansion": True,
                        "enable_safety_checker": True
                    }
                )
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        if response.status_code >= 400:
            logger.error(f"Fal.ai API error: {response.status_code} {response.text}")
            raise_for_upstream_status(self.name, response.status_code, response.text)

        result = response.json()
        video_url = (result.get("video") or {}).get("url") or result.get("url")
        if not video_url:
            raise UpstreamError(self.name, "No video URL returned")
        return video_url


# Public-domain sample videos (Pexels free stock)
SAMPLE_VIDEOS = [
    "https://videos.pexels.com/video-files/3571264/3571264-uhd_2560_1440_30fps.mp4",
    "https://videos.pexels.com/video-files/4769562/4769562-uhd_2560_1440_25fps.mp4",
    "https://videos.pexels.com/video-files/5752729/5752729-uhd_2560_1440_30fps.mp4",
]


class MockVideoGenerator(VideoGenerator):
    """
    Mock renderer for development/testing.
    Simulates render latency and returns stock clips.
    """

    name = "Mock renderer"

    def __init__(self, delay: float = None):
        self.delay = settings.MOCK_RENDER_DELAY_SECONDS if delay is None else delay

    async def render_scene(
        self,
        prompt: str,
        audio_prompt: str,
        duration: int,
        aspect_ratio: str,
        scene_number: int = 1
    ) -> str:
        await asyncio.sleep(self.delay)
        return SAMPLE_VIDEOS[scene_number % len(SAMPLE_VIDEOS)]

    async def render_script(self, prompt: str, duration: int, aspect_ratio: str) -> str:
        await asyncio.sleep(self.delay * 1.5)
        return SAMPLE_VIDEOS[0]
