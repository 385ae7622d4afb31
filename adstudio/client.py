"""
Async HTTP client for the AdStudio API.

Also a ``SnapshotSource``, so a ``VideoPoller`` or ``GenerationResumer`` can run
outside the server against a deployed API:

    async with AdStudioClient("https://api.example.com", token) as client:
        resumer = GenerationResumer(client, on_video_ready)
        await resumer.resume(campaign_id)
"""
import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from adstudio.config import settings
from adstudio.core.exceptions import TransportError, UpstreamError, raise_for_upstream_status
from adstudio.schemas.storyboard import (
    CampaignSnapshot,
    FullVideoResult,
    GenerationProgress,
    SceneBatchResult,
    SceneVideoResult,
    SceneVisualResult,
    ScriptSet,
    Storyboard,
    StrategyResult,
)
from adstudio.services.poller import SnapshotSource

logger = logging.getLogger(__name__)


class AdStudioClient(SnapshotSource):

    name = "AdStudio API"

    def __init__(
        self,
        base_url: str = None,
        access_token: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BACKEND_URL,
            headers=headers,
            timeout=timeout or settings.UPSTREAM_TIMEOUT_SECONDS,
            transport=transport
        )

    async def __aenter__(self) -> "AdStudioClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise TransportError(self.name, str(e))

        if response.status_code >= 400:
            try:
                message = response.json().get("error", "")
            except ValueError:
                message = response.text
            # Other errors keep the API's status
            if response.status_code in (401, 402, 403, 429):
                raise_for_upstream_status(self.name, response.status_code, message)
            raise UpstreamError(self.name, message or f"HTTP {response.status_code}", status_code=response.status_code)

        if response.status_code == 204:
            return None
        return response.json()

    async def login(self, email: str, password: str) -> str:
        """Exchange credentials for an access token and use it from now on."""
        data = await self._request("POST", "/api/auth/login", data={"username": email, "password": password})
        token = data["access_token"]
        self._client.headers["Authorization"] = f"Bearer {token}"
        return token

    # ------------------------------------------------------------------
    # SnapshotSource
    # ------------------------------------------------------------------

    async def fetch_snapshot(self, campaign_id: uuid.UUID) -> Optional[CampaignSnapshot]:
        data = await self._request("GET", f"/api/campaigns/{campaign_id}/snapshot")
        return CampaignSnapshot.model_validate(data)

    async def mark_completed(self, campaign_id: uuid.UUID) -> None:
        await self._request("PUT", f"/api/campaigns/{campaign_id}/generation", json={"status": "completed"})

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    async def create_brand(self, **brand) -> Dict[str, Any]:
        return await self._request("POST", "/api/brands/", json=brand)

    async def create_campaign(self, **campaign) -> Dict[str, Any]:
        return await self._request("POST", "/api/campaigns/", json=campaign)

    async def get_generation_progress(self, campaign_id: uuid.UUID) -> GenerationProgress:
        data = await self._request("GET", f"/api/campaigns/{campaign_id}/generation")
        return GenerationProgress.from_document(data)

    async def mark_failed(self, campaign_id: uuid.UUID, error: str) -> GenerationProgress:
        data = await self._request(
            "PUT", f"/api/campaigns/{campaign_id}/generation",
            json={"status": "failed", "error": error}
        )
        return GenerationProgress.from_document(data)

    async def resume_generation(self, campaign_id: uuid.UUID) -> Dict[str, Any]:
        """Ask the server to finish or wait for the campaign's in-flight render."""
        return await self._request("POST", f"/api/campaigns/{campaign_id}/generation/resume")

    # ------------------------------------------------------------------
    # Generation functions
    # ------------------------------------------------------------------

    async def _function(self, name: str, payload: Dict[str, Any]) -> Any:
        return await self._request("POST", f"/api/functions/{name}", json=payload)

    async def generate_scripts(self, **payload) -> ScriptSet:
        return ScriptSet.model_validate(await self._function("generate-scripts", payload))

    async def generate_storyboard(self, campaign_id: uuid.UUID) -> Storyboard:
        data = await self._function("generate-storyboard", {"campaignId": str(campaign_id)})
        return Storyboard.from_document(data["storyboard"])

    async def generate_scene_video(self, campaign_id: uuid.UUID, scene_number: int, **options) -> SceneVideoResult:
        payload = {"campaignId": str(campaign_id), "sceneNumber": scene_number, **options}
        return SceneVideoResult.model_validate(await self._function("generate-video-scene", payload))

    async def generate_scenes_batch(self, campaign_id: uuid.UUID, script: Dict[str, Any], **options) -> SceneBatchResult:
        payload = {"campaignId": str(campaign_id), "script": script, **options}
        return SceneBatchResult.model_validate(await self._function("generate-scenes-batch", payload))

    async def generate_full_video(self, campaign_id: uuid.UUID, script: Dict[str, Any], **options) -> FullVideoResult:
        payload = {"campaignId": str(campaign_id), "script": script, **options}
        return FullVideoResult.model_validate(await self._function("generate-video-from-script", payload))

    async def update_scene(self, campaign_id: uuid.UUID, scene_number: int, updates: Dict[str, Any]) -> Storyboard:
        payload = {"campaignId": str(campaign_id), "sceneNumber": scene_number, "updates": updates}
        data = await self._function("update-scene", payload)
        return Storyboard.from_document(data["storyboard"])

    async def generate_tv_strategy(self, prompt: str, ad_type: str = "tv", product_url: str = None) -> StrategyResult:
        payload = {"prompt": prompt, "adType": ad_type, "productUrl": product_url}
        return StrategyResult.model_validate(await self._function("generate-tv-strategy", payload))

    async def regenerate_from_strategy(self, campaign_id: uuid.UUID, strategy: Dict[str, Any]) -> Storyboard:
        payload = {"campaignId": str(campaign_id), "strategy": strategy}
        data = await self._function("regenerate-from-strategy", payload)
        return Storyboard.from_document(data["storyboard"])

    async def generate_scene_visual(self, campaign_id: uuid.UUID, scene_number: int, custom_prompt: str = None) -> SceneVisualResult:
        payload = {"campaignId": str(campaign_id), "sceneNumber": scene_number, "customPrompt": custom_prompt}
        return SceneVisualResult.model_validate(await self._function("generate-scene-visual", payload))

    async def scrape_product_url(self, url: str) -> Dict[str, Any]:
        data = await self._function("scrape-product-url", {"url": url})
        return data["product"]
