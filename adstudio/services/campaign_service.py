"""
Campaign service - campaign management, editor stage and generation progress.
"""
import logging
import uuid
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.config import settings
from adstudio.core.exceptions import ConflictError, raise_not_found, raise_validation_error
from adstudio.models.activity import ActivityLog, Actions
from adstudio.models.campaign import Campaign
from adstudio.repositories.activity_repo import ActivityLogRepository
from adstudio.repositories.campaign_repo import CampaignRepository, snapshot_of
from adstudio.repositories.user_repo import BrandRepository
from adstudio.schemas.campaign import CampaignCreate, CampaignStage, CampaignUpdate, ProgressWrite, ResumeResponse
from adstudio.schemas.storyboard import (
    CampaignSnapshot,
    GenerationMode,
    GenerationProgress,
    ProgressStatus,
    Storyboard,
)
from adstudio.services.poller import RepositorySnapshotSource, SnapshotSource, VideoPoller
from adstudio.services.progress import ProgressTracker
from adstudio.services.resume import GenerationResumer

logger = logging.getLogger(__name__)

STAGE_ROUTES = {
    "script-selection": ("/script-selection/{id}", "Select Script"),
    "storyboard": ("/storyboard/{id}", "Edit Storyboard"),
    "campaign-details": ("/campaign/{id}", "Ready"),
}


def campaign_stage(campaign: Campaign) -> CampaignStage:
    """Editor step a campaign should open in, judged from its storyboard."""
    storyboard = Storyboard.from_document(campaign.storyboard)
    progress = GenerationProgress.from_document(campaign.generation_progress)

    if storyboard.full_video_url():
        stage = "campaign-details"
    elif storyboard.scenes or storyboard.selected_script or progress.is_generating:
        stage = "storyboard"
    else:
        stage = "script-selection"

    route, label = STAGE_ROUTES[stage]
    return CampaignStage(campaign_id=campaign.id, stage=stage, route=route.format(id=campaign.id), label=label)


class CampaignService:
    """Service for campaign operations."""

    def __init__(self, session: AsyncSession, snapshot_source: Optional[SnapshotSource] = None):
        self.session = session
        self.campaign_repo = CampaignRepository(session)
        self.brand_repo = BrandRepository(session)
        self.activity_repo = ActivityLogRepository(session)
        self.tracker = ProgressTracker(self.campaign_repo)
        self.snapshot_source = snapshot_source

    async def create(self, user_id: uuid.UUID, campaign_data: CampaignCreate) -> Campaign:
        """Create a campaign in ``draft`` status."""
        if campaign_data.brand_id:
            brand = await self.brand_repo.get(campaign_data.brand_id)
            if not brand or brand.user_id != user_id:
                raise_not_found("Brand", str(campaign_data.brand_id))

        data = campaign_data.model_dump()
        data.update(user_id=user_id, status="draft")
        campaign = await self.campaign_repo.create(data)

        await self.activity_repo.log(
            user_id=user_id,
            action=Actions.CAMPAIGN_CREATED,
            entity_type="campaign",
            entity_id=campaign.id,
            description=f"Campaign '{campaign.title}' created"
        )
        logger.info(f"Campaign {campaign.id} created for user {user_id}")
        return campaign

    async def get(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> Campaign:
        """Get a campaign by ID."""
        campaign = await self.campaign_repo.get_owned(campaign_id, user_id)
        if not campaign:
            raise_not_found("Campaign", str(campaign_id))
        return campaign

    async def list(
        self,
        user_id: uuid.UUID,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List campaigns with optional status filter."""
        filters = {}
        if status:
            filters["status"] = status

        return await self.campaign_repo.list_paginated(
            user_id=user_id,
            filters=filters,
            page=page,
            limit=limit
        )

    async def update(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        campaign_data: CampaignUpdate
    ) -> Campaign:
        """Update a campaign."""
        campaign = await self.get(user_id, campaign_id)

        update_data = campaign_data.model_dump(exclude_unset=True)
        updated_campaign = await self.campaign_repo.update(campaign_id, update_data)

        await self.activity_repo.log(
            user_id=user_id,
            action=Actions.CAMPAIGN_UPDATED,
            entity_type="campaign",
            entity_id=campaign_id,
            description=f"Campaign '{campaign.title}' updated"
        )

        return updated_campaign

    async def delete(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> bool:
        """Delete a campaign."""
        campaign = await self.get(user_id, campaign_id)

        progress = GenerationProgress.from_document(campaign.generation_progress)
        if progress.is_generating:
            raise ConflictError("Cannot delete a campaign while a generation is in progress")

        title = campaign.title
        success = await self.campaign_repo.delete(campaign_id)

        if success:
            await self.activity_repo.log(
                user_id=user_id,
                action=Actions.CAMPAIGN_DELETED,
                entity_type="campaign",
                entity_id=campaign_id,
                description=f"Campaign '{title}' deleted"
            )

        return success

    async def stage(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> CampaignStage:
        return campaign_stage(await self.get(user_id, campaign_id))

    async def snapshot(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> CampaignSnapshot:
        return snapshot_of(await self.get(user_id, campaign_id))

    async def activity(self, user_id: uuid.UUID, campaign_id: uuid.UUID, limit: int = 50) -> List[ActivityLog]:
        """Audit trail of the campaign, newest first."""
        await self.get(user_id, campaign_id)
        return await self.activity_repo.get_by_entity("campaign", campaign_id, limit)

    # ------------------------------------------------------------------
    # Generation progress
    # ------------------------------------------------------------------

    async def get_progress(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> GenerationProgress:
        campaign = await self.get(user_id, campaign_id)
        return GenerationProgress.from_document(campaign.generation_progress)

    async def write_progress(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        data: ProgressWrite
    ) -> GenerationProgress:
        """
        Client-side end of a watched run: ``completed`` once the client saw the
        video, or ``failed`` with an error.
        """
        campaign = await self.get(user_id, campaign_id)
        current = GenerationProgress.from_document(campaign.generation_progress)

        if data.status == ProgressStatus.COMPLETED.value:
            # A completed single-video run must have its URL stored
            batch = current.mode == GenerationMode.SCENE and current.scene_number is None
            if current.is_generating and current.mode and not batch:
                storyboard = Storyboard.from_document(campaign.storyboard)
                if not storyboard.video_url_for(current.mode, current.scene_number):
                    raise_validation_error("No video stored for the run being completed")
            return await self.tracker.mark_completed(campaign_id)

        if data.status == ProgressStatus.FAILED.value:
            return await self.tracker.fail(campaign_id, current, data.error or "Generation failed")

        raise_validation_error(f"Unsupported progress status '{data.status}'", "status")

    async def resume(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        timeout: float = None
    ) -> ResumeResponse:
        """
        Finish or re-attach to the campaign's in-flight generation.

        Polls for at most ``timeout`` seconds (RESUME_TIMEOUT_SECONDS by default);
        clients call again if the render is still running.
        """
        await self.get(user_id, campaign_id)

        source = self.snapshot_source or RepositorySnapshotSource()
        ready = {}

        def on_video_ready(url: str, mode: GenerationMode, scene_number: Optional[int]) -> None:
            ready.update(video_url=url, mode=mode.value, scene_number=scene_number)

        poller = VideoPoller(source, timeout=settings.RESUME_TIMEOUT_SECONDS if timeout is None else timeout)
        resumer = GenerationResumer(source, on_video_ready, poller=poller)
        await resumer.resume(campaign_id)

        progress = await self.get_progress(user_id, campaign_id)
        logger.info(f"Campaign {campaign_id}: resume finished (ready={bool(ready)}, status={progress.status.value})")
        return ResumeResponse(resumed=bool(ready), generation_progress=progress, **ready)
