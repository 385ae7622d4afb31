"""
Campaign repository.

Storyboard and progress writes are validated against the document models before
they hit the JSON columns, and always bump ``updated_at`` so pollers can tell
fresh rows from stale ones.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.models.campaign import Campaign
from adstudio.repositories.base import BaseRepository
from adstudio.schemas.storyboard import Storyboard, GenerationProgress, CampaignSnapshot


class CampaignRepository(BaseRepository[Campaign]):
    """Repository for Campaign operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Campaign, session)

    async def get_fresh(self, campaign_id: uuid.UUID) -> Optional[Campaign]:
        """Get a campaign, bypassing the session's identity map."""
        return await self.session.get(Campaign, campaign_id, populate_existing=True)

    async def get_owned(self, campaign_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Campaign]:
        """Get a campaign only if it belongs to ``user_id``."""
        campaign = await self.get_fresh(campaign_id)
        if not campaign or campaign.user_id != user_id:
            return None
        return campaign

    async def create_many(self, rows: List[dict]) -> List[Campaign]:
        """Insert several campaigns in one commit."""
        campaigns = [Campaign(**row) for row in rows]
        self.session.add_all(campaigns)
        await self.session.commit()
        for campaign in campaigns:
            await self.session.refresh(campaign)
        return campaigns

    async def save_storyboard(
        self,
        campaign: Campaign,
        storyboard: Storyboard,
        status: Optional[str] = None,
        generation_progress: Optional[GenerationProgress] = None,
        **fields
    ) -> Campaign:
        """Persist a validated storyboard (and optionally status/progress) on ``campaign``."""
        campaign.storyboard = storyboard.to_document()
        if status:
            campaign.status = status
        if generation_progress is not None:
            campaign.generation_progress = generation_progress.to_document()
        for field, value in fields.items():
            setattr(campaign, field, value)
        campaign.updated_at = datetime.utcnow()

        self.session.add(campaign)
        await self.session.commit()
        await self.session.refresh(campaign)
        return campaign

    async def set_generation_progress(
        self,
        campaign_id: uuid.UUID,
        progress: GenerationProgress
    ) -> Optional[Campaign]:
        """Overwrite the generation progress marker."""
        campaign = await self.get_fresh(campaign_id)
        if not campaign:
            return None

        campaign.generation_progress = progress.to_document()
        campaign.updated_at = datetime.utcnow()

        self.session.add(campaign)
        await self.session.commit()
        await self.session.refresh(campaign)
        return campaign

    async def get_snapshot(self, campaign_id: uuid.UUID) -> Optional[CampaignSnapshot]:
        """Storyboard, progress and ``updated_at`` as read by pollers."""
        campaign = await self.get_fresh(campaign_id)
        if not campaign:
            return None
        return snapshot_of(campaign)


def snapshot_of(campaign: Campaign) -> CampaignSnapshot:
    return CampaignSnapshot(
        id=str(campaign.id),
        status=campaign.status,
        storyboard=Storyboard.from_document(campaign.storyboard),
        generation_progress=GenerationProgress.from_document(campaign.generation_progress),
        updated_at=campaign.updated_at,
    )
