"""
Campaigns API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from adstudio.core.pagination import PaginatedResponse
from adstudio.services.campaign_service import CampaignService
from adstudio.schemas.campaign import (
    ActivityResponse,
    CampaignCreate,
    CampaignResponse,
    CampaignStage,
    CampaignUpdate,
    ProgressWrite,
)
from adstudio.api.deps import get_current_user, get_campaign_service
from adstudio.models.user import User

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.post("/", response_model=CampaignResponse, status_code=201)
async def create_campaign(
    campaign_data: CampaignCreate,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Create a draft campaign."""
    return await campaign_service.create(current_user.id, campaign_data)


@router.get("/", response_model=PaginatedResponse[CampaignResponse])
async def list_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """List campaigns with optional status filter."""
    return await campaign_service.list(current_user.id, status, page, limit)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Get a campaign by ID."""
    return await campaign_service.get(current_user.id, campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    campaign_id: uuid.UUID,
    campaign_data: CampaignUpdate,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Update a campaign."""
    return await campaign_service.update(current_user.id, campaign_id, campaign_data)


@router.delete("/{campaign_id}", status_code=204)
async def delete_campaign(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Delete a campaign (not while a generation is running)."""
    await campaign_service.delete(current_user.id, campaign_id)


@router.get("/{campaign_id}/stage", response_model=CampaignStage)
async def get_campaign_stage(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Editor step the campaign should open in."""
    return await campaign_service.stage(current_user.id, campaign_id)


@router.get("/{campaign_id}/snapshot")
async def get_campaign_snapshot(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Storyboard, progress marker and last write time, as read by pollers."""
    snapshot = await campaign_service.snapshot(current_user.id, campaign_id)
    return snapshot.to_document()


@router.get("/{campaign_id}/activity", response_model=List[ActivityResponse])
async def get_campaign_activity(
    campaign_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Generation and edit history of the campaign, newest first."""
    return await campaign_service.activity(current_user.id, campaign_id, limit)


@router.get("/{campaign_id}/generation")
async def get_generation_progress(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Current generation progress marker."""
    progress = await campaign_service.get_progress(current_user.id, campaign_id)
    return progress.to_document()


@router.put("/{campaign_id}/generation")
async def write_generation_progress(
    campaign_id: uuid.UUID,
    data: ProgressWrite,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Mark the watched run completed or failed."""
    progress = await campaign_service.write_progress(current_user.id, campaign_id, data)
    return progress.to_document()


@router.post("/{campaign_id}/generation/resume")
async def resume_generation(
    campaign_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    campaign_service: CampaignService = Depends(get_campaign_service)
):
    """Finish or wait (bounded) for the campaign's in-flight render."""
    result = await campaign_service.resume(current_user.id, campaign_id)
    return result.to_document()
