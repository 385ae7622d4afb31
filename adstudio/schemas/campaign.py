"""
Campaign schemas.
"""
import uuid
from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel

from adstudio.schemas.storyboard import Document, GenerationProgress


class CampaignCreate(BaseModel):
    """Start a campaign from a brief; it opens in ``draft``."""
    title: str
    description: str = ""
    ad_type: str = "video"
    goal: str = ""
    prompt: Optional[str] = None
    script: Optional[str] = None
    cta_text: Optional[str] = None
    creative_style: Optional[str] = None
    target_audience: Optional[Dict[str, Any]] = None
    aspect_ratios: Optional[List[str]] = None
    brand_id: Optional[uuid.UUID] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Morning ritual, reinvented",
                "ad_type": "tv",
                "goal": "awareness",
                "prompt": "Cold-brew subscription for busy parents"
            }
        }


class CampaignUpdate(BaseModel):
    """Update an existing campaign."""
    title: Optional[str] = None
    description: Optional[str] = None
    goal: Optional[str] = None
    prompt: Optional[str] = None
    script: Optional[str] = None
    cta_text: Optional[str] = None
    creative_style: Optional[str] = None
    target_audience: Optional[Dict[str, Any]] = None
    aspect_ratios: Optional[List[str]] = None
    status: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Morning ritual, reinvented",
                "cta_text": "Start your trial",
                "status": "draft"
            }
        }


class CampaignResponse(BaseModel):
    """Campaign response."""
    id: uuid.UUID
    user_id: uuid.UUID
    brand_id: Optional[uuid.UUID]
    title: str
    description: str
    ad_type: str
    goal: str
    prompt: Optional[str]
    script: Optional[str]
    cta_text: Optional[str]
    creative_style: Optional[str]
    target_audience: Optional[Dict[str, Any]]
    aspect_ratios: Optional[List[str]]
    predicted_ctr: Optional[float]
    predicted_engagement: Optional[str]
    status: str
    storyboard: Optional[Dict[str, Any]]
    generation_progress: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CampaignStage(BaseModel):
    """Where the editor should send the user for this campaign."""
    campaign_id: uuid.UUID
    stage: str
    route: str
    label: str


class ProgressWrite(BaseModel):
    """Client-side completion write for a watched run."""
    status: str
    error: Optional[str] = None

    class Config:
        json_schema_extra = {"example": {"status": "completed"}}


class ResumeResponse(Document):
    """Outcome of a server-side resume."""
    resumed: bool
    video_url: Optional[str] = None
    mode: Optional[str] = None
    scene_number: Optional[int] = None
    generation_progress: GenerationProgress


class ActivityResponse(BaseModel):
    """One entry of a campaign's activity trail."""
    id: uuid.UUID
    action: str
    description: Optional[str]
    meta_data: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
