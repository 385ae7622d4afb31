"""
Activity log model - audit trail for campaign and generation events.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from adstudio.models.columns import JSONColumn


class ActivityLog(SQLModel, table=True):
    """
    Activity log for tracking significant actions.
    """
    __tablename__ = "activity_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)

    # Action details
    action: str = Field(index=True)
    entity_type: str = Field(index=True)  # campaign, brand, user
    entity_id: Optional[uuid.UUID] = None

    # Human-readable description
    description: Optional[str] = None

    # Additional metadata
    meta_data: Dict[str, Any] = Field(default_factory=dict, sa_column=JSONColumn())
    # Example: {"mode": "scene", "scene_number": 3, "video_url": "https://..."}

    created_at: datetime = Field(default_factory=datetime.utcnow)


# Action constants for consistency
class Actions:
    # Campaign actions
    CAMPAIGN_CREATED = "campaign_created"
    CAMPAIGN_UPDATED = "campaign_updated"
    CAMPAIGN_DELETED = "campaign_deleted"

    # Brand actions
    BRAND_CREATED = "brand_created"
    BRAND_UPDATED = "brand_updated"
    BRAND_INGESTED = "brand_ingested"

    # Generation actions
    SCRIPTS_GENERATED = "scripts_generated"
    STORYBOARD_GENERATED = "storyboard_generated"
    STRATEGY_GENERATED = "strategy_generated"
    STORYBOARD_REGENERATED = "storyboard_regenerated"
    SCENE_VISUAL_GENERATED = "scene_visual_generated"
    SCENE_UPDATED = "scene_updated"
    GENERATION_STARTED = "generation_started"
    GENERATION_COMPLETED = "generation_completed"
    GENERATION_FAILED = "generation_failed"

    # User actions
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
