"""
Campaign model - one TV ad campaign and its generated creative.
The storyboard and generation progress live in JSON columns and are mutated in
place by each generation step.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlmodel import SQLModel, Field

from adstudio.models.columns import JSONColumn


class Campaign(SQLModel, table=True):
    """
    Campaign entity - concept, scripts, storyboard and rendered media.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    brand_id: Optional[uuid.UUID] = Field(default=None, foreign_key="brand.id", index=True)

    # Concept
    title: str = Field(index=True)
    description: str = ""
    ad_type: str = Field(default="video", index=True)  # video, image, tv
    goal: str = ""
    prompt: Optional[str] = None
    script: Optional[str] = None
    cta_text: Optional[str] = None
    creative_style: Optional[str] = None
    target_audience: Optional[Dict[str, Any]] = Field(default=None, sa_column=JSONColumn())
    aspect_ratios: Optional[List[str]] = Field(default=None, sa_column=JSONColumn())
    predicted_ctr: Optional[float] = None
    predicted_engagement: Optional[str] = None

    # Lifecycle: concept, draft, storyboard_created, video_generated, ...
    status: str = Field(default="draft", index=True)

    # Generated creative (see adstudio.schemas.storyboard)
    storyboard: Optional[Dict[str, Any]] = Field(default=None, sa_column=JSONColumn())
    # Example: {"status": "generating", "mode": "scene", "sceneNumber": 3, "startedAt": 1718000000000}
    generation_progress: Optional[Dict[str, Any]] = Field(default=None, sa_column=JSONColumn())

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
