"""
Brand model - voice and visual identity fed into script generation.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field

from adstudio.models.columns import JSONColumn


class Brand(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    name: str
    brand_voice: Optional[str] = None
    email: Optional[str] = None
    landing_page_url: Optional[str] = None
    logo_url: Optional[str] = None
    # Example: {"primary": "#2b1a0f"} or ["#2b1a0f", "#f4e9dc"] from landing-page ingestion
    colors: Optional[Any] = Field(default=None, sa_column=JSONColumn())
    # Example: {"heading": "Inter", "body": "Inter"}
    fonts: Optional[Dict[str, Any]] = Field(default=None, sa_column=JSONColumn())

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
