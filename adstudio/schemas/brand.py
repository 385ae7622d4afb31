"""
Brand schemas.
"""
import uuid
from typing import Optional, Dict, Any, List, Union
from datetime import datetime
from pydantic import BaseModel, EmailStr


class BrandCreate(BaseModel):
    """Brand profile set up before the first campaign."""
    name: str
    brand_voice: Optional[str] = None
    email: Optional[EmailStr] = None
    landing_page_url: Optional[str] = None
    logo_url: Optional[str] = None
    colors: Optional[Union[Dict[str, Any], List[str]]] = None
    fonts: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Brewcraft",
                "brand_voice": "Warm and witty",
                "landing_page_url": "https://brewcraft.example",
                "colors": ["#2b1a0f", "#f4e9dc"]
            }
        }


class BrandUpdate(BaseModel):
    name: Optional[str] = None
    brand_voice: Optional[str] = None
    email: Optional[EmailStr] = None
    landing_page_url: Optional[str] = None
    logo_url: Optional[str] = None
    colors: Optional[Union[Dict[str, Any], List[str]]] = None
    fonts: Optional[Dict[str, Any]] = None


class BrandResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    brand_voice: Optional[str]
    email: Optional[str]
    landing_page_url: Optional[str]
    logo_url: Optional[str]
    colors: Optional[Union[Dict[str, Any], List[str]]]
    fonts: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
