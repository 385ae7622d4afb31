"""
Generation endpoint schemas.
Request bodies are camelCase JSON; snake_case names are accepted too.
"""
import uuid
from typing import Optional, Dict, Any, List, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from adstudio.schemas.campaign import CampaignResponse
from adstudio.schemas.storyboard import Script, TvStrategy


class GenerationRequest(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class IdeasRequest(GenerationRequest):
    """Brief for campaign concept generation."""
    prompt: str
    ad_type: str = "video"
    goal: str = ""
    target_audience: Optional[Dict[str, Any]] = None
    creative_style: Optional[str] = "professional"
    aspect_ratios: Optional[List[str]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "prompt": "Launch spot for a cold-brew coffee subscription",
                "adType": "video",
                "goal": "awareness",
                "creativeStyle": "cinematic",
                "aspectRatios": ["16:9"]
            }
        }


class ScriptsRequest(GenerationRequest):
    ad_description: str
    duration: Union[str, int] = "30s"
    goal: str = ""
    target_audience: Optional[Union[Dict[str, Any], str]] = None
    references: List[str] = []
    brand_id: Optional[uuid.UUID] = None
    campaign_id: Optional[uuid.UUID] = None


class StoryboardRequest(GenerationRequest):
    campaign_id: uuid.UUID


class RenderSettings(GenerationRequest):
    """Shared render options."""
    duration: Union[str, int] = "5"
    aspect_ratio: str = "16:9"
    language: str = "en"
    camera_movement: str = "auto"


class SceneVideoRequest(RenderSettings):
    campaign_id: uuid.UUID
    scene_number: int
    custom_prompt: Optional[str] = None


class SceneBatchRequest(RenderSettings):
    campaign_id: Optional[uuid.UUID] = None
    script: Optional[Script] = None


class FullVideoRequest(GenerationRequest):
    campaign_id: uuid.UUID
    script: Optional[Script] = None
    duration: Union[str, int] = "5"
    aspect_ratio: str = "16:9"


class UpdateSceneRequest(GenerationRequest):
    campaign_id: uuid.UUID
    scene_number: int
    updates: Dict[str, Any]


class IdeasResponse(BaseModel):
    campaigns: List[CampaignResponse]


class StoryboardResponse(BaseModel):
    storyboard: Dict[str, Any]
    campaign_id: Optional[uuid.UUID] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class StrategyRequest(GenerationRequest):
    """Brief for a TV ad strategy."""
    prompt: Optional[str] = None
    ad_type: str = "tv"
    product_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "prompt": "Cold-brew subscription for busy parents",
                "adType": "tv",
                "productUrl": "https://brewcraft.example/subscribe"
            }
        }


class RegenerateRequest(GenerationRequest):
    campaign_id: uuid.UUID
    strategy: Optional[TvStrategy] = None


class SceneVisualRequest(GenerationRequest):
    campaign_id: uuid.UUID
    scene_number: int
    custom_prompt: Optional[str] = None
