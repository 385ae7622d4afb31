"""
Storyboard documents.

The storyboard is stored as one JSON document per campaign. Its shape follows
whatever the AI returned, so every model keeps unknown keys, but the fields the
generation workflow reads are typed here. Keys are camelCase on the wire and in
the database.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Base for persisted JSON documents."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Scene(Document):
    """One timed segment of the ad, keyed by ``scene_number``."""
    scene_number: int
    duration: Optional[str] = None
    visual_description: str = ""
    voiceover: str = ""
    suggested_visuals: Optional[str] = None
    camera_movement: Optional[str] = None
    on_screen_text: Optional[str] = None
    video_url: Optional[str] = None
    visual_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    generated_at: Optional[str] = None
    generation_settings: Optional[Dict[str, Any]] = None

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_text(cls, value):
        if isinstance(value, (int, float)):
            return f"{value:g}s"
        return value


class Script(Document):
    """A generated script option."""
    id: Optional[str] = None
    title: str = ""
    approach: Optional[str] = None
    hook: Optional[str] = None
    full_script: str = ""
    cta: Optional[str] = None
    tone: Optional[str] = None
    music_mood: Optional[str] = None
    scenes: List[Scene] = []
    generated_video_url: Optional[str] = None


class TvStrategy(Document):
    """
    Strategy a storyboard is written against.

    The nested blocks (``core_message``, ``audience``, ``cta``,
    ``visual_direction``) are kept as the AI returned them.
    """
    objective: Optional[str] = None
    core_message: Optional[Dict[str, Any]] = None
    audience: Optional[Dict[str, Any]] = None
    storytelling_framework: Optional[str] = None
    ad_length: Optional[str] = None
    pacing: Optional[str] = None
    hook_timing: Optional[Union[int, float]] = None
    logo_reveal_timing: Optional[Union[int, float]] = None
    cta: Optional[Dict[str, Any]] = None
    visual_direction: Optional[Dict[str, Any]] = None


class Storyboard(Document):
    """Scripts, scenes and generated media for a campaign."""
    scripts: Optional[List[Script]] = None
    script_variants: Optional[Dict[str, str]] = None
    scenes: Optional[List[Scene]] = None
    selected_script: Optional[Script] = None
    generated_video_url: Optional[str] = None
    video_url: Optional[str] = None
    music_mood: Optional[str] = None
    generation_mode: Optional[str] = None
    last_batch_generation: Optional[str] = None
    generated_at: Optional[str] = None
    strategy: Optional[TvStrategy] = None
    regenerated_at: Optional[str] = None

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> "Storyboard":
        return cls.model_validate(document or {})

    def full_video_url(self) -> Optional[str]:
        """Rendered full ad, looked up in the same order the editor writes it."""
        if self.selected_script and self.selected_script.generated_video_url:
            return self.selected_script.generated_video_url
        return self.generated_video_url or self.video_url or None

    def find_scene(self, scene_number: int) -> Optional[Scene]:
        for scene in self.scenes or []:
            if scene.scene_number == scene_number:
                return scene
        return None

    def scene_video_url(self, scene_number: int) -> Optional[str]:
        scene = self.find_scene(scene_number)
        if scene and scene.video_url:
            return scene.video_url
        return None

    def video_url_for(self, mode: "GenerationMode", scene_number: Optional[int] = None) -> Optional[str]:
        """URL that proves a generation in ``mode`` finished."""
        if mode == GenerationMode.FULL:
            return self.full_video_url()
        if mode == GenerationMode.SCENE and scene_number is not None:
            return self.scene_video_url(scene_number)
        return None

    def with_scene_updates(self, scene_number: int, updates: Dict[str, Any]) -> "Storyboard":
        """Copy with ``updates`` merged into the scene whose number matches."""
        if self.find_scene(scene_number) is None:
            raise KeyError(scene_number)
        document = self.to_document()
        document["scenes"] = [
            {**scene, **updates} if scene.get("sceneNumber") == scene_number else scene
            for scene in document.get("scenes", [])
        ]
        return Storyboard.from_document(document)


class ProgressStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationMode(str, Enum):
    FULL = "full"
    SCENE = "scene"


class GenerationProgress(Document):
    """
    Persisted marker for the campaign's in-flight media job.

    ``started_at`` and ``completed_at`` are epoch milliseconds. Batch runs also
    fill the snapshot fields (``current``, ``total``, ``completed``, ``failed``).
    """
    status: ProgressStatus = ProgressStatus.IDLE
    mode: Optional[GenerationMode] = None
    scene_number: Optional[int] = None
    started_at: Optional[int] = None
    completed_at: Optional[int] = None
    error: Optional[str] = None

    current: Optional[int] = None
    total: Optional[int] = None
    completed: Optional[List[int]] = None
    failed: Optional[List[int]] = None
    current_scene_name: Optional[str] = None

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> "GenerationProgress":
        return cls.model_validate(document or {})

    @property
    def is_generating(self) -> bool:
        return self.status == ProgressStatus.GENERATING


class SceneResult(Document):
    """Outcome of one scene inside a batch."""
    scene_number: int
    video_url: str = ""
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    status: Literal["completed", "failed"]
    error: Optional[str] = None


class ScriptSet(Document):
    scripts: List[Script]


class FullVideoResult(Document):
    video_url: str
    script: Script
    storyboard: Storyboard


class SceneVideoResult(Document):
    video_url: str
    scene_number: int
    storyboard: Storyboard


class StrategyResult(Document):
    strategy: TvStrategy
    brand_id: str


class SceneVisualResult(Document):
    visual_url: str
    scene_number: int
    storyboard: Storyboard


class SceneBatchResult(Document):
    success: bool = True
    scene_videos: List[SceneResult]
    completed_count: int
    failed_count: int
    storyboard: Storyboard


class CampaignSnapshot(Document):
    """What the poller and resumer read back from a campaign."""
    id: Optional[str] = None
    status: Optional[str] = None
    storyboard: Storyboard = Field(default_factory=Storyboard)
    generation_progress: GenerationProgress = Field(default_factory=GenerationProgress)
    updated_at: Optional[datetime] = None
