"""
Render a clip with the configured video provider and copy it into storage.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Union

from adstudio.schemas.storyboard import Scene, Script
from adstudio.services.integrations.base import ImageGenerator, VideoGenerator, MediaStorage
from adstudio.services.progress import now_ms
from adstudio.services.prompts import (
    full_video_prompt,
    parse_duration,
    scene_audio_prompt,
    scene_visual_prompt,
)

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SceneRenderer:

    def __init__(self, video_generator: VideoGenerator, storage: MediaStorage, image_generator: ImageGenerator = None):
        self.video_generator = video_generator
        self.storage = storage
        self.image_generator = image_generator

    async def render_scene(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        scene: Scene,
        duration: Union[str, int] = "5",
        aspect_ratio: str = "16:9",
        language: str = "en",
        camera_movement: str = "auto",
        creative_style: str = None,
        custom_prompt: str = None
    ) -> str:
        """Render one scene; returns the stored clip's public URL."""
        prompt = scene_visual_prompt(scene, camera_movement, creative_style, custom_prompt)
        audio_prompt = scene_audio_prompt(scene, language)
        logger.info(f"Rendering scene {scene.scene_number} of campaign {campaign_id} via {self.video_generator.name}")

        source_url = await self.video_generator.render_scene(
            prompt,
            audio_prompt,
            parse_duration(duration),
            aspect_ratio,
            scene_number=scene.scene_number
        )
        key = f"{user_id}/{campaign_id}/scene-{scene.scene_number}-{now_ms()}.mp4"
        return await self.storage.store_video(source_url, key)

    async def render_script(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        script: Script,
        duration: Union[str, int] = "5",
        aspect_ratio: str = "16:9"
    ) -> str:
        """Render a whole ad from its script; returns the stored video's public URL."""
        logger.info(f"Rendering full video for campaign {campaign_id} via {self.video_generator.name}")
        source_url = await self.video_generator.render_script(
            full_video_prompt(script),
            parse_duration(duration),
            aspect_ratio
        )
        key = f"{user_id}/{campaign_id}/script-video-{now_ms()}.mp4"
        return await self.storage.store_video(source_url, key)

    async def render_still(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        scene_number: int,
        prompt: str,
        aspect_ratio: str = "16:9"
    ) -> str:
        """Render a still frame for a scene; returns the stored image's public URL."""
        logger.info(f"Rendering still for scene {scene_number} of campaign {campaign_id} via {self.image_generator.name}")
        image = await self.image_generator.render_image(prompt, aspect_ratio)
        key = f"{user_id}/{campaign_id}/scene-{scene_number}-{now_ms()}.png"
        return await self.storage.store_image(image, key)
