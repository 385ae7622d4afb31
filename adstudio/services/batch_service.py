"""
Scene-by-scene batch rendering.

Scenes render one after another. A failing scene is recorded and the batch moves
on, except for credential problems, which would fail every remaining scene too.
The progress marker carries a live snapshot (current scene, completed and
failed scene numbers) while the batch runs.
"""
import asyncio
import logging
import uuid
from typing import Awaitable, Callable, List, Union

from adstudio.config import settings
from adstudio.core.exceptions import ConfigurationError, UnauthorizedError, raise_not_found, raise_validation_error
from adstudio.models.campaign import Campaign
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.schemas.storyboard import (
    GenerationMode,
    SceneBatchResult,
    SceneResult,
    Script,
    Storyboard,
)
from adstudio.services.progress import ProgressTracker, finish
from adstudio.services.rendering import SceneRenderer, now_iso

logger = logging.getLogger(__name__)

# Errors that would repeat for every scene
ABORTING_ERRORS = (UnauthorizedError, ConfigurationError)


def merge_scene_results(storyboard: Storyboard, script: Script, results: List[SceneResult]) -> Storyboard:
    """Write completed clip URLs into the storyboard scenes, matched by scene number."""
    completed = {r.scene_number: r for r in results if r.status == "completed"}
    generated_at = now_iso()

    base = storyboard.scenes or script.scenes
    scenes = []
    for scene in base:
        result = completed.get(scene.scene_number)
        if result:
            scene = scene.model_copy(update={
                "video_url": result.video_url,
                "thumbnail_url": result.thumbnail_url,
                "generated_at": generated_at,
            })
        scenes.append(scene)

    return storyboard.model_copy(update={
        "scenes": scenes,
        "generation_mode": "scene-by-scene",
        "last_batch_generation": generated_at,
    })


class SceneBatchGenerator:

    def __init__(
        self,
        campaign_repo: CampaignRepository,
        renderer: SceneRenderer,
        pause: float = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.campaign_repo = campaign_repo
        self.tracker = ProgressTracker(campaign_repo)
        self.renderer = renderer
        self.pause = settings.BATCH_SCENE_PAUSE_SECONDS if pause is None else pause
        self._sleep = sleep

    async def run(
        self,
        user_id: uuid.UUID,
        campaign: Campaign,
        script: Script,
        duration: Union[str, int] = "5",
        aspect_ratio: str = "16:9",
        language: str = "en",
        camera_movement: str = "auto"
    ) -> SceneBatchResult:
        scenes = script.scenes
        if not scenes:
            raise_validation_error("Campaign ID and script with scenes required")

        self.renderer.video_generator.ensure_configured()
        campaign_id = campaign.id
        creative_style = campaign.creative_style
        total = len(scenes)
        logger.info(f"Campaign {campaign_id}: batch rendering {total} scenes")

        progress = await self.tracker.start(
            campaign, GenerationMode.SCENE, None,
            current=0, total=total, completed=[], failed=[]
        )
        results: List[SceneResult] = []

        try:
            for index, scene in enumerate(scenes):
                progress = await self.tracker.update(
                    campaign_id, progress,
                    current=index + 1,
                    current_scene_name=f"Scene {scene.scene_number}",
                    completed=[r.scene_number for r in results if r.status == "completed"],
                    failed=[r.scene_number for r in results if r.status == "failed"],
                )

                try:
                    url = await self.renderer.render_scene(
                        user_id, campaign_id, scene,
                        duration=duration,
                        aspect_ratio=aspect_ratio,
                        language=language,
                        camera_movement=camera_movement,
                        creative_style=creative_style
                    )
                    results.append(SceneResult(
                        scene_number=scene.scene_number,
                        video_url=url,
                        duration=scene.duration,
                        status="completed"
                    ))
                except ABORTING_ERRORS:
                    raise
                except Exception as e:
                    logger.error(f"Campaign {campaign_id}: scene {scene.scene_number} failed: {e}")
                    results.append(SceneResult(
                        scene_number=scene.scene_number,
                        duration=scene.duration,
                        status="failed",
                        error=str(e)
                    ))

                if index < total - 1 and self.pause:
                    await self._sleep(self.pause)

            completed = [r.scene_number for r in results if r.status == "completed"]
            failed = [r.scene_number for r in results if r.status == "failed"]

            latest = await self.campaign_repo.get_fresh(campaign_id)
            if latest is None:
                raise_not_found("Campaign", str(campaign_id))
            storyboard = merge_scene_results(Storyboard.from_document(latest.storyboard), script, results)
            await self.campaign_repo.save_storyboard(
                latest,
                storyboard,
                generation_progress=finish(progress, current=total, completed=completed, failed=failed),
                title=script.title or latest.title or "Untitled Campaign"
            )
        except Exception as e:
            await self.campaign_repo.session.rollback()
            await self.tracker.fail(campaign_id, progress, str(e) or e.__class__.__name__)
            raise

        logger.info(f"Campaign {campaign_id}: batch done, {len(completed)} completed, {len(failed)} failed")
        return SceneBatchResult(
            scene_videos=results,
            completed_count=len(completed),
            failed_count=len(failed),
            storyboard=storyboard
        )
