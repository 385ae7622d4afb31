"""
Generation service - concepts, scripts, storyboards and rendered video.

Rendering steps set the campaign's progress marker to ``generating`` before
calling the video provider and always end it: ``completed`` in the same commit
that stores the video URL, or ``failed`` when anything goes wrong. The URL is
merged into a freshly read storyboard so edits made while the render was
running are kept.
"""
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.core.exceptions import (
    ConflictError,
    UpstreamError,
    raise_not_found,
    raise_validation_error,
)
from adstudio.models.activity import Actions
from adstudio.models.campaign import Campaign
from adstudio.models.user import User
from adstudio.repositories.activity_repo import ActivityLogRepository
from adstudio.repositories.campaign_repo import CampaignRepository
from adstudio.repositories.user_repo import BrandRepository
from adstudio.schemas.generation import (
    FullVideoRequest,
    IdeasRequest,
    RegenerateRequest,
    SceneBatchRequest,
    SceneVisualRequest,
    SceneVideoRequest,
    ScriptsRequest,
    StoryboardRequest,
    StrategyRequest,
    UpdateSceneRequest,
)
from adstudio.schemas.storyboard import (
    FullVideoResult,
    GenerationMode,
    GenerationProgress,
    SceneBatchResult,
    SceneVideoResult,
    SceneVisualResult,
    ScriptSet,
    Storyboard,
    StrategyResult,
    TvStrategy,
)
from adstudio.services import prompts
from adstudio.services.batch_service import SceneBatchGenerator
from adstudio.services.integrations.base import ImageGenerator, TextGenerator, VideoGenerator, MediaStorage
from adstudio.services.integrations.providers import (
    get_image_generator,
    get_media_storage,
    get_text_generator,
    get_video_generator,
)
from adstudio.services.progress import ProgressTracker, finish
from adstudio.services.rendering import SceneRenderer, now_iso

logger = logging.getLogger(__name__)


class GenerationService:
    """Service for the AI generation workflow."""

    def __init__(
        self,
        session: AsyncSession,
        text_generator: Optional[TextGenerator] = None,
        video_generator: Optional[VideoGenerator] = None,
        storage: Optional[MediaStorage] = None,
        image_generator: Optional[ImageGenerator] = None
    ):
        self.session = session
        self.campaign_repo = CampaignRepository(session)
        self.brand_repo = BrandRepository(session)
        self.activity_repo = ActivityLogRepository(session)
        self.tracker = ProgressTracker(self.campaign_repo)
        self.text_generator = text_generator or get_text_generator()
        self.video_generator = video_generator or get_video_generator()
        self.image_generator = image_generator or get_image_generator()
        self.renderer = SceneRenderer(self.video_generator, storage or get_media_storage(), self.image_generator)

    # ------------------------------------------------------------------
    # Text generation
    # ------------------------------------------------------------------

    async def generate_ideas(self, user: User, request: IdeasRequest) -> List[Campaign]:
        """Generate four concepts and store each as a campaign in ``concept`` status."""
        brand = await self.brand_repo.get_latest(user.id)
        if not brand:
            raise_not_found("Brand")

        system_prompt, user_prompt = prompts.concepts_prompts(
            request.prompt,
            request.ad_type,
            request.goal,
            request.creative_style,
            request.target_audience
        )
        result = await self.text_generator.generate_structured(
            system_prompt,
            user_prompt,
            "generate_concepts",
            "Generate ad campaign concepts",
            prompts.CONCEPTS_TOOL
        )
        concepts = result.get("concepts") or []
        if not concepts:
            raise UpstreamError(self.text_generator.name, "No concepts returned")

        rows = [
            {
                "user_id": user.id,
                "brand_id": brand.id,
                "title": concept.get("title") or "Untitled concept",
                "description": concept.get("description") or "",
                "ad_type": request.ad_type,
                "goal": request.goal,
                "prompt": request.prompt,
                "script": concept.get("script"),
                "cta_text": concept.get("ctaText"),
                "creative_style": request.creative_style,
                "target_audience": request.target_audience,
                "aspect_ratios": request.aspect_ratios,
                "predicted_ctr": concept.get("predictedCtr"),
                "predicted_engagement": concept.get("predictedEngagement"),
                "status": "concept",
            }
            for concept in concepts
        ]
        campaigns = await self.campaign_repo.create_many(rows)

        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.CAMPAIGN_CREATED,
            entity_type="campaign",
            description=f"{len(campaigns)} concepts generated",
            meta_data={"campaign_ids": [str(c.id) for c in campaigns]}
        )
        logger.info(f"Generated {len(campaigns)} concepts for user {user.id}")
        return campaigns

    async def generate_scripts(self, user: User, request: ScriptsRequest) -> ScriptSet:
        """Generate three script options; stored on the campaign when one is given."""
        campaign = None
        if request.campaign_id:
            campaign = await self._get_campaign(user.id, request.campaign_id)

        brand_info = ""
        if request.brand_id:
            brand = await self.brand_repo.get(request.brand_id)
            if brand and brand.user_id == user.id:
                brand_info = prompts.brand_summary(brand.name, brand.brand_voice, brand.colors)

        system_prompt, user_prompt = prompts.scripts_prompts(
            request.ad_description,
            request.duration,
            request.goal,
            request.target_audience,
            brand_info,
            request.references
        )
        result = await self.text_generator.generate_structured(
            system_prompt,
            user_prompt,
            "generate_scripts",
            "Generate 3 TV ad scripts with storyboards",
            prompts.SCRIPTS_TOOL
        )
        try:
            script_set = ScriptSet.model_validate(result)
        except PydanticValidationError as e:
            raise UpstreamError(self.text_generator.name, f"Invalid AI response format: {e.error_count()} errors")

        for index, script in enumerate(script_set.scripts):
            if not script.id:
                script.id = f"script-{index + 1}"

        if campaign:
            storyboard = Storyboard.from_document(campaign.storyboard)
            storyboard = storyboard.model_copy(update={"scripts": script_set.scripts})
            await self.campaign_repo.save_storyboard(campaign, storyboard)
            await self.activity_repo.log(
                user_id=user.id,
                action=Actions.SCRIPTS_GENERATED,
                entity_type="campaign",
                entity_id=campaign.id,
                description=f"{len(script_set.scripts)} scripts generated"
            )
        return script_set

    async def generate_storyboard(self, user: User, request: StoryboardRequest) -> Storyboard:
        """Generate script variants and scenes for a campaign."""
        campaign = await self._get_campaign(user.id, request.campaign_id)

        system_prompt, user_prompt = prompts.storyboard_prompts(
            campaign.title,
            campaign.prompt or campaign.description,
            campaign.script,
            campaign.cta_text,
            campaign.goal,
            campaign.creative_style,
            campaign.target_audience
        )
        result = await self.text_generator.generate_structured(
            system_prompt,
            user_prompt,
            "create_storyboard",
            "Create video storyboard",
            prompts.STORYBOARD_TOOL
        )

        try:
            storyboard = Storyboard.from_document({
                **(campaign.storyboard or {}),
                **result,
                "generatedAt": now_iso(),
            })
        except PydanticValidationError as e:
            raise UpstreamError(self.text_generator.name, f"Invalid AI response format: {e.error_count()} errors")
        if not storyboard.scenes:
            raise UpstreamError(self.text_generator.name, "Storyboard has no scenes")

        await self.campaign_repo.save_storyboard(campaign, storyboard, status="storyboard_created")
        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.STORYBOARD_GENERATED,
            entity_type="campaign",
            entity_id=campaign.id,
            description=f"Storyboard with {len(storyboard.scenes)} scenes generated"
        )
        return storyboard

    # ------------------------------------------------------------------
    # Strategy
    # ------------------------------------------------------------------

    async def generate_strategy(self, user: User, request: StrategyRequest) -> StrategyResult:
        """Draft a TV ad strategy for the user's latest brand."""
        brand = await self.brand_repo.get_latest(user.id)
        if not brand:
            raise_not_found("Brand")

        system_prompt, user_prompt = prompts.strategy_prompts(
            brand.name,
            brand.brand_voice,
            brand.colors,
            request.prompt,
            request.ad_type,
            request.product_url
        )
        result = await self.text_generator.generate_structured(
            system_prompt,
            user_prompt,
            "generate_tv_strategy",
            "Generate a complete TV advertising strategy",
            prompts.TV_STRATEGY_TOOL
        )
        try:
            strategy = TvStrategy.model_validate(result)
        except PydanticValidationError as e:
            raise UpstreamError(self.text_generator.name, f"Invalid AI response format: {e.error_count()} errors")

        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.STRATEGY_GENERATED,
            entity_type="brand",
            entity_id=brand.id,
            description=f"TV strategy drafted ({strategy.objective or 'no objective'})"
        )
        return StrategyResult(strategy=strategy, brand_id=str(brand.id))

    async def regenerate_from_strategy(self, user: User, request: RegenerateRequest) -> Storyboard:
        """Rewrite the campaign's storyboard against an edited strategy."""
        if request.strategy is None:
            raise_validation_error("Strategy is required", "strategy")

        campaign = await self._get_campaign(user.id, request.campaign_id)
        if GenerationProgress.from_document(campaign.generation_progress).is_generating:
            raise ConflictError("Cannot regenerate the storyboard while a generation is in progress")

        strategy = request.strategy
        system_prompt, user_prompt = prompts.regenerate_prompts(
            campaign.title,
            campaign.description,
            campaign.prompt,
            campaign.goal,
            campaign.creative_style,
            strategy
        )
        result = await self.text_generator.generate_structured(
            system_prompt,
            user_prompt,
            "generate_storyboard",
            "Generate a complete video ad storyboard with script variants and scenes aligned to strategy",
            prompts.REGENERATE_STORYBOARD_TOOL
        )

        try:
            storyboard = Storyboard.from_document({
                **(campaign.storyboard or {}),
                **result,
                "strategy": strategy.to_document(),
                "regeneratedAt": now_iso(),
            })
        except PydanticValidationError as e:
            raise UpstreamError(self.text_generator.name, f"Invalid AI response format: {e.error_count()} errors")
        if not storyboard.scenes:
            raise UpstreamError(self.text_generator.name, "Storyboard has no scenes")

        await self.campaign_repo.save_storyboard(campaign, storyboard, status="storyboard_regenerated")
        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.STORYBOARD_REGENERATED,
            entity_type="campaign",
            entity_id=campaign.id,
            description=f"Storyboard regenerated from strategy with {len(storyboard.scenes)} scenes"
        )
        return storyboard

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def generate_scene_video(self, user: User, request: SceneVideoRequest) -> SceneVideoResult:
        """Render one storyboard scene and store its clip URL on the scene."""
        campaign = await self._get_campaign_with_storyboard(user.id, request.campaign_id)
        scene_number = request.scene_number
        scene = Storyboard.from_document(campaign.storyboard).find_scene(scene_number)
        if scene is None:
            raise_not_found("Scene", str(scene_number))

        self.video_generator.ensure_configured()
        campaign_id = campaign.id
        progress = await self.tracker.start(campaign, GenerationMode.SCENE, scene_number)
        await self._log_generation(user.id, campaign_id, Actions.GENERATION_STARTED, f"Scene {scene_number} render started")

        try:
            video_url = await self.renderer.render_scene(
                user.id, campaign_id, scene,
                duration=request.duration,
                aspect_ratio=request.aspect_ratio,
                language=request.language,
                camera_movement=request.camera_movement,
                creative_style=campaign.creative_style,
                custom_prompt=request.custom_prompt
            )

            latest = await self._reload(campaign_id)
            try:
                storyboard = Storyboard.from_document(latest.storyboard).with_scene_updates(scene_number, {
                    "videoUrl": video_url,
                    "generatedAt": now_iso(),
                    "generationSettings": {
                        "duration": request.duration,
                        "aspectRatio": request.aspect_ratio,
                        "language": request.language,
                        "cameraMovement": request.camera_movement,
                    },
                })
            except KeyError:
                raise_not_found("Scene", str(scene_number))

            await self.campaign_repo.save_storyboard(latest, storyboard, generation_progress=finish(progress))
        except Exception as e:
            await self._fail(user.id, campaign_id, progress, e)
            raise

        await self._log_generation(user.id, campaign_id, Actions.GENERATION_COMPLETED, f"Scene {scene_number} rendered")
        return SceneVideoResult(video_url=video_url, scene_number=scene_number, storyboard=storyboard)

    async def generate_scenes_batch(self, user: User, request: SceneBatchRequest) -> SceneBatchResult:
        """Render every scene of a script in sequence."""
        if not request.campaign_id or not request.script or not request.script.scenes:
            raise_validation_error("Campaign ID and script with scenes required")

        user_id = user.id
        campaign = await self._get_campaign(user_id, request.campaign_id)
        campaign_id = campaign.id
        batch = SceneBatchGenerator(self.campaign_repo, self.renderer)
        try:
            result = await batch.run(
                user_id, campaign, request.script,
                duration=request.duration,
                aspect_ratio=request.aspect_ratio,
                language=request.language,
                camera_movement=request.camera_movement
            )
        except Exception as e:
            await self._log_generation(user_id, campaign_id, Actions.GENERATION_FAILED, f"Scene batch failed: {e}")
            raise

        await self._log_generation(
            user_id, campaign_id, Actions.GENERATION_COMPLETED,
            f"Scene batch done: {result.completed_count} completed, {result.failed_count} failed"
        )
        return result

    async def generate_full_video(self, user: User, request: FullVideoRequest) -> FullVideoResult:
        """Render the whole ad from a script and mark the campaign ``video_generated``."""
        if request.script is None:
            raise_validation_error("Script is required", "script")

        campaign = await self._get_campaign(user.id, request.campaign_id)
        self.video_generator.ensure_configured()
        campaign_id = campaign.id
        progress = await self.tracker.start(campaign, GenerationMode.FULL)
        await self._log_generation(user.id, campaign_id, Actions.GENERATION_STARTED, "Full video render started")

        try:
            video_url = await self.renderer.render_script(
                user.id, campaign_id, request.script,
                duration=request.duration,
                aspect_ratio=request.aspect_ratio
            )

            latest = await self._reload(campaign_id)
            selected = request.script.model_copy(update={"generated_video_url": video_url})
            storyboard = Storyboard.from_document(latest.storyboard).model_copy(update={
                "selected_script": selected,
                "generated_video_url": video_url,
                "generated_at": now_iso(),
            })
            await self.campaign_repo.save_storyboard(
                latest,
                storyboard,
                status="video_generated",
                generation_progress=finish(progress)
            )
        except Exception as e:
            await self._fail(user.id, campaign_id, progress, e)
            raise

        await self._log_generation(user.id, campaign_id, Actions.GENERATION_COMPLETED, "Full video rendered")
        return FullVideoResult(video_url=video_url, script=selected, storyboard=storyboard)

    async def generate_scene_visual(self, user: User, request: SceneVisualRequest) -> SceneVisualResult:
        """Render a still frame for one scene and store its URL on the scene."""
        campaign = await self._get_campaign_with_storyboard(user.id, request.campaign_id)
        scene_number = request.scene_number
        scene = Storyboard.from_document(campaign.storyboard).find_scene(scene_number)
        if scene is None:
            raise_not_found("Scene", str(scene_number))

        self.image_generator.ensure_configured()
        campaign_id = campaign.id
        prompt = prompts.scene_still_prompt(scene, campaign.ad_type, campaign.creative_style, request.custom_prompt)
        visual_url = await self.renderer.render_still(user.id, campaign_id, scene_number, prompt)

        latest = await self._reload(campaign_id)
        try:
            storyboard = Storyboard.from_document(latest.storyboard).with_scene_updates(scene_number, {
                "visualUrl": visual_url,
                "generatedAt": now_iso(),
            })
        except KeyError:
            raise_not_found("Scene", str(scene_number))

        await self.campaign_repo.save_storyboard(latest, storyboard)
        await self._log_generation(
            user.id, campaign_id, Actions.SCENE_VISUAL_GENERATED, f"Scene {scene_number} still rendered"
        )
        return SceneVisualResult(visual_url=visual_url, scene_number=scene_number, storyboard=storyboard)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    async def update_scene(self, user: User, request: UpdateSceneRequest) -> Storyboard:
        """Merge field edits into one scene, leaving the others untouched."""
        campaign = await self._get_campaign_with_storyboard(user.id, request.campaign_id)
        updates = {k: v for k, v in request.updates.items() if k not in ("sceneNumber", "scene_number")}

        try:
            storyboard = Storyboard.from_document(campaign.storyboard).with_scene_updates(
                request.scene_number, updates
            )
        except KeyError:
            raise_not_found("Scene", str(request.scene_number))
        except PydanticValidationError as e:
            raise_validation_error(str(e.errors()[0]["msg"]), "updates")

        await self.campaign_repo.save_storyboard(campaign, storyboard)
        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.SCENE_UPDATED,
            entity_type="campaign",
            entity_id=campaign.id,
            description=f"Scene {request.scene_number} updated",
            meta_data={"fields": sorted(updates)}
        )
        return storyboard

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_campaign(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> Campaign:
        campaign = await self.campaign_repo.get_owned(campaign_id, user_id)
        if not campaign:
            raise_not_found("Campaign", str(campaign_id))
        return campaign

    async def _get_campaign_with_storyboard(self, user_id: uuid.UUID, campaign_id: uuid.UUID) -> Campaign:
        campaign = await self.campaign_repo.get_owned(campaign_id, user_id)
        if not campaign or not campaign.storyboard:
            raise_not_found("Campaign or storyboard")
        return campaign

    async def _reload(self, campaign_id: uuid.UUID) -> Campaign:
        campaign = await self.campaign_repo.get_fresh(campaign_id)
        if not campaign:
            raise_not_found("Campaign", str(campaign_id))
        return campaign

    async def _fail(
        self,
        user_id: uuid.UUID,
        campaign_id: uuid.UUID,
        progress: GenerationProgress,
        error: Exception
    ) -> None:
        """Record a failed run; the caller re-raises ``error``."""
        await self.session.rollback()
        message = str(error) or error.__class__.__name__
        await self.tracker.fail(campaign_id, progress, message)
        await self._log_generation(user_id, campaign_id, Actions.GENERATION_FAILED, message)

    async def _log_generation(self, user_id: uuid.UUID, campaign_id: uuid.UUID, action: str, description: str):
        await self.activity_repo.log(
            user_id=user_id,
            action=action,
            entity_type="campaign",
            entity_id=campaign_id,
            description=description
        )
