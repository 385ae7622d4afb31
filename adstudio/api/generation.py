"""
Generation API routes.
Each endpoint runs one step of the concept -> script -> storyboard -> video
workflow for the authenticated user, or reads a brand or product page feeding it.
"""
from fastapi import APIRouter, Depends

from adstudio.api.deps import get_current_user, get_generation_service, get_ingest_service
from adstudio.models.user import User
from adstudio.schemas.campaign import CampaignResponse
from adstudio.schemas.common import ErrorResponse
from adstudio.schemas.generation import (
    FullVideoRequest,
    IdeasRequest,
    IdeasResponse,
    RegenerateRequest,
    SceneBatchRequest,
    SceneVideoRequest,
    SceneVisualRequest,
    ScriptsRequest,
    StoryboardRequest,
    StoryboardResponse,
    StrategyRequest,
    UpdateSceneRequest,
)
from adstudio.schemas.ingest import BrandIngestRequest, ProductScrapeRequest, ProductScrapeResponse
from adstudio.services.generation_service import GenerationService
from adstudio.services.ingest_service import IngestService

router = APIRouter(
    prefix="/api/functions",
    tags=["generation"],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "A generation is already running"},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }
)


@router.post("/generate-ideas", response_model=IdeasResponse)
async def generate_ideas(
    request: IdeasRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Generate four concepts, each saved as a campaign."""
    campaigns = await generation_service.generate_ideas(current_user, request)
    return IdeasResponse(campaigns=[CampaignResponse.model_validate(c) for c in campaigns])


@router.post("/generate-scripts")
async def generate_scripts(
    request: ScriptsRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Generate three script options with scenes."""
    script_set = await generation_service.generate_scripts(current_user, request)
    return script_set.to_document()


@router.post("/generate-storyboard", response_model=StoryboardResponse, response_model_by_alias=True)
async def generate_storyboard(
    request: StoryboardRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Generate script variants and scenes for a campaign."""
    storyboard = await generation_service.generate_storyboard(current_user, request)
    return StoryboardResponse(storyboard=storyboard.to_document(), campaign_id=request.campaign_id)


@router.post("/generate-video-scene")
async def generate_video_scene(
    request: SceneVideoRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Render one scene."""
    result = await generation_service.generate_scene_video(current_user, request)
    return result.to_document()


@router.post("/generate-scenes-batch")
async def generate_scenes_batch(
    request: SceneBatchRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Render every scene of a script, one after another."""
    result = await generation_service.generate_scenes_batch(current_user, request)
    return result.to_document()


@router.post("/generate-video-from-script")
async def generate_video_from_script(
    request: FullVideoRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Render the full ad from a script."""
    result = await generation_service.generate_full_video(current_user, request)
    return result.to_document()


@router.post("/update-scene")
async def update_scene(
    request: UpdateSceneRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Edit fields of one storyboard scene."""
    storyboard = await generation_service.update_scene(current_user, request)
    return {"success": True, "storyboard": storyboard.to_document()}


@router.post("/generate-tv-strategy")
async def generate_tv_strategy(
    request: StrategyRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Draft a TV ad strategy from a concept and the latest brand."""
    result = await generation_service.generate_strategy(current_user, request)
    return result.to_document()


@router.post("/regenerate-from-strategy", response_model=StoryboardResponse, response_model_by_alias=True)
async def regenerate_from_strategy(
    request: RegenerateRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Rewrite a campaign's storyboard against an edited strategy."""
    storyboard = await generation_service.regenerate_from_strategy(current_user, request)
    return StoryboardResponse(storyboard=storyboard.to_document(), campaign_id=request.campaign_id)


@router.post("/generate-scene-visual")
async def generate_scene_visual(
    request: SceneVisualRequest,
    current_user: User = Depends(get_current_user),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Render a still frame for one scene."""
    result = await generation_service.generate_scene_visual(current_user, request)
    return result.to_document()


@router.post("/brand-ingest")
async def brand_ingest(
    request: BrandIngestRequest,
    current_user: User = Depends(get_current_user),
    ingest_service: IngestService = Depends(get_ingest_service)
):
    """Colours and fonts from a landing page; defaults when it can't be read."""
    identity = await ingest_service.ingest_brand(request.landing_page_url)
    return identity.to_document()


@router.post("/scrape-product-url")
async def scrape_product_url(
    request: ProductScrapeRequest,
    current_user: User = Depends(get_current_user),
    ingest_service: IngestService = Depends(get_ingest_service)
):
    """Title, description, media and price from a product page."""
    product = await ingest_service.scrape_product(request.url)
    return ProductScrapeResponse(product=product).to_document()
