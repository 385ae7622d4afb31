"""
API dependencies - shared across all routes.
"""
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.database import get_session, get_session_factory
from adstudio.config import settings
from adstudio.core.security import verify_access_token
from adstudio.core.exceptions import raise_unauthorized
from adstudio.models.user import User
from adstudio.repositories.user_repo import UserRepository
from adstudio.services.brand_service import BrandService
from adstudio.services.campaign_service import CampaignService
from adstudio.services.generation_service import GenerationService
from adstudio.services.ingest_service import IngestService
from adstudio.services.integrations.base import (
    ImageGenerator,
    MediaStorage,
    PageFetcher,
    TextGenerator,
    VideoGenerator,
)
from adstudio.services.integrations.providers import (
    get_image_generator,
    get_media_storage,
    get_page_fetcher,
    get_text_generator,
    get_video_generator,
)
from adstudio.services.poller import RepositorySnapshotSource


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_access_token(token)
    if not payload:
        raise_unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise_unauthorized("Could not validate credentials")

    user = await UserRepository(session).get(user_uuid)
    if not user:
        raise_unauthorized("User not found")

    if not user.is_active:
        raise_unauthorized("User account is deactivated")

    return user


def get_generation_service(
    session: AsyncSession = Depends(get_session),
    text_generator: TextGenerator = Depends(get_text_generator),
    video_generator: VideoGenerator = Depends(get_video_generator),
    storage: MediaStorage = Depends(get_media_storage),
    image_generator: ImageGenerator = Depends(get_image_generator)
) -> GenerationService:
    return GenerationService(session, text_generator, video_generator, storage, image_generator)


def get_ingest_service(page_fetcher: PageFetcher = Depends(get_page_fetcher)) -> IngestService:
    return IngestService(page_fetcher)


def get_brand_service(
    session: AsyncSession = Depends(get_session),
    ingest_service: IngestService = Depends(get_ingest_service)
) -> BrandService:
    return BrandService(session, ingest_service)


def get_campaign_service(
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory)
) -> CampaignService:
    return CampaignService(session, RepositorySnapshotSource(session_factory))
