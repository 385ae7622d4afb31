"""
Brands API routes.
"""
import uuid
from fastapi import APIRouter, Depends, Query

from adstudio.core.pagination import PaginatedResponse
from adstudio.services.brand_service import BrandService
from adstudio.schemas.brand import BrandCreate, BrandResponse, BrandUpdate
from adstudio.api.deps import get_current_user, get_brand_service
from adstudio.models.user import User

router = APIRouter(prefix="/api/brands", tags=["brands"])


@router.post("/", response_model=BrandResponse, status_code=201)
async def create_brand(
    brand_data: BrandCreate,
    current_user: User = Depends(get_current_user),
    brand_service: BrandService = Depends(get_brand_service)
):
    """Create a brand profile."""
    return await brand_service.create(current_user.id, brand_data)


@router.get("/", response_model=PaginatedResponse[BrandResponse])
async def list_brands(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    brand_service: BrandService = Depends(get_brand_service)
):
    """List the user's brands, newest first."""
    return await brand_service.list(current_user.id, page, limit)


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(
    brand_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    brand_service: BrandService = Depends(get_brand_service)
):
    """Get a brand by ID."""
    return await brand_service.get(current_user.id, brand_id)


@router.patch("/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: uuid.UUID,
    brand_data: BrandUpdate,
    current_user: User = Depends(get_current_user),
    brand_service: BrandService = Depends(get_brand_service)
):
    """Update a brand."""
    return await brand_service.update(current_user.id, brand_id, brand_data)


@router.post("/{brand_id}/ingest", response_model=BrandResponse)
async def ingest_brand(
    brand_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    brand_service: BrandService = Depends(get_brand_service)
):
    """Fill the brand's colours and fonts from its landing page."""
    return await brand_service.ingest(current_user.id, brand_id)
