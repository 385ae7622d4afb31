"""
Brand service - brand profiles and landing-page ingestion.
"""
import logging
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.core.exceptions import raise_not_found, raise_validation_error
from adstudio.models.activity import Actions
from adstudio.models.brand import Brand
from adstudio.repositories.activity_repo import ActivityLogRepository
from adstudio.repositories.user_repo import BrandRepository
from adstudio.schemas.brand import BrandCreate, BrandUpdate
from adstudio.services.ingest_service import IngestService

logger = logging.getLogger(__name__)


class BrandService:
    """Service for brand operations."""

    def __init__(self, session: AsyncSession, ingest_service: Optional[IngestService] = None):
        self.session = session
        self.brand_repo = BrandRepository(session)
        self.activity_repo = ActivityLogRepository(session)
        self.ingest_service = ingest_service

    async def create(self, user_id: uuid.UUID, brand_data: BrandCreate) -> Brand:
        """Create a brand profile."""
        data = brand_data.model_dump(mode="json")
        data["user_id"] = user_id
        brand = await self.brand_repo.create(data)

        await self.activity_repo.log(
            user_id=user_id,
            action=Actions.BRAND_CREATED,
            entity_type="brand",
            entity_id=brand.id,
            description=f"Brand '{brand.name}' created"
        )
        logger.info(f"Brand {brand.id} created for user {user_id}")
        return brand

    async def get(self, user_id: uuid.UUID, brand_id: uuid.UUID) -> Brand:
        """Get a brand by ID."""
        brand = await self.brand_repo.get(brand_id)
        if not brand or brand.user_id != user_id:
            raise_not_found("Brand", str(brand_id))
        return brand

    async def list(self, user_id: uuid.UUID, page: int = 1, limit: int = 20) -> dict:
        return await self.brand_repo.list_paginated(user_id=user_id, page=page, limit=limit)

    async def update(self, user_id: uuid.UUID, brand_id: uuid.UUID, brand_data: BrandUpdate) -> Brand:
        """Update a brand."""
        await self.get(user_id, brand_id)

        update_data = brand_data.model_dump(mode="json", exclude_unset=True)
        brand = await self.brand_repo.update(brand_id, update_data)

        await self.activity_repo.log(
            user_id=user_id,
            action=Actions.BRAND_UPDATED,
            entity_type="brand",
            entity_id=brand_id,
            description=f"Brand '{brand.name}' updated",
            meta_data={"fields": sorted(update_data)}
        )
        return brand

    async def ingest(self, user_id: uuid.UUID, brand_id: uuid.UUID) -> Brand:
        """Read colours and fonts off the brand's landing page and store them."""
        brand = await self.get(user_id, brand_id)
        if not brand.landing_page_url:
            raise_validation_error("Brand has no landing page URL", "landing_page_url")

        ingest_service = self.ingest_service or IngestService()
        identity = await ingest_service.ingest_brand(brand.landing_page_url)
        brand = await self.brand_repo.update(brand_id, {"colors": identity.colors, "fonts": identity.fonts})

        await self.activity_repo.log(
            user_id=user_id,
            action=Actions.BRAND_INGESTED,
            entity_type="brand",
            entity_id=brand_id,
            description=identity.message or f"Brand identity read from {brand.landing_page_url}"
        )
        return brand
