"""
User and Brand repositories.
"""
import uuid
from typing import Optional
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.models.user import User
from adstudio.models.brand import Brand
from adstudio.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return await self.get_by_field("email", email)

    async def touch_login(self, user: User) -> User:
        user.last_login_at = datetime.utcnow()
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user


class BrandRepository(BaseRepository[Brand]):
    """Repository for Brand operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Brand, session)

    async def get_latest(self, user_id: uuid.UUID) -> Optional[Brand]:
        """Most recently created brand of a user."""
        query = select(Brand).where(Brand.user_id == user_id).order_by(Brand.created_at.desc()).limit(1)
        result = await self.session.exec(query)
        return result.first()
