"""
Authentication service - registration and login.
"""
import logging
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.config import settings
from adstudio.core.security import get_password_hash, verify_password, create_access_token
from adstudio.core.exceptions import raise_already_exists, raise_unauthorized, raise_validation_error
from adstudio.repositories.user_repo import UserRepository
from adstudio.repositories.activity_repo import ActivityLogRepository
from adstudio.models.user import User
from adstudio.models.activity import Actions

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.activity_repo = ActivityLogRepository(session)

    async def register(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None
    ) -> User:
        """Register a new user."""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise_validation_error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "password")

        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise_already_exists("User", "email", email)

        user = await self.user_repo.create({
            "email": email,
            "password_hash": get_password_hash(password),
            "full_name": full_name,
        })

        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            description=f"User {email} registered"
        )
        logger.info(f"Registered user {user.id}")
        return user

    async def login(self, email: str, password: str) -> dict:
        """Authenticate user and return an access token."""
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise_unauthorized("Incorrect email or password")

        if not user.is_active:
            raise_unauthorized("User account is deactivated")

        access_token = create_access_token({"sub": user.email, "user_id": str(user.id)})
        await self.user_repo.touch_login(user)

        await self.activity_repo.log(
            user_id=user.id,
            action=Actions.USER_LOGGED_IN,
            entity_type="user",
            entity_id=user.id
        )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }
