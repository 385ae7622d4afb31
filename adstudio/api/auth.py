"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.database import get_session
from adstudio.services.auth_service import AuthService
from adstudio.schemas.auth import RegisterRequest, TokenResponse, UserResponse
from adstudio.api.deps import get_current_user
from adstudio.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session)
):
    """Register a new user."""
    auth_service = AuthService(session)
    user = await auth_service.register(
        email=request.email,
        password=request.password,
        full_name=request.full_name
    )
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session)
):
    """Login and get an access token."""
    auth_service = AuthService(session)
    return await auth_service.login(email=form_data.username, password=form_data.password)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user."""
    return current_user
