"""
Account schemas: sign-up, bearer token and the caller's profile.
"""
import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@brewcraft.example",
                "password": "cold-brew-every-day",
                "full_name": "Sam Owner"
            }
        }


class TokenResponse(BaseModel):
    """Bearer token for the Authorization header; ``expires_in`` is in seconds."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    """The signed-in account."""
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True
