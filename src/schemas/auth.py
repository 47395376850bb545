"""Authentication schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from src.models import UserRole


class LoginRequest(BaseModel):
    """Login request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: bool
    message: str
    role: str = Field(default="")


class UserResponse(BaseModel):
    """The signed-in user, as returned by /auth/me."""

    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool
    can_manage_finance: bool

    model_config = {"from_attributes": True}


class TokenPayload(BaseModel):
    """JWT token payload."""

    user_id: int
    role: str
    name: Optional[str] = None
