"""Pydantic schemas for authentication API."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, HttpUrl


class RegisterRequest(BaseModel):
    """Request for account registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Username (3-50 chars)",
    )
    email: EmailStr
    password: str = Field(
        ...,
        min_length=6,
        max_length=100,
        description="Password (6-100 chars)",
    )


class LoginRequest(BaseModel):
    """Request for login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Response with user information. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    created_at: datetime
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


class MeResponse(UserResponse):
    """Current user plus how the request was authenticated."""

    auth_type: Literal["session", "jwt"]


class WebLoginResponse(BaseModel):
    """Response after a cookie session login."""

    user: UserResponse


class TokenResponse(BaseModel):
    """Response with JWT tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class MobileLoginResponse(TokenResponse):
    """Response after a JWT login."""

    user: UserResponse


class RefreshRequest(BaseModel):
    """Request for token refresh."""

    refresh_token: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
    )


class ProfileUpdateRequest(BaseModel):
    """Partial update of the caller's own profile."""

    display_name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar_url: HttpUrl | None = None


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class SourceResponse(BaseModel):
    """A registered chat source."""

    key: str
    name: str
    platform: str
