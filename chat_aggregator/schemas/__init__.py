# Chat Aggregator Pydantic Schemas
from chat_aggregator.schemas.auth import (
    LoginRequest,
    MeResponse,
    MessageResponse,
    MobileLoginResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    SourceResponse,
    TokenResponse,
    UserResponse,
    WebLoginResponse,
)

__all__ = [
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "MobileLoginResponse",
    "ProfileUpdateRequest",
    "RefreshRequest",
    "RegisterRequest",
    "SourceResponse",
    "TokenResponse",
    "UserResponse",
    "WebLoginResponse",
]
