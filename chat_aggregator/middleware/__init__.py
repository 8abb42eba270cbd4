"""Request authentication for the Chat Aggregator backend."""

from chat_aggregator.middleware.auth import (
    AuthMiddleware,
    JWTResolver,
    Principal,
    PrincipalResolver,
    SessionResolver,
    api_auth_middleware,
    require_auth,
    web_auth_middleware,
)

__all__ = [
    "AuthMiddleware",
    "JWTResolver",
    "Principal",
    "PrincipalResolver",
    "SessionResolver",
    "api_auth_middleware",
    "require_auth",
    "web_auth_middleware",
]
