"""Request authentication for the web and mobile route families.

Each family attaches one of these as a router-level dependency:

- ``AuthMiddleware`` (web): tries its resolvers in order and attaches the
  first principal found. Anonymous requests pass through.
- ``api_auth_middleware`` (mobile): bearer access token only, and required.

The resolved principal lives on ``request.state``; ``require_auth`` gates
individual routes on it regardless of how it was resolved.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from fastapi import Depends, HTTPException, Request, status

from chat_aggregator.api.deps import get_auth_service
from chat_aggregator.core import settings
from chat_aggregator.core.request_utils import extract_bearer_token, get_session_cookie
from chat_aggregator.services.auth import AuthService, PublicUser
from chat_aggregator.services.errors import INVALID_TOKEN, InvalidTokenError

logger = logging.getLogger(__name__)

AuthType = Literal["session", "jwt"]

UNAUTHORIZED = "Unauthorized"


@dataclass
class Principal:
    """The authenticated caller of a request."""

    user: PublicUser
    auth_type: AuthType
    session_id: str | None = None
    access_token: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


class PrincipalResolver(Protocol):
    """Turns whatever credential a request carries into a principal, or None."""

    auth_type: AuthType

    async def resolve(self, request: Request) -> Principal | None: ...


class SessionResolver:
    """Resolves the session cookie."""

    auth_type: AuthType = "session"

    def __init__(self, auth: AuthService, cookie_name: str = "session_id"):
        self.auth = auth
        self.cookie_name = cookie_name

    async def resolve(self, request: Request) -> Principal | None:
        session_id = get_session_cookie(request, self.cookie_name)
        if not session_id:
            return None
        user = await self.auth.sessions.validate_session(session_id)
        if user is None:
            return None
        return Principal(
            user=PublicUser.from_model(user),
            auth_type=self.auth_type,
            session_id=session_id,
        )


class JWTResolver:
    """Resolves an ``Authorization: Bearer`` access token."""

    auth_type: AuthType = "jwt"

    def __init__(self, auth: AuthService):
        self.auth = auth

    async def resolve(self, request: Request) -> Principal | None:
        token = extract_bearer_token(request)
        if not token:
            return None
        try:
            claims = await self.auth.tokens.verify_access_token(token)
            user_id = int(claims["sub"])
        except (InvalidTokenError, ValueError):
            return None
        user = await self.auth.get_user(user_id)
        if user is None:
            return None
        return Principal(
            user=user,
            auth_type=self.auth_type,
            access_token=token,
            claims=claims,
        )


def attach_principal(request: Request, principal: Principal | None) -> None:
    """Expose the principal, or its absence, on ``request.state``."""
    request.state.principal = principal
    request.state.user = principal.user if principal else None
    request.state.auth_type = principal.auth_type if principal else None
    request.state.session_id = principal.session_id if principal else None
    request.state.access_token = principal.access_token if principal else None


class AuthMiddleware:
    """Optional authentication for the web route family.

    By default the session cookie is tried first and a bearer token is the
    fallback. ``prefer_jwt=True`` reverses the order. A request with no
    credential, or only invalid ones, continues as anonymous.
    """

    def __init__(self, prefer_jwt: bool = False, allow_bearer_fallback: bool = True):
        self.prefer_jwt = prefer_jwt
        self.allow_bearer_fallback = allow_bearer_fallback

    def resolvers(self, auth: AuthService) -> tuple[PrincipalResolver, ...]:
        session = SessionResolver(auth, settings.session_cookie_name)
        bearer = JWTResolver(auth)
        if self.prefer_jwt:
            return (bearer, session)
        if self.allow_bearer_fallback:
            return (session, bearer)
        return (session,)

    async def __call__(
        self,
        request: Request,
        auth: AuthService = Depends(get_auth_service),
    ) -> Principal | None:
        principal = None
        for resolver in self.resolvers(auth):
            principal = await resolver.resolve(request)
            if principal is not None:
                logger.debug(
                    f"Authenticated {request.method} {request.url.path}",
                    extra={"user_id": principal.user.id, "auth_type": principal.auth_type},
                )
                break
        attach_principal(request, principal)
        return principal


async def api_auth_middleware(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Principal:
    """Mandatory bearer authentication for the mobile route family."""
    principal = await JWTResolver(auth).resolve(request)
    if principal is None:
        logger.debug(f"Rejected unauthenticated mobile request: {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )
    attach_principal(request, principal)
    return principal


async def require_auth(request: Request) -> Principal:
    """Dependency that rejects requests without a resolved principal."""
    principal: Principal | None = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


web_auth_middleware = AuthMiddleware(prefer_jwt=False)
