"""Web API endpoints - cookie session authentication.

Every route in this family runs the web auth middleware first: a session
cookie (or, failing that, a bearer token) is resolved when present, and
anonymous requests pass through to routes that allow them.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from chat_aggregator.api.deps import get_auth_service, get_source_registry
from chat_aggregator.core import settings
from chat_aggregator.core.request_utils import get_client_ip, get_session_cookie
from chat_aggregator.middleware.auth import Principal, require_auth, web_auth_middleware
from chat_aggregator.schemas.auth import (
    LoginRequest,
    MeResponse,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SourceResponse,
    UserResponse,
    WebLoginResponse,
)
from chat_aggregator.services.auth import AuthService
from chat_aggregator.services.errors import AuthError, ValidationError
from chat_aggregator.services.sources import SourceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["web"],
    dependencies=[Depends(web_auth_middleware)],
)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create an account.

    Returns 400 with the same message whether the username or the email
    is already taken.
    """
    try:
        user = await auth_service.register(
            username=request.username,
            email=request.email,
            password=request.password,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e
    return UserResponse.model_validate(user)


@router.post("/login", response_model=WebLoginResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> WebLoginResponse:
    """Authenticate and start a cookie session."""
    try:
        result = await auth_service.login_with_session(
            username=request.username,
            password=request.password,
        )
    except AuthError as e:
        logger.info(f"Web login failed from {get_client_ip(http_request) or 'unknown'}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        ) from e

    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.session_id,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="strict",
    )
    logger.info(f"User logged in: {result.user.username}")
    return WebLoginResponse(user=UserResponse.model_validate(result.user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """End the current session, if there is one, and clear the cookie."""
    session_id = get_session_cookie(request, settings.session_cookie_name)
    if session_id:
        await auth_service.logout(session_id)
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="strict",
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(principal: Principal = Depends(require_auth)) -> MeResponse:
    """Get the current user's information."""
    return MeResponse(**asdict(principal.user), auth_type=principal.auth_type)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    request: ProfileUpdateRequest,
    principal: Principal = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Update the current user's profile fields."""
    try:
        user = await auth_service.update_profile(
            principal.user.id,
            display_name=request.display_name,
            bio=request.bio,
            avatar_url=str(request.avatar_url) if request.avatar_url else None,
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return UserResponse.model_validate(user)


@router.get("/sources", response_model=list[SourceResponse])
async def list_sources(
    _: Principal = Depends(require_auth),
    registry: SourceRegistry = Depends(get_source_registry),
) -> list[SourceResponse]:
    """List the chat sources registered in this process."""
    return [
        SourceResponse(key=entry.key, name=entry.source.name, platform=entry.source.platform)
        for entry in registry.list_sources()
    ]
