"""Mobile API endpoints - stateless JWT authentication."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from chat_aggregator.api.deps import get_auth_service
from chat_aggregator.middleware.auth import Principal, api_auth_middleware
from chat_aggregator.schemas.auth import (
    LoginRequest,
    MessageResponse,
    MobileLoginResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from chat_aggregator.services.auth import AuthService
from chat_aggregator.services.errors import (
    INVALID_REFRESH_TOKEN,
    AuthError,
    InvalidTokenError,
    ValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mobile", tags=["mobile"])


def _expires_in(auth_service: AuthService) -> int:
    return int(auth_service.tokens.access_ttl.total_seconds())


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create an account."""
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


@router.post("/login", response_model=MobileLoginResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MobileLoginResponse:
    """Authenticate and get JWT tokens."""
    try:
        result = await auth_service.login_with_jwt(
            username=request.username,
            password=request.password,
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    logger.info(f"Mobile user logged in: {result.user.username}")
    return MobileLoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=_expires_in(auth_service),
        user=UserResponse.model_validate(result.user),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_tokens(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair.

    The presented refresh token is revoked once the new pair is issued.
    """
    pair = await auth_service.refresh_tokens(request.refresh_token)
    if pair is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_REFRESH_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=_expires_in(auth_service),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    principal: Principal = Depends(api_auth_middleware),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke the presented access token.

    The refresh token is not revoked here.
    """
    try:
        await auth_service.logout_jwt(principal.access_token or "")
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    logger.info(f"Mobile user logged out: {principal.user.username}")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_me(principal: Principal = Depends(api_auth_middleware)) -> UserResponse:
    """Get the current user's information."""
    return UserResponse.model_validate(principal.user)
