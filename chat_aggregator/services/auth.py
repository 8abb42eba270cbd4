"""Authentication service for session and JWT based login."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chat_aggregator.models import User
from chat_aggregator.services.errors import (
    AuthError,
    ConflictError,
    InvalidTokenError,
    ValidationError,
)
from chat_aggregator.services.passwords import PasswordHasher
from chat_aggregator.services.sessions import SessionManager
from chat_aggregator.services.store import CredentialStore
from chat_aggregator.services.tokens import JWTService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicUser:
    """A user as it may leave the core: no password hash."""

    id: int
    username: str
    email: str
    role: str
    created_at: datetime
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_model(cls, user: User) -> "PublicUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            display_name=user.display_name,
            bio=user.bio,
            avatar_url=user.avatar_url,
        )


@dataclass(frozen=True)
class SessionLogin:
    user: PublicUser
    session_id: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class JWTLogin:
    access_token: str
    refresh_token: str
    user: PublicUser


class AuthService:
    """Service for registration, login, logout and token refresh."""

    def __init__(
        self,
        store: CredentialStore,
        sessions: SessionManager,
        tokens: JWTService,
        hasher: PasswordHasher,
    ):
        self.store = store
        self.sessions = sessions
        self.tokens = tokens
        self.hasher = hasher

    async def register(self, username: str, email: str, password: str) -> PublicUser:
        """Create a user.

        Raises ValidationError for missing fields and, with one message for
        both cases, when the username or email is already taken.
        """
        if not username or not email or not password:
            raise ValidationError("username, email and password are required")

        password_hash = await self.hasher.hash(password)
        try:
            user = await self.store.create_user(username, email, password_hash)
        except ConflictError as e:
            logger.info("Registration rejected: username or email already taken")
            raise ValidationError() from e

        logger.info(f"Registered user {user.id}: {username}")
        return PublicUser.from_model(user)

    async def _authenticate(self, username: str, password: str) -> User:
        """Check credentials, raising AuthError for both unknown user and wrong password.

        An unknown user still pays for a full verify against a dummy hash so
        the two failures cost the same.
        """
        user = await self.store.get_user_by_username(username)

        if user is None:
            await self.hasher.verify(password, await self.hasher.dummy_hash())
            logger.info("Login failed: invalid credentials")
            raise AuthError()

        if not await self.hasher.verify(password, user.password_hash):
            logger.info("Login failed: invalid credentials")
            raise AuthError()

        return user

    async def login_with_session(self, username: str, password: str) -> SessionLogin:
        user = await self._authenticate(username, password)
        handle = await self.sessions.create_session(user.id)
        logger.info(
            f"Session login for user {user.id}",
            extra={"user_id": user.id, "auth_type": "session"},
        )
        return SessionLogin(
            user=PublicUser.from_model(user),
            session_id=handle.session_id,
            expires_at=handle.expires_at,
        )

    async def login_with_jwt(self, username: str, password: str) -> JWTLogin:
        user = await self._authenticate(username, password)
        logger.info(
            f"JWT login for user {user.id}",
            extra={"user_id": user.id, "auth_type": "jwt"},
        )
        return JWTLogin(
            access_token=self.tokens.issue_access_token(user),
            refresh_token=self.tokens.issue_refresh_token(user),
            user=PublicUser.from_model(user),
        )

    async def logout(self, session_id: str) -> None:
        """Destroy a session; a missing session is not an error."""
        user = await self.sessions.validate_session(session_id)
        await self.sessions.destroy_session(session_id)
        if user is not None:
            logger.info(
                f"Session logout for user {user.id}",
                extra={"user_id": user.id, "auth_type": "session"},
            )

    async def logout_jwt(self, access_token: str) -> None:
        """Revoke the access token.

        The refresh token issued alongside it is left alone and stays usable
        until it expires or is rotated.
        """
        await self.tokens.revoke(access_token)

    async def refresh_tokens(self, refresh_token: str) -> TokenPair | None:
        """Rotate a refresh token. Returns None on any failure.

        The new pair is minted before the old refresh token is revoked, so a
        crash in between leaves the old token usable rather than locking the
        client out.
        """
        try:
            claims = await self.tokens.verify_refresh_token(refresh_token)
        except InvalidTokenError:
            return None

        user = await self._user_from_claims(claims)
        if user is None:
            return None

        pair = TokenPair(
            access_token=self.tokens.issue_access_token(user),
            refresh_token=self.tokens.issue_refresh_token(user),
        )
        await self.tokens.revoke(refresh_token)
        return pair

    async def _user_from_claims(self, claims: dict[str, Any]) -> User | None:
        try:
            user_id = int(claims["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return await self.store.get_user_by_id(user_id)

    async def get_user(self, user_id: int) -> PublicUser | None:
        user = await self.store.get_user_by_id(user_id)
        return PublicUser.from_model(user) if user else None

    async def update_profile(
        self,
        user_id: int,
        *,
        display_name: str | None = None,
        bio: str | None = None,
        avatar_url: str | None = None,
    ) -> PublicUser:
        """Update the caller's own profile fields. Fields left as None are unchanged."""
        fields = {
            key: value
            for key, value in {
                "display_name": display_name,
                "bio": bio,
                "avatar_url": avatar_url,
            }.items()
            if value is not None
        }
        user = await self.store.update_user_profile(user_id, **fields)
        if user is None:
            raise AuthError("user not found")
        return PublicUser.from_model(user)
