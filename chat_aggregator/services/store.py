"""Credential store - persistence for users, sessions and revoked tokens."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chat_aggregator.models import RevokedToken, Session, User
from chat_aggregator.models.base import utcnow
from chat_aggregator.services.errors import ConflictError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("display_name", "bio", "avatar_url")


class CredentialStore:
    """The narrow user/session/token contract the auth core depends on.

    Every write commits before returning, so a session or revocation is
    durable by the time the caller sees it. Reads that involve expiry
    filter on ``expires_at`` themselves rather than trusting the sweeper.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Users ---

    async def create_user(self, username: str, email: str, password_hash: str) -> User:
        """Insert a user. Raises ConflictError on duplicate username or email."""
        user = User(username=username, email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("User already exists") from e
        await self.db.refresh(user)
        return user

    async def get_user_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def update_user_profile(self, user_id: int, **fields: Any) -> User | None:
        """Update profile fields only; anything else in ``fields`` is ignored."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            if key in PROFILE_FIELDS:
                setattr(user, key, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    # --- Sessions ---

    async def create_session(self, user_id: int, session_id: str, expires_at: datetime) -> None:
        self.db.add(Session(id=session_id, user_id=user_id, expires_at=expires_at))
        await self.db.commit()

    async def get_session(self, session_id: str) -> Session | None:
        """Return the session only if it has not expired."""
        result = await self.db.execute(
            select(Session).where(Session.id == session_id, Session.expires_at > utcnow())
        )
        return result.scalar_one_or_none()

    async def delete_session(self, session_id: str) -> None:
        await self.db.execute(delete(Session).where(Session.id == session_id))
        await self.db.commit()

    async def delete_expired_sessions(self) -> int:
        """Remove sessions past their expiry. Returns count removed."""
        result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
            delete(Session).where(Session.expires_at <= utcnow())
        )
        await self.db.commit()
        return result.rowcount

    # --- Revoked tokens ---

    async def is_token_revoked(self, jti: str) -> bool:
        """Check if a JTI has a revocation entry that still matters."""
        result = await self.db.execute(
            select(RevokedToken.jti).where(
                RevokedToken.jti == jti,
                RevokedToken.expires_at > utcnow(),
            )
        )
        return result.scalar_one_or_none() is not None

    async def revoke_token(self, jti: str, expires_at: datetime) -> None:
        """Insert or replace the revocation entry for ``jti``."""
        await self.db.merge(RevokedToken(jti=jti, revoked_at=utcnow(), expires_at=expires_at))
        await self.db.commit()

    async def cleanup_expired_tokens(self) -> int:
        """Remove revocation entries past their expiry. Returns count removed."""
        result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
            delete(RevokedToken).where(RevokedToken.expires_at < utcnow())
        )
        await self.db.commit()
        return result.rowcount
