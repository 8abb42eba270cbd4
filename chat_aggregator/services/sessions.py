"""Opaque cookie sessions backed by the credential store."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from chat_aggregator.core import settings
from chat_aggregator.models import User
from chat_aggregator.models.base import utcnow
from chat_aggregator.services.store import CredentialStore

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 32


@dataclass(frozen=True)
class SessionHandle:
    session_id: str
    expires_at: datetime


class SessionManager:
    """Creates, validates and destroys server-side sessions."""

    def __init__(self, store: CredentialStore, ttl: timedelta = timedelta(hours=24)):
        self.store = store
        self.ttl = ttl

    async def create_session(self, user_id: int) -> SessionHandle:
        session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
        expires_at = utcnow() + self.ttl
        await self.store.create_session(user_id, session_id, expires_at)
        return SessionHandle(session_id=session_id, expires_at=expires_at)

    async def validate_session(self, session_id: str) -> User | None:
        """Return the owning user, or None if the session is unknown or expired.

        Expiry is decided here at read time; whether the sweeper has run
        yet makes no difference.
        """
        if not session_id:
            return None
        session = await self.store.get_session(session_id)
        if session is None or session.expires_at <= utcnow():
            return None
        return await self.store.get_user_by_id(session.user_id)

    async def destroy_session(self, session_id: str) -> None:
        """Delete a session. Unknown ids are ignored."""
        await self.store.delete_session(session_id)

    async def delete_expired_sessions(self) -> int:
        return await self.store.delete_expired_sessions()


def build_session_manager(store: CredentialStore) -> SessionManager:
    return SessionManager(store, ttl=timedelta(hours=settings.session_ttl_hours))
