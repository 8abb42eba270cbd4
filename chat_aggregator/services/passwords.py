"""Password hashing with Argon2id."""

import asyncio
import logging
import secrets
from functools import lru_cache

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from chat_aggregator.core import settings

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Slow, salted one-way hashing.

    Both operations run in a worker thread so a hash never stalls the event
    loop. ``verify`` returns False for wrong passwords and for malformed
    digests alike; it never raises on bad input.
    """

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        # Memory in KiB; defaults are 64 MiB, 3 iterations, 4 lanes
        self._ph = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )
        self._dummy_hash: str | None = None

    def hash_sync(self, password: str) -> str:
        return self._ph.hash(password)

    def verify_sync(self, password: str, password_hash: str) -> bool:
        try:
            return self._ph.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError):
            logger.debug("Password verification against a malformed hash")
            return False

    async def hash(self, password: str) -> str:
        """Hash a password using Argon2id."""
        return await asyncio.to_thread(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash using constant-time comparison."""
        return await asyncio.to_thread(self.verify_sync, password, password_hash)

    async def dummy_hash(self) -> str:
        """Hash of a random secret, used to equalise the cost of failed logins.

        Computed once, at startup or on first use, and reused afterwards.
        """
        if self._dummy_hash is None:
            self._dummy_hash = await self.hash(secrets.token_urlsafe(16))
        return self._dummy_hash


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Shared password hasher with cost parameters from settings."""
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )
