"""Credential sweeper - prunes expired sessions and revocation entries."""

import asyncio
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_aggregator.core.logging import get_logger
from chat_aggregator.services.store import CredentialStore

logger = get_logger("sweeper")

DEFAULT_INTERVAL_SECONDS = 3600  # 1 hour


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


class CredentialSweeper:
    """Background service that periodically deletes expired credentials.

    Request-time checks never depend on it: sessions and revoked tokens are
    filtered by expiry on every read. The sweep only keeps the tables small.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session_interval: float = DEFAULT_INTERVAL_SECONDS,
        token_interval: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self._session_factory = session_factory
        self._session_interval = session_interval
        self._token_interval = token_interval
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start both sweep loops."""
        if self._tasks:
            logger.warning("Credential sweeper is already running")
            return

        self._tasks = [
            asyncio.create_task(
                self._loop("sessions", self.sweep_sessions, self._session_interval),
                name="session-sweep",
            ),
            asyncio.create_task(
                self._loop("revoked tokens", self.sweep_tokens, self._token_interval),
                name="token-sweep",
            ),
        ]
        for task in self._tasks:
            task.add_done_callback(task_done_callback)
        logger.info(
            f"Credential sweeper started (sessions every {self._session_interval}s, "
            f"tokens every {self._token_interval}s)"
        )

    async def stop(self) -> None:
        """Cancel both sweep loops and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Credential sweeper stopped")

    async def _loop(
        self,
        label: str,
        sweep: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                removed = await sweep()
                if removed > 0:
                    logger.info(
                        f"Swept {removed} expired {label}",
                        extra={"sweep": label, "removed": removed},
                    )
            except Exception:
                logger.exception(f"Error sweeping expired {label}")

    async def sweep_sessions(self) -> int:
        async with self._session_factory() as db:
            return await CredentialStore(db).delete_expired_sessions()

    async def sweep_tokens(self) -> int:
        async with self._session_factory() as db:
            return await CredentialStore(db).cleanup_expired_tokens()

    async def run_once(self) -> tuple[int, int]:
        """Run both sweeps immediately.

        Returns:
            (sessions removed, revocation entries removed)
        """
        sessions_removed = await self.sweep_sessions()
        tokens_removed = await self.sweep_tokens()
        return sessions_removed, tokens_removed
