"""Source Registry - the chat sources available to this process.

Scraping itself is out of scope here; anything implementing ``ChatSource``
can be registered.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Platform = Literal["chatgpt", "claude", "grok", "gemini", "other"]


@dataclass
class SourceChat:
    """A conversation as reported by a source, before it is stored."""

    platform_chat_id: str
    title: str
    platform: Platform
    url: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class SourceMessage:
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ChatSource(Protocol):
    """Capability interface for something that can list chats and messages."""

    name: str
    platform: Platform

    async def is_available(self) -> bool: ...

    async def get_chats(self) -> list[SourceChat]: ...

    async def get_messages(self, chat_id: str) -> list[SourceMessage]: ...

    async def close(self) -> None: ...


# Receives each chat with its messages and the account it came from
SyncSink = Callable[[SourceChat, list[SourceMessage], int | None], Awaitable[None]]


@dataclass
class RegisteredSource:
    key: str
    source: ChatSource
    account_id: int | None = None


@dataclass
class SyncResult:
    success: int = 0
    errors: list[str] = field(default_factory=list)


class SourceRegistry:
    """Maps a logical key to a registered chat source.

    Built once at startup and handed to routes; not a module global.
    """

    def __init__(self):
        self._sources: dict[str, RegisteredSource] = {}

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, key: object) -> bool:
        return key in self._sources

    def register(self, key: str, source: ChatSource, account_id: int | None = None) -> None:
        """Register a source under ``key``, replacing any previous one."""
        if key in self._sources:
            logger.info(f"Replacing chat source '{key}'")
        self._sources[key] = RegisteredSource(key=key, source=source, account_id=account_id)
        logger.info(f"Registered chat source '{key}' ({source.platform})")

    def unregister(self, key: str) -> bool:
        """Remove a source. Returns True if it was registered."""
        return self._sources.pop(key, None) is not None

    def get(self, key: str) -> ChatSource | None:
        entry = self._sources.get(key)
        return entry.source if entry else None

    def list_sources(self) -> list[RegisteredSource]:
        return list(self._sources.values())

    async def sync_all(self, sink: SyncSink) -> SyncResult:
        """Pull every chat from every source and hand it to ``sink``.

        A failing chat is recorded and skipped; a failing source is recorded
        and the next one is tried. Every source is closed afterwards.
        """
        result = SyncResult()

        for key, entry in list(self._sources.items()):
            source = entry.source
            try:
                if not await source.is_available():
                    result.errors.append(f"{key}: Source not available")
                    continue

                for chat in await source.get_chats():
                    try:
                        messages = await source.get_messages(chat.platform_chat_id)
                        await sink(chat, messages, entry.account_id)
                        result.success += 1
                    except Exception as e:
                        logger.warning(f"Sync failed for {key}/{chat.platform_chat_id}: {e}")
                        result.errors.append(f"{key}/{chat.platform_chat_id}: {e}")
            except Exception as e:
                logger.warning(f"Sync failed for source {key}: {e}")
                result.errors.append(f"{key}: {e}")
            finally:
                await source.close()

        logger.info(f"Source sync finished: {result.success} chats, {len(result.errors)} errors")
        return result

    async def close_all(self) -> None:
        """Close every registered source, logging failures."""
        for key, entry in self._sources.items():
            try:
                await entry.source.close()
            except Exception:
                logger.exception(f"Error closing chat source '{key}'")
