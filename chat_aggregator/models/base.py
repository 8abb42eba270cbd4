"""Shared column types and helpers for models."""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from chat_aggregator.core.database import Base


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC and always returned timezone-aware.

    SQLite has no timezone support and hands back naive values; normalising
    on the way in and out keeps ``expires_at`` comparisons identical on
    SQLite and PostgreSQL, both in SQL filters and in Python.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires timezone-aware datetimes")
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


__all__ = ["Base", "UTCDateTime", "utcnow"]
