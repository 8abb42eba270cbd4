"""Revoked JWT identifiers - survives process restarts."""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from chat_aggregator.models.base import Base, UTCDateTime, utcnow


class RevokedToken(Base):
    """A logged-out or rotated JWT identified by its JTI claim.

    ``expires_at`` mirrors the token's own ``exp``; past that point the
    entry no longer matters and the sweeper prunes it.
    """

    __tablename__ = "revoked_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    revoked_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<RevokedToken jti={self.jti}>"
