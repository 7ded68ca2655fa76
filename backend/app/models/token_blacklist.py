"""Revoked authentication tokens - survives process restarts."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class TokenBlacklist(Base):
    """A revoked bearer token identified by the SHA-256 digest of its raw string.

    The raw token is never stored. Entries are created on logout and purged
    once ``expires_at`` has passed, since the token is dead by then anyway.
    """

    __tablename__ = "token_blacklist"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
