"""Database-backed blacklist of revoked bearer tokens."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StorageError
from app.models.token_blacklist import TokenBlacklist
from app.services.tokens import token_digest

logger = logging.getLogger(__name__)


class TokenBlacklistStore:
    """Revoke tokens and look them up by digest.

    Storage failures are raised as StorageError. A broken store must never
    be read as "not revoked".
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def revoke(self, raw_token: str, expires_at: datetime) -> None:
        """Persist the token's digest until ``expires_at``. Idempotent."""
        digest = token_digest(raw_token)
        try:
            existing = await self.db.get(TokenBlacklist, digest)
            if existing is not None:
                logger.debug(f"Token {digest[:12]} already revoked")
                return
            try:
                async with self.db.begin_nested():
                    self.db.add(TokenBlacklist(token_hash=digest, expires_at=expires_at))
            except IntegrityError:
                # A concurrent logout stored the same digest first
                logger.debug(f"Token {digest[:12]} already revoked")
                return
        except SQLAlchemyError as e:
            logger.error(f"Failed to revoke token {digest[:12]}: {e}")
            raise StorageError("Could not revoke token") from e
        logger.info(f"Revoked token {digest[:12]} until {expires_at.isoformat()}")

    async def is_revoked(self, raw_token: str) -> bool:
        """Check whether the token has been revoked."""
        digest = token_digest(raw_token)
        try:
            result = await self.db.execute(
                select(TokenBlacklist.token_hash).where(TokenBlacklist.token_hash == digest)
            )
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error(f"Blacklist lookup failed: {e}")
            raise StorageError("Could not verify token status") from e

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove entries past their own expiry. Returns count removed."""
        now = now or datetime.now(tz=UTC)
        try:
            result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
                delete(TokenBlacklist).where(TokenBlacklist.expires_at < now)
            )
        except SQLAlchemyError as e:
            raise StorageError("Could not purge token blacklist") from e
        return result.rowcount
