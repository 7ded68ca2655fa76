"""Spectrum Sync Database Configuration - Async SQLAlchemy."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from app.core.config import settings


def _engine_options() -> dict[str, Any]:
    """Pool options for the configured backend.

    SQLite (dev and tests) uses the driver's default pool; pool sizing is
    only meaningful for server databases.
    """
    options: dict[str, Any] = {
        "echo": settings.debug and settings.log_level == "DEBUG",
    }
    if settings.is_sqlite:
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,  # Verify connection before use
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            # Includes cancellation, so an abandoned request still rolls back
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_db_connection() -> bool:
    """Check if database is reachable."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (OSError, ConnectionError, SQLAlchemyError) as e:
        from app.core.logging import get_logger

        get_logger("database").warning(f"Database connection check failed: {e}")
        return False
