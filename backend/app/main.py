"""Spectrum Sync Backend - FastAPI Application Factory."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.core import async_session_maker, settings, setup_logging
from app.core.exceptions import register_exception_handlers
from app.core.logging import get_logger
from app.middleware import RequestLoggingMiddleware

# Import all models to ensure they're registered with Base for Alembic
from app.models import (  # noqa: F401
    Chat,
    ChatMember,
    Event,
    EventAttendee,
    TokenBlacklist,
    User,
)
from app.services.blacklist import TokenBlacklistStore

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def purge_token_blacklist() -> int:
    """Remove expired token blacklist entries in their own transaction."""
    async with async_session_maker() as db:
        removed = await TokenBlacklistStore(db).purge_expired()
        await db.commit()
    return removed


async def _token_blacklist_cleanup_loop() -> None:
    """Periodically remove expired entries from the token blacklist."""
    while True:
        await asyncio.sleep(settings.blacklist_cleanup_interval_seconds)
        try:
            removed = await purge_token_blacklist()
            if removed > 0:
                logger.info(f"Cleaned up {removed} expired token blacklist entries")
        except Exception:
            logger.exception("Error cleaning up token blacklist")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(level=settings.log_level, format_type=settings.log_format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    blacklist_task = asyncio.create_task(
        _token_blacklist_cleanup_loop(), name="token-blacklist-cleanup"
    )
    blacklist_task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    blacklist_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await blacklist_task


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Social scheduling backend: accounts, chats, events and invite links",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    register_exception_handlers(app)

    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on every response, including 401s.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
    )

    app.include_router(health_router)  # Health at root level
    app.include_router(auth_router)  # /api/auth
    app.include_router(api_router)  # /api/chats, /api/events

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
