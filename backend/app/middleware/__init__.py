"""Middleware module for Spectrum Sync backend."""

from app.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
