"""Access logging for every request."""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("spectrum.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request.

    Query strings are left out: invite links carry their token there.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(f"{request.method} {request.url.path} -> 500 ({duration_ms:.1f} ms)")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f} ms)",
        )
        return response
