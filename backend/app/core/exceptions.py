"""Service error taxonomy and its HTTP rendering.

Services raise these; the handlers registered by ``register_exception_handlers``
turn them into ``{"message": ...}`` JSON bodies with the mapped status code.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    """Missing, malformed, expired, revoked or forged credentials.

    ``reason`` is kept for logging; clients only ever see ``message``.
    """

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class AuthorizationError(ServiceError):
    """Authenticated, but not entitled to the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    """Referenced resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """Resource already exists."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(ServiceError):
    """Persistence layer failed or is unreachable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _message_response(status_code: int, message: str, headers: dict[str, str] | None = None):
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _message_response(exc.status_code, exc.message, headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _message_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render body/query validation failures as a single 400 message."""
    missing: list[str] = []
    problems: list[str] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        if error.get("type") == "missing":
            missing.append(field)
        else:
            problems.append(f"{field}: {error.get('msg')}")

    if missing:
        message = f"The following fields are required: {', '.join(missing)}"
    else:
        message = "; ".join(problems) or "Invalid request"
    return _message_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return _message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
