"""Health check endpoints.

Accessible without authentication so load balancers can poll them.
"""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from app.core import check_db_connection, settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class HealthDetailResponse(HealthResponse):
    """Health check response including database connectivity."""

    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check: the process is up and serving requests."""
    return HealthResponse(status="healthy", version=settings.app_version)


@router.get(
    "/health/detail",
    response_model=HealthDetailResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Database is unavailable"},
    },
)
async def health_detail(response: Response) -> HealthDetailResponse:
    """Readiness check. Returns 503 if the database is unavailable."""
    db_healthy = await check_db_connection()
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthDetailResponse(
        status="healthy" if db_healthy else "unhealthy",
        version=settings.app_version,
        database="connected" if db_healthy else "disconnected",
    )
