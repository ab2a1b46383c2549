"""Health check endpoints."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from frontdesk.config import settings
from frontdesk.core.redis_client import check_redis_connection
from frontdesk.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    clinic_id: str


class DetailedHealthResponse(HealthResponse):
    """Health of the stores the scheduling core depends on."""

    database: str
    redis: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Report that the API process is up."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        clinic_id=settings.clinic_id,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check(response: Response) -> DetailedHealthResponse:
    """
    Check the appointment database and the queue counter store.

    Returns 503 when either is unreachable, since bookings and walk-in
    registration cannot proceed without both.
    """
    db_healthy = await check_database_connection()
    redis_healthy = await check_redis_connection()

    if not (db_healthy and redis_healthy):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return DetailedHealthResponse(
        status="healthy" if db_healthy and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        clinic_id=settings.clinic_id,
        database="healthy" if db_healthy else "unhealthy",
        redis="healthy" if redis_healthy else "unhealthy",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}
