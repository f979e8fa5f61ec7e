"""Health check endpoints."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from doctor_registry.config import settings
from doctor_registry.database import Database, get_database

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Detailed health check response model."""

    database: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check(
    database: Database = Depends(get_database),
) -> DetailedHealthResponse:
    """
    Detailed health check with database status.

    Returns:
        Detailed health status including dependencies
    """
    db_healthy = await database.check_connection()

    return DetailedHealthResponse(
        status="healthy" if db_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
