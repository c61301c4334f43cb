"""Process and dependency probes, mounted outside the API prefix."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from app.config import settings
from app.core.database import check_db_connection
from app.core.redis import check_redis_connection

router = APIRouter(prefix="/health")


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, bool]


def _alive() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get("", response_model=HealthResponse, summary="Service status")
async def health() -> HealthResponse:
    return _alive()


@router.get("/live", response_model=HealthResponse, summary="Liveness probe")
async def liveness() -> HealthResponse:
    return _alive()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "A dependency is down"}},
)
async def readiness(response: Response) -> ReadinessResponse:
    """Ready only when both PostgreSQL and Redis answer."""
    checks = {
        "database": await check_db_connection(),
        "redis": await check_redis_connection(),
    }
    ready = all(checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="ok" if ready else "unavailable", checks=checks)
