"""Health and diagnostics endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from tasktimer.core.settings import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health probes."""

    status: str = "ok"
    version: str
    environment: str


@router.get(
    "/",
    summary="Readiness probe",
    response_model=HealthResponse,
)
def readiness_probe() -> HealthResponse:
    """Return a simple readiness response."""
    settings = get_settings()
    return HealthResponse(version=settings.version, environment=settings.environment)
