"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from storedeploy import __version__
from storedeploy.api.deps import ServiceDep
from storedeploy.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime
    queue: dict[str, int]


@router.get("/health", response_model=HealthResponse)
async def health_check(service: ServiceDep) -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="healthy" if service.is_running else "degraded",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.utcnow(),
        queue=service.queue_summary(),
    )
