"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter

from osintel import __version__
from osintel.api.dependencies import EngineDep
from osintel.api.schemas.health import HealthResponse, HealthStatus

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns liveness status and the number of enabled sources.",
)
async def health_check(engine: EngineDep) -> HealthResponse:
    """Basic liveness check endpoint.

    Reports ``degraded`` when the catalog failed to load and no source is
    available, since every search would then come back empty.
    """
    available = len(engine.catalog.all_sources())
    return HealthResponse(
        status=HealthStatus.HEALTHY if available else HealthStatus.DEGRADED,
        version=__version__,
        timestamp=datetime.now(UTC),
        available_sources=available,
    )
