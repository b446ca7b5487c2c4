"""Search API endpoints.

Runs aggregations across every eligible source and exposes the most
recently published report.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request, status

from osintel.api.dependencies import EngineDep
from osintel.api.schemas.errors import ErrorCode
from osintel.api.schemas.search import SearchRequest
from osintel.core.logging import get_logger
from osintel.sources.types import AggregatedReport

logger = get_logger(__name__)

router = APIRouter(prefix="/searches", tags=["searches"])


@router.post(
    "",
    response_model=AggregatedReport,
    summary="Run a search",
    description="Query every enabled source for the target and return the consolidated report.",
)
async def run_search(body: SearchRequest, engine: EngineDep) -> AggregatedReport:
    """Run one aggregation.

    A search type of ``auto`` is resolved from the shape of the query.
    Source failures are reported inside the report, never as an HTTP error.
    """
    report = await engine.run(body.query, body.search_type)
    logger.info(
        "search_completed",
        search_type=report.search_type.value,
        total_sources=report.summary.total_sources,
        superseded=report.superseded,
    )
    return report


@router.get(
    "/latest",
    response_model=AggregatedReport,
    summary="Get latest report",
    description="Return the report of the most recent search that completed.",
)
async def get_latest_report(request: Request, engine: EngineDep) -> AggregatedReport:
    """Get the most recently published report.

    Raises:
        HTTPException: If no search has completed yet.
    """
    report = engine.latest_report
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": ErrorCode.NO_REPORT.value,
                "message": "No search has completed yet",
                "request_id": getattr(request.state, "request_id", "unknown"),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
    return report
