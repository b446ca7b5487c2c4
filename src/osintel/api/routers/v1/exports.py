"""Export endpoints for cached intelligence."""

from fastapi import APIRouter, Query
from fastapi.responses import Response

from osintel.api.dependencies import EngineDep
from osintel.sources.export import ExportFormat, export_intelligence

router = APIRouter(prefix="/exports", tags=["exports"])

MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


@router.get(
    "",
    summary="Export cached results",
    description="Serialize every live cached result as JSON or CSV.",
)
async def export_results(
    engine: EngineDep,
    format: ExportFormat = Query(default=ExportFormat.JSON),
) -> Response:
    """Export the engine's result cache."""
    content = export_intelligence(engine.cache, format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={
            "Content-Disposition": f'attachment; filename="osint-export.{format.value}"',
        },
    )
