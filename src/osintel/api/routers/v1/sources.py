"""Source catalog endpoints."""

from fastapi import APIRouter

from osintel.api.dependencies import EngineDep
from osintel.api.schemas.search import SourceCatalogResponse, SourceQueryRequest
from osintel.sources.catalog import SourceNotFoundError
from osintel.sources.types import ResultEnvelope

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get(
    "",
    response_model=SourceCatalogResponse,
    summary="List sources",
    description="Catalog statistics and the enabled sources of each category.",
)
async def list_sources(engine: EngineDep) -> SourceCatalogResponse:
    """List enabled sources grouped by category."""
    catalog = engine.catalog
    categories = {
        name: {
            **group,
            "sources": [catalog.get_source_info(source.id) for source in group["sources"]],
        }
        for name, group in catalog.sources_by_category().items()
    }
    return SourceCatalogResponse(
        version=catalog.version,
        statistics=catalog.get_statistics(),
        categories=categories,
    )


@router.get(
    "/{source_id}",
    summary="Get source",
    description="Descriptive information about one enabled source.",
)
async def get_source(source_id: str, engine: EngineDep) -> dict:
    """Get one source.

    Raises:
        SourceNotFoundError: If the source is unknown or disabled (mapped to 404).
    """
    info = engine.catalog.get_source_info(source_id)
    if info is None:
        raise SourceNotFoundError(source_id)
    return info


@router.post(
    "/{source_id}/queries",
    response_model=ResultEnvelope,
    summary="Query one source",
    description="Query a single source, going through its cache, rate limit and retry policy.",
)
async def query_source(
    source_id: str,
    body: SourceQueryRequest,
    engine: EngineDep,
) -> ResultEnvelope:
    """Query one source by id."""
    return await engine.executor.query_by_id(source_id, body.query, body.search_type)
