"""FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends, Request

from osintel.sources.aggregation import AggregationEngine


def get_engine(request: Request) -> AggregationEngine:
    """Get the aggregation engine attached to the application.

    Args:
        request: Incoming request.

    Returns:
        The application's AggregationEngine.
    """
    return request.app.state.engine


EngineDep = Annotated[AggregationEngine, Depends(get_engine)]
