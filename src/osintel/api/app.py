"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from osintel import __version__
from osintel.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from osintel.api.routers import health_router, v1_router
from osintel.config.settings import Settings, get_settings
from osintel.core.logging import get_logger, setup_logging
from osintel.sources.aggregation import AggregationEngine, create_engine

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    engine: AggregationEngine | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This is the application factory that assembles all components:
    - Aggregation engine (and the HTTP client it owns)
    - Middleware
    - Routers
    - Lifespan management

    Args:
        settings: Optional settings override (useful for testing)
        engine: Optional engine override (useful for testing)

    Returns:
        Configured FastAPI application

    Example:
        # Production
        app = create_app()

        # Testing
        app = create_app(settings=Settings(environment="test"), engine=engine)

        # Run with uvicorn
        uvicorn osintel.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Osintel API",
        description="OSINT source aggregation API",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=_lifespan,
    )

    # Store settings on app state for access in dependencies
    app.state.settings = settings
    app.state.http_client = None

    if engine is None:
        client = httpx.AsyncClient(
            timeout=settings.request_timeout_seconds,
            headers={"User-Agent": settings.http_user_agent},
        )
        app.state.http_client = client
        engine = create_engine(settings, client=client)
    app.state.engine = engine

    _configure_middleware(app, settings)
    _configure_routers(app)

    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging on startup and closes the engine's HTTP client on
    shutdown.
    """
    setup_logging()
    logger.info(
        "api_starting",
        version=__version__,
        sources=len(app.state.engine.catalog.all_sources()),
    )

    yield

    logger.info("api_stopping")
    client: httpx.AsyncClient | None = app.state.http_client
    if client is not None:
        await client.aclose()


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack.

    Middleware order (outermost to innermost execution):
    1. RequestLoggingMiddleware - Assigns request IDs and logs all requests
    2. ErrorHandlingMiddleware - Converts exceptions to HTTP responses

    Note: Middleware is added in reverse order because Starlette
    processes them from last-added to first-added.
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)
    app.add_middleware(RequestLoggingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    """Configure API routers."""
    # Health check endpoints (no prefix - at root level)
    app.include_router(health_router)

    app.include_router(v1_router)
