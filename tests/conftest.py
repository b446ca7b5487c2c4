"""Pytest fixtures for osintel tests."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from osintel.config.settings import AggregationConfig, Settings
from osintel.sources import (
    AggregationEngine,
    HandlerRegistry,
    ResultCache,
    RetryPolicy,
    SearchType,
    Source,
    SourceCatalog,
    SourceRateLimiter,
)

# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Time and handler doubles
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock with a matching sleep."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class StubHandler:
    """Handler double that records calls.

    Raises ``error`` on the first ``fail_times`` calls (every call when
    ``fail_times`` is None), then returns a copy of ``result``.
    """

    def __init__(
        self,
        result: Any = None,
        error: Exception | None = None,
        fail_times: int | None = None,
        delay: float = 0.0,
    ):
        self.result = {"found": True} if result is None else result
        self.error = error
        self.fail_times = fail_times
        self.delay = delay
        self.calls: list[tuple[str, SearchType]] = []

    async def __call__(self, query: str, search_type: SearchType) -> Any:
        self.calls.append((query, search_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None and (
            self.fail_times is None or len(self.calls) <= self.fail_times
        ):
            raise self.error
        return dict(self.result) if isinstance(self.result, dict) else self.result


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def make_handler() -> Callable[..., StubHandler]:
    """Factory for stub handlers."""
    return StubHandler


# =============================================================================
# Catalog fixtures
# =============================================================================


@pytest.fixture
def make_source() -> Callable[..., Source]:
    """Factory for sources with sensible defaults."""

    def _make(
        source_id: str,
        category: SearchType = SearchType.DOMAIN,
        **kwargs: Any,
    ) -> Source:
        return Source(
            id=source_id,
            name=kwargs.pop("name", source_id.replace("_", " ").title()),
            category=category,
            **kwargs,
        )

    return _make


@pytest.fixture
def catalog_document() -> dict[str, Any]:
    """Catalog document with three domain sources and no email sources."""
    return {
        "version": "test",
        "categories": {
            "domain": {
                "name": "Domain Intelligence",
                "sources": [
                    {"id": "alpha", "name": "Alpha", "confidence": 90, "rateLimitMs": 0},
                    {"id": "beta", "name": "Beta", "confidence": 80, "rateLimitMs": 0},
                    {"id": "gamma", "name": "Gamma", "confidence": 70, "rateLimitMs": 0},
                    {"id": "disabled_delta", "name": "Delta", "enabled": False},
                ],
            },
            "email": {"name": "Email Intelligence", "sources": []},
            "ip": {
                "sources": [{"id": "geo", "name": "Geo", "realIntelligence": True}],
            },
            "username": {
                "sources": [
                    {"id": "handles", "name": "Handles", "handler": "shared_handles"},
                ],
            },
        },
        "settings": {"maxConcurrentRequests": 2, "defaultTimeout": 5000, "retryAttempts": 3},
    }


@pytest.fixture
def catalog(catalog_document: dict[str, Any]) -> SourceCatalog:
    """Catalog built from the test document."""
    return SourceCatalog.from_document(catalog_document)


@pytest.fixture
def fast_config() -> AggregationConfig:
    """Aggregation config with no stagger and no backoff."""
    return AggregationConfig(stagger_ms=0, retry_backoff_base_ms=0, retry_attempts=2)


@pytest.fixture
def make_engine(
    catalog: SourceCatalog,
    fast_config: AggregationConfig,
    make_handler: Callable[..., StubHandler],
) -> Callable[..., AggregationEngine]:
    """Factory for engines over the test catalog.

    Handlers not given explicitly default to a stub that finds data.
    """

    def _make(
        handlers: dict[str, Any] | None = None,
        config: AggregationConfig | None = None,
        engine_catalog: SourceCatalog | None = None,
        **kwargs: Any,
    ) -> AggregationEngine:
        handlers = dict(handlers or {})
        for key in ("alpha", "beta", "gamma", "geo", "shared_handles"):
            handlers.setdefault(key, make_handler())

        registry = HandlerRegistry()
        for key, handler in handlers.items():
            registry.register(key, handler)

        return AggregationEngine(
            catalog=engine_catalog or catalog,
            registry=registry,
            config=config or fast_config,
            **kwargs,
        )

    return _make


@pytest.fixture
def fake_timing(fake_clock: FakeClock) -> dict[str, Any]:
    """Cache, limiter and retry policy all driven by the fake clock."""
    return {
        "cache": ResultCache(clock=fake_clock),
        "rate_limiter": SourceRateLimiter(clock=fake_clock, sleep=fake_clock.sleep),
        "retry_policy": RetryPolicy(max_attempts=2, backoff_base_ms=0, sleep=fake_clock.sleep),
    }


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create settings for API testing."""
    return Settings(
        environment="test",
        debug=True,
        log_level="DEBUG",
        stagger_ms=0,
        retry_backoff_base_ms=0,
    )


@pytest.fixture
def test_engine(make_engine: Callable[..., AggregationEngine]) -> AggregationEngine:
    """Engine over the test catalog with stub handlers."""
    return make_engine()


@pytest.fixture
def test_app(test_settings: Settings, test_engine: AggregationEngine) -> FastAPI:
    """Create a FastAPI test application around the stub engine."""
    from osintel.api.app import create_app

    return create_app(settings=test_settings, engine=test_engine)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing.

    Provides an httpx.AsyncClient configured to call the test application
    directly without network overhead.
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client
