"""Aggregation engine for osintel.

This module fans one query out to every eligible source concurrently,
collects every outcome without letting one failure abort the batch, and
builds a single consolidated report with summary statistics.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta

import httpx

from osintel.config.settings import AggregationConfig, Settings, get_settings
from osintel.core.logging import LogContext, get_logger

from .cache import ResultCache
from .catalog import SourceCatalog, load_catalog
from .detection import resolve_search_type
from .executor import ERROR_COLLECTION_METHOD, SourceQueryExecutor
from .handlers import build_default_registry
from .rate_limit import SourceRateLimiter
from .registry import HandlerRegistry
from .retry import RetryPolicy
from .types import (
    AggregatedReport,
    EnvelopeDataType,
    ReportSummary,
    ResultEnvelope,
    SearchType,
    Source,
    SourceQuery,
)

logger = get_logger(__name__)


class AggregationEngine:
    """Runs one query against all eligible sources and merges the results.

    The engine owns its cache, rate limiter and retry policy, so two engines
    never share state. Every run gets a generation number; a run that
    finishes after a newer run has started still returns its report to its
    own caller, flagged ``superseded``, but does not replace
    ``latest_report``. Superseded runs are not cancelled.

    Usage:
        engine = AggregationEngine(catalog=catalog, registry=registry)
        report = await engine.run("example.com", SearchType.DOMAIN)

        if report.no_sources_available:
            ...
        print(report.summary.successful_sources)
    """

    def __init__(
        self,
        catalog: SourceCatalog,
        registry: HandlerRegistry,
        config: AggregationConfig | None = None,
        *,
        cache: ResultCache | None = None,
        rate_limiter: SourceRateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the engine.

        Args:
            catalog: Source catalog used for eligibility.
            registry: Handler registry; validated against the catalog.
            config: Aggregation configuration.
            cache: Result cache override.
            rate_limiter: Rate limiter override.
            retry_policy: Retry policy override.
            sleep: Coroutine used for dispatch staggering.

        Raises:
            HandlerNotRegisteredError: If a catalog source has no handler.
        """
        registry.validate(catalog)

        self._catalog = catalog
        self._config = config or AggregationConfig()
        self._sleep = sleep
        self._executor = SourceQueryExecutor(
            registry=registry,
            cache=(
                cache
                if cache is not None
                else ResultCache(ttl=timedelta(seconds=self._config.cache_ttl_seconds))
            ),
            rate_limiter=rate_limiter if rate_limiter is not None else SourceRateLimiter(),
            retry_policy=(
                retry_policy
                if retry_policy is not None
                else RetryPolicy(
                    max_attempts=self._config.retry_attempts,
                    backoff_base_ms=self._config.retry_backoff_base_ms,
                )
            ),
            catalog=catalog,
            request_timeout_seconds=self._config.request_timeout_seconds,
        )
        self._semaphore = asyncio.Semaphore(self._config.max_concurrent_requests)
        self._generation = 0
        self._latest_report: AggregatedReport | None = None

    @property
    def catalog(self) -> SourceCatalog:
        """Get the source catalog."""
        return self._catalog

    @property
    def executor(self) -> SourceQueryExecutor:
        """Get the single-source executor."""
        return self._executor

    @property
    def cache(self) -> ResultCache:
        """Get the result cache."""
        return self._executor.cache

    @property
    def config(self) -> AggregationConfig:
        """Get the aggregation configuration."""
        return self._config

    @property
    def latest_report(self) -> AggregatedReport | None:
        """Get the report of the most recently started run that has completed."""
        return self._latest_report

    async def run(self, query: str, search_type: SearchType | str) -> AggregatedReport:
        """Query every eligible source and build the consolidated report.

        Args:
            query: Target identifier.
            search_type: Kind of identifier, or ``"auto"`` to detect it.

        Returns:
            AggregatedReport; never raises for source failures.

        Raises:
            ValueError: If the search type is invalid or the query is blank.
        """
        if not query or not query.strip():
            raise ValueError("Query must not be empty")

        request = SourceQuery(target=query, search_type=resolve_search_type(query, search_type))
        if self._config.normalize_queries:
            request = request.normalized()
        query, resolved_type = request.target, request.search_type

        self._generation += 1
        generation = self._generation

        with LogContext(search_query=query, search_type=resolved_type.value, generation=generation):
            sources = self._catalog.sources_for(resolved_type)

            if not sources:
                logger.warning("aggregation_no_sources")
                report = AggregatedReport(
                    query=query,
                    search_type=resolved_type,
                    generation=generation,
                    no_sources_available=True,
                )
                return self._publish(report)

            logger.info("aggregation_started", source_count=len(sources))

            outcomes = await asyncio.gather(
                *(
                    self._dispatch(index, source, query, resolved_type)
                    for index, source in enumerate(sources)
                ),
                return_exceptions=True,
            )

            envelopes = [
                outcome
                if isinstance(outcome, ResultEnvelope)
                else _unexpected_failure(source, query, resolved_type, outcome)
                for source, outcome in zip(sources, outcomes, strict=True)
            ]

            summary = ReportSummary.from_envelopes(envelopes)
            report = AggregatedReport(
                query=query,
                search_type=resolved_type,
                sources=envelopes,
                summary=summary,
                generation=generation,
            )

            logger.info(
                "aggregation_completed",
                total_sources=summary.total_sources,
                successful_sources=summary.successful_sources,
                failed_sources=summary.failed_sources,
                data_found=summary.data_found,
            )
            return self._publish(report)

    async def _dispatch(
        self,
        index: int,
        source: Source,
        query: str,
        search_type: SearchType,
    ) -> ResultEnvelope:
        """Stagger, then query one source under the concurrency bound."""
        delay = index * self._config.stagger_ms / 1000.0
        if delay > 0:
            await self._sleep(delay)

        async with self._semaphore:
            return await self._executor.query(source, query, search_type)

    def _publish(self, report: AggregatedReport) -> AggregatedReport:
        """Publish a finished report unless a newer run has started."""
        if report.generation != self._generation:
            logger.info(
                "aggregation_superseded",
                generation=report.generation,
                current_generation=self._generation,
            )
            return report.model_copy(update={"superseded": True})

        self._latest_report = report
        return report


def _unexpected_failure(
    source: Source,
    query: str,
    search_type: SearchType,
    exc: BaseException,
) -> ResultEnvelope:
    """Convert an exception that escaped a source task into an envelope."""
    logger.error(
        "aggregation_source_crashed",
        source_id=source.id,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return ResultEnvelope(
        source_id=source.id,
        source_name=source.name,
        query=query,
        search_type=search_type,
        confidence=source.confidence,
        success=False,
        data={
            "found": False,
            "error": str(exc) or type(exc).__name__,
            "query": query,
            "collection_method": ERROR_COLLECTION_METHOD,
        },
        data_type=EnvelopeDataType.ERROR,
    )


def create_engine(
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient,
    catalog: SourceCatalog | None = None,
) -> AggregationEngine:
    """Create an engine wired with the bundled handlers.

    Args:
        settings: Settings override (defaults to environment settings).
        client: Shared HTTP client for network handlers. The caller owns it
            and is responsible for closing it.
        catalog: Catalog override (defaults to ``settings.catalog_path``).

    The catalog's ``settings`` block overrides the environment for
    concurrency, timeout and retry attempts.

    Returns:
        Configured AggregationEngine.
    """
    settings = settings or get_settings()
    catalog = catalog if catalog is not None else load_catalog(settings.catalog_path)
    config = settings.aggregation_config().model_copy(
        update={
            "max_concurrent_requests": catalog.settings.max_concurrent_requests,
            "request_timeout_seconds": catalog.settings.default_timeout_ms / 1000.0,
            "retry_attempts": catalog.settings.retry_attempts,
        }
    )

    return AggregationEngine(
        catalog=catalog,
        registry=build_default_registry(client),
        config=config,
    )
