"""Intelligence source aggregation package for osintel.

This package queries independent OSINT sources concurrently and merges
their findings into one report, with caching, per-source rate limiting,
retry and partial-failure tolerance.

Usage:
    from osintel.sources import (
        AggregationEngine,
        HandlerRegistry,
        SearchType,
        load_catalog,
    )

    catalog = load_catalog("sources.json")

    registry = HandlerRegistry()
    registry.register("dns_intelligence", DnsHandler(client))

    engine = AggregationEngine(catalog=catalog, registry=registry)
    report = await engine.run("example.com", SearchType.DOMAIN)

Handler Implementation:
    from osintel.sources import BaseSourceHandler, SearchType

    class WhoisHandler(BaseSourceHandler):
        collection_method = "WHOIS"

        async def lookup(self, query, search_type):
            record = await fetch_whois(query)
            return {"found": record is not None, "record": record}
"""

from osintel.sources.aggregation import AggregationEngine, create_engine
from osintel.sources.cache import CacheEntry, CacheStats, ResultCache
from osintel.sources.catalog import (
    CatalogCategory,
    SourceCatalog,
    SourceNotFoundError,
    load_catalog,
)
from osintel.sources.detection import detect_search_type, resolve_search_type
from osintel.sources.executor import HandlerResponseError, SourceQueryExecutor
from osintel.sources.export import (
    ExportFormat,
    ValidationResult,
    export_intelligence,
    validate_intelligence,
)
from osintel.sources.protocol import BaseSourceHandler, SourceHandler
from osintel.sources.rate_limit import RateLimitStatus, SourceRateLimiter
from osintel.sources.registry import HandlerNotRegisteredError, HandlerRegistry
from osintel.sources.retry import RetryPolicy
from osintel.sources.single_flight import SingleFlight
from osintel.sources.types import (
    AggregatedReport,
    CatalogSettings,
    EnvelopeDataType,
    ReportSummary,
    ResultEnvelope,
    SearchType,
    Source,
    SourceQuery,
)

__all__ = [
    # Aggregation
    "AggregationEngine",
    "create_engine",
    # Catalog
    "CatalogCategory",
    "SourceCatalog",
    "SourceNotFoundError",
    "load_catalog",
    # Execution
    "SourceQueryExecutor",
    "HandlerResponseError",
    "SingleFlight",
    # Handlers
    "SourceHandler",
    "BaseSourceHandler",
    "HandlerRegistry",
    "HandlerNotRegisteredError",
    # Caching
    "CacheEntry",
    "CacheStats",
    "ResultCache",
    # Rate Limiting & Retry
    "RateLimitStatus",
    "SourceRateLimiter",
    "RetryPolicy",
    # Consumers
    "ExportFormat",
    "ValidationResult",
    "export_intelligence",
    "validate_intelligence",
    "detect_search_type",
    "resolve_search_type",
    # Types
    "AggregatedReport",
    "CatalogSettings",
    "EnvelopeDataType",
    "ReportSummary",
    "ResultEnvelope",
    "SearchType",
    "Source",
    "SourceQuery",
]
