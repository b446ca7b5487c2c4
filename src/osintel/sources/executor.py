"""Single-source query execution for osintel.

This module runs one source against one target and normalizes the outcome
into a ResultEnvelope. It integrates the result cache, single-flight
de-duplication, per-source rate limiting and the retry policy. Handler
failures never escape: they become envelopes with ``success=False``.
"""

import asyncio
import time
from collections.abc import Mapping
from typing import Any

from osintel.core.logging import get_logger, log_external_call
from osintel.utils.exceptions import SourceError

from .cache import ResultCache
from .catalog import SourceCatalog, SourceNotFoundError
from .rate_limit import SourceRateLimiter
from .registry import HandlerRegistry
from .retry import RetryPolicy
from .single_flight import SingleFlight
from .types import EnvelopeDataType, ResultEnvelope, SearchType, Source

logger = get_logger(__name__)

ERROR_COLLECTION_METHOD = "Error handling"


class HandlerResponseError(SourceError):
    """Raised when a handler returns a payload that breaks the contract."""

    def __init__(self, source_id: str, reason: str):
        super().__init__(f"Invalid response from {source_id}: {reason}")
        self.source_id = source_id
        self.reason = reason


class SourceQueryExecutor:
    """Executes source queries with caching, rate limiting and retry.

    Order of operations for one call:
    1. Cache hit: return the stored envelope (no rate limit, no handler).
    2. Join the in-flight operation for the same source and query, if any.
    3. Otherwise, per attempt: wait for the rate limiter, call the handler
       under the request timeout, validate the payload.
    4. Build the envelope, store it in the cache, return it.

    Usage:
        executor = SourceQueryExecutor(
            registry=registry,
            cache=ResultCache(),
            rate_limiter=SourceRateLimiter(),
            retry_policy=RetryPolicy(max_attempts=2),
        )
        envelope = await executor.query(source, "example.com", SearchType.DOMAIN)
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        cache: ResultCache | None = None,
        rate_limiter: SourceRateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        *,
        catalog: SourceCatalog | None = None,
        request_timeout_seconds: float = 10.0,
        cache_failures: bool = True,
    ):
        """Initialize the executor.

        Args:
            registry: Handler registry used for dispatch.
            cache: Result cache (a private one is created if None).
            rate_limiter: Rate limiter (a private one is created if None).
            retry_policy: Retry policy (single attempt if None).
            catalog: Catalog used to resolve ids in query_by_id.
            request_timeout_seconds: Timeout for one handler invocation.
            cache_failures: Whether failed envelopes are cached too.
        """
        self._registry = registry
        self._cache = cache if cache is not None else ResultCache()
        self._rate_limiter = rate_limiter if rate_limiter is not None else SourceRateLimiter()
        if retry_policy is None:
            retry_policy = RetryPolicy(max_attempts=1, backoff_base_ms=0)
        self._retry_policy = retry_policy
        self._catalog = catalog
        self._timeout = request_timeout_seconds
        self._cache_failures = cache_failures
        self._flights: SingleFlight[ResultEnvelope] = SingleFlight()
        self.handler_invocations = 0

    @property
    def cache(self) -> ResultCache:
        """Get the result cache."""
        return self._cache

    @property
    def rate_limiter(self) -> SourceRateLimiter:
        """Get the rate limiter."""
        return self._rate_limiter

    async def query(
        self,
        source: Source,
        query: str,
        search_type: SearchType | str,
    ) -> ResultEnvelope:
        """Query one source for one target.

        Args:
            source: Source to query.
            query: Target identifier, used verbatim as the cache key.
            search_type: Kind of identifier.

        Returns:
            ResultEnvelope; failures are reported with ``success=False``.
        """
        search_type = SearchType(search_type)

        cached = self._cache.get(source.id, query)
        if cached is not None:
            return cached

        return await self._flights.do(
            (source.id, query),
            lambda: self._execute(source, query, search_type),
        )

    async def query_by_id(
        self,
        source_id: str,
        query: str,
        search_type: SearchType | str,
    ) -> ResultEnvelope:
        """Query a source by id.

        Raises:
            SourceNotFoundError: If the id is not an enabled catalog source.
        """
        if self._catalog is None:
            raise SourceNotFoundError(source_id)
        source = self._catalog.get(source_id)
        return await self.query(source, query, search_type)

    async def _execute(self, source: Source, query: str, search_type: SearchType) -> ResultEnvelope:
        """Run the handler for a cache miss and store the envelope."""
        # A flight that completed after our cache miss may already have stored it
        cached = self._cache.get(source.id, query)
        if cached is not None:
            return cached

        start = time.perf_counter()
        try:
            handler = self._registry.resolve(source)

            async def attempt() -> dict[str, Any]:
                await self._rate_limiter.before_request(source.id, source.rate_limit_ms)
                self.handler_invocations += 1
                payload = await asyncio.wait_for(handler(query, search_type), timeout=self._timeout)
                return _validate_payload(source.id, payload)

            data = await self._retry_policy.execute(attempt)
            envelope = self._success_envelope(source, query, search_type, data)
        except Exception as e:
            envelope = self._failure_envelope(source, query, search_type, _describe(e))

        log_external_call(
            logger,
            service=source.id,
            operation=search_type.value,
            duration_ms=(time.perf_counter() - start) * 1000,
            success=envelope.success,
            found=envelope.found,
            error=envelope.error,
        )

        if envelope.success or self._cache_failures:
            self._cache.put(source.id, query, envelope)
        return envelope

    @staticmethod
    def _success_envelope(
        source: Source,
        query: str,
        search_type: SearchType,
        data: dict[str, Any],
    ) -> ResultEnvelope:
        return ResultEnvelope(
            source_id=source.id,
            source_name=source.name,
            query=query,
            search_type=search_type,
            confidence=source.confidence,
            success=True,
            data=data,
            data_type=EnvelopeDataType.REAL_INTELLIGENCE,
        )

    @staticmethod
    def _failure_envelope(
        source: Source,
        query: str,
        search_type: SearchType,
        message: str,
    ) -> ResultEnvelope:
        return ResultEnvelope(
            source_id=source.id,
            source_name=source.name,
            query=query,
            search_type=search_type,
            confidence=source.confidence,
            success=False,
            data={
                "found": False,
                "error": message,
                "query": query,
                "collection_method": ERROR_COLLECTION_METHOD,
            },
            data_type=EnvelopeDataType.ERROR,
        )


def _validate_payload(source_id: str, payload: Any) -> dict[str, Any]:
    """Check the handler contract and copy the payload."""
    if not isinstance(payload, Mapping):
        raise HandlerResponseError(source_id, f"expected a mapping, got {type(payload).__name__}")
    if not isinstance(payload.get("found"), bool):
        raise HandlerResponseError(source_id, "missing boolean 'found'")
    return dict(payload)


def _describe(exc: Exception) -> str:
    """Human-readable message for a failure."""
    if isinstance(exc, asyncio.TimeoutError):
        return "Request timed out"
    return str(exc) or type(exc).__name__
