"""Unit tests for single-source query execution.

Covers caching, single-flight de-duplication, retry, payload validation
and conversion of every failure into an envelope.
"""

import asyncio
from datetime import timedelta

import pytest

from osintel.sources import (
    EnvelopeDataType,
    HandlerRegistry,
    ResultCache,
    RetryPolicy,
    SearchType,
    SourceCatalog,
    SourceNotFoundError,
    SourceQueryExecutor,
    SourceRateLimiter,
)
from osintel.sources.executor import ERROR_COLLECTION_METHOD


@pytest.fixture
def build_executor(fake_clock):
    """Factory for executors over a single handler key."""

    def _build(handlers: dict, **kwargs) -> SourceQueryExecutor:
        registry = HandlerRegistry()
        for key, handler in handlers.items():
            registry.register(key, handler)
        kwargs.setdefault("cache", ResultCache(ttl=timedelta(seconds=60), clock=fake_clock))
        kwargs.setdefault(
            "rate_limiter", SourceRateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
        )
        kwargs.setdefault(
            "retry_policy", RetryPolicy(max_attempts=2, backoff_base_ms=0, sleep=fake_clock.sleep)
        )
        return SourceQueryExecutor(registry=registry, **kwargs)

    return _build


@pytest.mark.asyncio
class TestQuerySuccess:
    """Tests for successful source queries."""

    async def test_success_envelope(self, build_executor, make_source, make_handler):
        """Test a successful handler result is wrapped in an envelope."""
        handler = make_handler(result={"found": True, "records": ["1.2.3.4"]})
        executor = build_executor({"alpha": handler})
        source = make_source("alpha", confidence=90)

        envelope = await executor.query(source, "example.com", SearchType.DOMAIN)

        assert envelope.success is True
        assert envelope.found is True
        assert envelope.source_id == "alpha"
        assert envelope.source_name == "Alpha"
        assert envelope.confidence == 90
        assert envelope.query == "example.com"
        assert envelope.data_type == EnvelopeDataType.REAL_INTELLIGENCE
        assert envelope.data["records"] == ["1.2.3.4"]
        assert handler.calls == [("example.com", SearchType.DOMAIN)]

    async def test_not_found_is_still_success(self, build_executor, make_source, make_handler):
        """Test found=False from a working handler is a successful query."""
        executor = build_executor({"alpha": make_handler(result={"found": False})})

        envelope = await executor.query(make_source("alpha"), "example.com", "domain")

        assert envelope.success is True
        assert envelope.found is False

    async def test_search_type_string_is_accepted(self, build_executor, make_source, make_handler):
        """Test search type may be given as its string value."""
        handler = make_handler()
        executor = build_executor({"alpha": handler})

        await executor.query(make_source("alpha"), "example.com", "domain")

        assert handler.calls[0][1] is SearchType.DOMAIN


@pytest.mark.asyncio
class TestQueryCaching:
    """Tests for cache integration."""

    async def test_second_query_served_from_cache(
        self, build_executor, make_source, make_handler
    ):
        """Test the handler runs once within the TTL and results are identical."""
        handler = make_handler()
        executor = build_executor({"alpha": handler})
        source = make_source("alpha")

        first = await executor.query(source, "example.com", SearchType.DOMAIN)
        second = await executor.query(source, "example.com", SearchType.DOMAIN)

        assert first == second
        assert len(handler.calls) == 1
        assert executor.handler_invocations == 1

    async def test_cache_hit_skips_rate_limiter(
        self, build_executor, make_source, make_handler, fake_clock
    ):
        """Test a cached result is returned without waiting on the limiter."""
        executor = build_executor({"alpha": make_handler()})
        source = make_source("alpha", rate_limit_ms=5000)

        await executor.query(source, "example.com", SearchType.DOMAIN)
        await executor.query(source, "example.com", SearchType.DOMAIN)

        assert fake_clock.sleeps == []
        assert executor.rate_limiter.get_status("alpha").requests_granted == 1

    async def test_expired_entry_reinvokes_handler(
        self, build_executor, make_source, make_handler, fake_clock
    ):
        """Test a query after the TTL reaches the handler again."""
        handler = make_handler()
        executor = build_executor({"alpha": handler})
        source = make_source("alpha")

        await executor.query(source, "example.com", SearchType.DOMAIN)
        fake_clock.advance(61)
        await executor.query(source, "example.com", SearchType.DOMAIN)

        assert len(handler.calls) == 2

    async def test_queries_differing_in_case_are_distinct(
        self, build_executor, make_source, make_handler
    ):
        """Test the cache key uses the query verbatim."""
        handler = make_handler()
        executor = build_executor({"alpha": handler})
        source = make_source("alpha")

        await executor.query(source, "example.com", SearchType.DOMAIN)
        await executor.query(source, "EXAMPLE.com", SearchType.DOMAIN)

        assert [call[0] for call in handler.calls] == ["example.com", "EXAMPLE.com"]

    async def test_failures_are_cached(self, build_executor, make_source, make_handler):
        """Test a failed envelope is cached like a successful one."""
        handler = make_handler(error=ConnectionError("down"))
        executor = build_executor({"alpha": handler})
        source = make_source("alpha")

        await executor.query(source, "example.com", SearchType.DOMAIN)
        envelope = await executor.query(source, "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert len(handler.calls) == 2  # two attempts on the first query only

    async def test_failures_not_cached_when_disabled(
        self, build_executor, make_source, make_handler
    ):
        """Test cache_failures=False leaves failures uncached."""
        handler = make_handler(error=ConnectionError("down"))
        executor = build_executor({"alpha": handler}, cache_failures=False)
        source = make_source("alpha")

        await executor.query(source, "example.com", SearchType.DOMAIN)
        await executor.query(source, "example.com", SearchType.DOMAIN)

        assert len(handler.calls) == 4

    async def test_concurrent_queries_share_one_invocation(
        self, build_executor, make_source, make_handler
    ):
        """Test simultaneous misses for one key invoke the handler once."""
        handler = make_handler(delay=0.01)
        executor = build_executor({"alpha": handler})
        source = make_source("alpha")

        results = await asyncio.gather(
            *(executor.query(source, "example.com", SearchType.DOMAIN) for _ in range(5))
        )

        assert len(handler.calls) == 1
        assert all(r == results[0] for r in results)


@pytest.mark.asyncio
class TestQueryFailures:
    """Tests for failure handling."""

    async def test_handler_error_becomes_failed_envelope(
        self, build_executor, make_source, make_handler
    ):
        """Test exceptions never escape query."""
        executor = build_executor({"alpha": make_handler(error=ConnectionError("refused"))})

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert envelope.found is False
        assert envelope.error == "refused"
        assert envelope.data_type == EnvelopeDataType.ERROR
        assert envelope.data["collection_method"] == ERROR_COLLECTION_METHOD
        assert envelope.data["query"] == "example.com"

    async def test_transient_failure_is_retried(self, build_executor, make_source, make_handler):
        """Test a failure followed by success yields a successful envelope."""
        handler = make_handler(error=ConnectionError("blip"), fail_times=1)
        executor = build_executor({"alpha": handler})

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is True
        assert len(handler.calls) == 2

    async def test_retry_attempts_and_backoff(
        self, build_executor, make_source, make_handler, fake_clock
    ):
        """Test an always-failing handler is tried max_attempts times with linear backoff."""
        handler = make_handler(error=ConnectionError("down"))
        policy = RetryPolicy(max_attempts=3, backoff_base_ms=100, sleep=fake_clock.sleep)
        executor = build_executor({"alpha": handler}, retry_policy=policy)
        start = fake_clock()

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert len(handler.calls) == 3
        assert fake_clock() - start >= 0.1 * (1 + 2) - 1e-9

    async def test_rate_limit_applies_to_retries(
        self, build_executor, make_source, make_handler, fake_clock
    ):
        """Test every attempt waits on the rate limiter."""
        handler = make_handler(error=ConnectionError("down"))
        executor = build_executor({"alpha": handler})

        await executor.query(
            make_source("alpha", rate_limit_ms=1000), "example.com", SearchType.DOMAIN
        )

        status = executor.rate_limiter.get_status("alpha")
        assert status.requests_granted == 2
        assert status.requests_delayed == 1

    async def test_timeout_becomes_failed_envelope(
        self, build_executor, make_source, make_handler
    ):
        """Test a handler exceeding the request timeout fails cleanly."""
        handler = make_handler(delay=1.0)
        executor = build_executor(
            {"alpha": handler},
            request_timeout_seconds=0.01,
            retry_policy=RetryPolicy(max_attempts=1, backoff_base_ms=0),
        )

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert envelope.error == "Request timed out"

    async def test_payload_without_found_is_invalid(
        self, build_executor, make_source, make_handler
    ):
        """Test a payload missing a boolean found is a failure."""
        executor = build_executor({"alpha": make_handler(result={"records": []})})

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert "found" in envelope.error

    async def test_non_mapping_payload_is_invalid(
        self, build_executor, make_source, make_handler
    ):
        """Test a payload that is not a mapping is a failure."""
        executor = build_executor({"alpha": make_handler(result=["a", "b"])})

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert "mapping" in envelope.error

    async def test_missing_handler_becomes_failed_envelope(self, build_executor, make_source):
        """Test a source without a handler fails without raising."""
        executor = build_executor({})

        envelope = await executor.query(make_source("alpha"), "example.com", SearchType.DOMAIN)

        assert envelope.success is False
        assert "alpha" in envelope.error


@pytest.mark.asyncio
class TestQueryById:
    """Tests for query_by_id."""

    async def test_query_by_id(self, build_executor, catalog: SourceCatalog, make_handler):
        """Test a catalog source is queried by id."""
        handler = make_handler()
        executor = build_executor({"geo": handler}, catalog=catalog)

        envelope = await executor.query_by_id("geo", "8.8.8.8", SearchType.IP)

        assert envelope.success is True
        assert envelope.source_name == "Geo"

    async def test_unknown_id_raises(self, build_executor, catalog: SourceCatalog):
        """Test an unknown id raises SourceNotFoundError."""
        executor = build_executor({}, catalog=catalog)

        with pytest.raises(SourceNotFoundError):
            await executor.query_by_id("missing", "example.com", SearchType.DOMAIN)

    async def test_no_catalog_raises(self, build_executor):
        """Test query_by_id without a catalog raises SourceNotFoundError."""
        executor = build_executor({})

        with pytest.raises(SourceNotFoundError):
            await executor.query_by_id("alpha", "example.com", SearchType.DOMAIN)
