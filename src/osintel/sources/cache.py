"""Source result caching for osintel.

This module provides an in-memory, time-boxed cache for source result
envelopes. Entries expire lazily: nothing sweeps the cache in the
background, an expired entry is dropped the next time its key is read.

Keys are the ordered pair ``(source_id, query)`` taken verbatim. The cache
does not normalize case or whitespace, so ``"example.com"`` and
``"EXAMPLE.com"`` are separate entries; callers that want them merged must
normalize the query before it reaches the cache.
"""

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import timedelta

from osintel.core.logging import get_logger

from .types import ResultEnvelope

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(hours=1)

CacheKey = tuple[str, str]


@dataclass(frozen=True)
class CacheEntry:
    """A cached envelope and the clock reading when it was stored."""

    data: ResultEnvelope
    inserted_at: float

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        """Check if the entry is still inside the TTL window."""
        return now - self.inserted_at < ttl_seconds


@dataclass
class CacheStats:
    """Statistics for cache operations."""

    lookups: int = 0
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    stores: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.lookups == 0:
            return 0.0
        return self.hits / self.lookups


class ResultCache:
    """TTL cache of result envelopes keyed by source and query.

    Usage:
        cache = ResultCache(ttl=timedelta(hours=1))

        envelope = cache.get("dns_intelligence", "example.com")
        if envelope is None:
            envelope = await run_query(...)
            cache.put("dns_intelligence", "example.com", envelope)
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl: How long an entry stays valid after insertion.
            clock: Monotonic clock in seconds (injectable for tests).
        """
        if ttl.total_seconds() <= 0:
            raise ValueError("Cache TTL must be positive")

        self._ttl_seconds = ttl.total_seconds()
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._stats = CacheStats()

    @property
    def ttl(self) -> timedelta:
        """Get the validity window."""
        return timedelta(seconds=self._ttl_seconds)

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    @staticmethod
    def key(source_id: str, query: str) -> str:
        """Render the flat ``source_id:query`` key used in exports."""
        return f"{source_id}:{query}"

    def get(self, source_id: str, query: str) -> ResultEnvelope | None:
        """Look up a cached envelope.

        Args:
            source_id: Source identifier.
            query: Query string, used verbatim.

        Returns:
            The stored envelope, or None when absent or expired.
        """
        self._stats.lookups += 1
        cache_key = (source_id, query)
        entry = self._entries.get(cache_key)

        if entry is None:
            self._stats.misses += 1
            return None

        if not entry.is_valid(self._clock(), self._ttl_seconds):
            del self._entries[cache_key]
            self._stats.misses += 1
            self._stats.expirations += 1
            logger.debug("cache_entry_expired", source_id=source_id, query=query)
            return None

        self._stats.hits += 1
        logger.debug("cache_hit", source_id=source_id, query=query)
        return entry.data

    def put(self, source_id: str, query: str, envelope: ResultEnvelope) -> None:
        """Store an envelope, overwriting any existing entry for the key."""
        self._entries[(source_id, query)] = CacheEntry(data=envelope, inserted_at=self._clock())
        self._stats.stores += 1

    def items(self) -> Iterator[tuple[CacheKey, ResultEnvelope]]:
        """Iterate over entries that are still valid, without evicting."""
        now = self._clock()
        for cache_key, entry in list(self._entries.items()):
            if entry.is_valid(now, self._ttl_seconds):
                yield cache_key, entry.data

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        """Number of physically stored entries, expired ones included."""
        return len(self._entries)
