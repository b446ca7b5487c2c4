"""Per-source rate limiting for osintel.

This module spaces out requests to each intelligence source so that two
grants for the same source are never closer than the source's minimum
interval. State is kept per source, so a busy source never delays
requests to an unrelated one.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from osintel.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitStatus:
    """Current rate limit status for a source."""

    source_id: str
    last_grant: float | None = None
    min_interval_ms: int = 0
    requests_granted: int = 0
    requests_delayed: int = 0
    total_wait_seconds: float = 0.0

    @property
    def average_wait_seconds(self) -> float:
        """Average wait per delayed request."""
        if self.requests_delayed == 0:
            return 0.0
        return self.total_wait_seconds / self.requests_delayed


class SourceRateLimiter:
    """Minimum-interval rate limiter keyed by source id.

    Each call reserves the next free slot for its source before suspending:
    reading the previous grant, computing the slot and recording it happen
    with no await in between. Concurrent waiters on one source therefore
    receive slots ``interval`` apart instead of racing on a stale timestamp.

    Usage:
        limiter = SourceRateLimiter()
        await limiter.before_request("ip_intelligence", 1000)
        response = await client.get(...)
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the limiter.

        Args:
            clock: Monotonic clock in seconds.
            sleep: Coroutine used to wait (injectable for tests).
        """
        self._clock = clock
        self._sleep = sleep
        self._status: dict[str, RateLimitStatus] = {}

    async def before_request(self, source_id: str, min_interval_ms: int) -> float:
        """Wait until a request to the source may be dispatched.

        Args:
            source_id: Source identifier.
            min_interval_ms: Minimum spacing between grants for this source.

        Returns:
            Seconds spent waiting.
        """
        interval = max(min_interval_ms, 0) / 1000.0
        status = self._status.setdefault(source_id, RateLimitStatus(source_id=source_id))

        # Reserve the slot; no suspension between the read and the write
        now = self._clock()
        if status.last_grant is None:
            slot = now
        else:
            slot = max(now, status.last_grant + interval)
        status.last_grant = slot
        status.min_interval_ms = min_interval_ms
        status.requests_granted += 1

        wait_time = slot - now
        if wait_time > 0:
            status.requests_delayed += 1
            status.total_wait_seconds += wait_time
            logger.debug(
                "rate_limit_wait",
                source_id=source_id,
                wait_time_seconds=round(wait_time, 3),
            )
            await self._sleep(wait_time)
            return wait_time

        return 0.0

    def get_status(self, source_id: str) -> RateLimitStatus:
        """Get rate limit status for a source."""
        return self._status.get(source_id) or RateLimitStatus(source_id=source_id)

    def get_all_status(self) -> dict[str, RateLimitStatus]:
        """Get rate limit status for all tracked sources."""
        return dict(self._status)

    def reset(self, source_id: str | None = None) -> None:
        """Forget grant history for one source, or for all of them."""
        if source_id is None:
            self._status.clear()
        else:
            self._status.pop(source_id, None)
        logger.info("rate_limit_reset", source_id=source_id)
