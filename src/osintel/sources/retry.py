"""Bounded retry with linear backoff for source queries.

Every failure is retried the same way: the policy does not look at why a
call failed, only that it raised. A wasted retry against a permanently
failing source costs latency, never correctness, because sources are
independent of each other.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_incrementing,
)

from osintel.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Retry an async callable up to a fixed number of attempts.

    After failed attempt ``n`` the policy waits ``backoff_base_ms * n``
    before trying again, and re-raises the last exception once attempts
    are exhausted.

    Usage:
        policy = RetryPolicy(max_attempts=3, backoff_base_ms=2000)
        data = await policy.execute(lambda: handler(query, search_type))
    """

    def __init__(
        self,
        max_attempts: int = 2,
        backoff_base_ms: int = 2000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the policy.

        Args:
            max_attempts: Default number of attempts, including the first.
            backoff_base_ms: Linear backoff base in milliseconds.
            sleep: Coroutine used to wait between attempts.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff_base_ms < 0:
            raise ValueError("backoff_base_ms must not be negative")

        self.max_attempts = max_attempts
        self.backoff_base_ms = backoff_base_ms
        self._sleep = sleep

    def backoff_seconds(self, attempt_number: int) -> float:
        """Delay after failed attempt ``attempt_number`` (1-based)."""
        return self.backoff_base_ms * attempt_number / 1000.0

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
    ) -> T:
        """Call ``fn`` until it succeeds or attempts run out.

        Args:
            fn: Zero-argument coroutine function to call.
            max_attempts: Override of the policy's attempt count.

        Returns:
            The first successful result.

        Raises:
            Exception: Whatever the last attempt raised.
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        base = self.backoff_base_ms / 1000.0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_incrementing(start=base, increment=base),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        return await retrying(fn)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before the backoff wait."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "source_query_retry",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error_type=type(exc).__name__ if exc else None,
        error=str(exc) if exc else None,
    )
