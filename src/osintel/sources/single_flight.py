"""Single-flight de-duplication of concurrent source queries.

Concurrent callers asking for the same key share one pending operation
instead of each reaching the external source.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

from osintel.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Share one in-flight operation per key.

    The first caller for a key starts the operation as a task; callers that
    arrive while it is pending await the same task and receive the same
    result or exception. The key is released once the task finishes, so a
    later call starts a fresh operation.

    Usage:
        flights: SingleFlight[ResultEnvelope] = SingleFlight()
        envelope = await flights.do(("dns_intelligence", "example.com"), fetch)
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Task[T]] = {}
        self.shared_calls = 0

    def in_flight(self, key: Hashable) -> bool:
        """Check if an operation for the key is pending."""
        return key in self._pending

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` for the key, or join the run already in flight.

        Args:
            key: De-duplication key.
            fn: Zero-argument coroutine function producing the result.

        Returns:
            The shared result.
        """
        task = self._pending.get(key)
        if task is not None:
            self.shared_calls += 1
            logger.debug("single_flight_joined", key=str(key))
            # Shield so one abandoned waiter does not cancel the shared work
            return await asyncio.shield(task)

        task = asyncio.ensure_future(fn())
        self._pending[key] = task
        task.add_done_callback(lambda _: self._release(key, task))
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: "asyncio.Task[T]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
