"""Per-run discovery state."""

import asyncio
import contextlib
import time
from collections import deque
from typing import Awaitable, Optional, TypeVar

from urlscout.config import DiscoveryConfig
from urlscout.discovery.errors import DiscoveryInterrupted
from urlscout.discovery.models import StopReason
from urlscout.discovery.url_utils import normalize_url

T = TypeVar("T")


class DiscoveryContext:
    """Mutable state owned by exactly one discovery run.

    Holds the visited set, the frontier queue, the run clock, the URL
    budget and the cancellation signal. Services receive it as an argument
    so they can be shared between concurrent runs.
    """

    def __init__(self, config: DiscoveryConfig):
        self.config = config
        self.visited: set[str] = set()
        self.queue: deque[str] = deque()
        self._queued: set[str] = set()
        self.emitted = 0
        self.stop_reason: Optional[StopReason] = None
        self._started = time.monotonic()
        self._cancelled = asyncio.Event()

    # Visited set / frontier queue, keyed by normalized URL

    def is_visited(self, url: str) -> bool:
        return normalize_url(url) in self.visited

    def mark_visited(self, url: str) -> None:
        self.visited.add(normalize_url(url))

    def is_queued(self, url: str) -> bool:
        return normalize_url(url) in self._queued

    def enqueue(self, url: str) -> None:
        self.queue.append(url)
        self._queued.add(normalize_url(url))

    def pop(self) -> str:
        url = self.queue.popleft()
        self._queued.discard(normalize_url(url))
        return url

    # Budgets

    @property
    def remaining_budget(self) -> int:
        return max(self.config.max_urls - self.emitted, 0)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    @property
    def time_remaining(self) -> float:
        return max(self.config.timeout - self.elapsed, 0.0)

    def time_exhausted(self) -> bool:
        return self.elapsed >= self.config.timeout

    # Cancellation

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def interruption(self) -> Optional[StopReason]:
        """Return why the run must stop now, if it must."""
        if self.cancelled:
            return StopReason.CANCELLED
        if self.time_exhausted():
            return StopReason.TIMEOUT
        return None

    async def guard(self, awaitable: Awaitable[T], timed: bool = True) -> T:
        """Await *awaitable* unless the run is cancelled or runs out of time first.

        Args:
            awaitable: The I/O operation to wait for.
            timed: Whether the global time budget bounds the wait.

        Raises:
            DiscoveryInterrupted: If cancellation or the deadline wins the race.
        """
        reason = self.interruption() if timed else (StopReason.CANCELLED if self.cancelled else None)
        if reason is not None:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DiscoveryInterrupted(reason)

        task = asyncio.ensure_future(awaitable)
        cancel_wait = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, cancel_wait},
                timeout=self.time_remaining if timed else None,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            cancel_wait.cancel()

        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise DiscoveryInterrupted(StopReason.CANCELLED if self.cancelled else StopReason.TIMEOUT)
