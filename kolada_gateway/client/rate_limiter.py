"""Global request scheduler enforcing the Kolada requests-per-second ceiling.

One RateLimiter instance is shared by every call site. Per-call limiters
would let concurrent batch fetches collectively exceed the ceiling.
"""

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class RateLimiter:
    """Serializes task starts to at most one per ``min_interval`` seconds.

    Tasks are admitted in FIFO order of submission. The interval is measured
    start-to-start: a task's own duration does not delay the next start,
    unless ``max_concurrent`` is reached, in which case the next task also
    waits for a running one to finish.

    Example:
        limiter = RateLimiter.from_rate(5)  # 200ms between starts
        result = await limiter.schedule(lambda: client.get("/kpi"))
    """

    def __init__(
        self,
        min_interval: float,
        max_concurrent: int | None = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the limiter.

        Args:
            min_interval: Minimum seconds between two task starts
            max_concurrent: Cap on running tasks, None for no cap
            clock: Monotonic time source (injectable for tests)
            sleep: Coroutine used to wait (injectable for tests)
        """
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")

        self.min_interval = min_interval
        self.max_concurrent = max_concurrent
        self._clock = clock
        self._sleep = sleep
        self._start_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._next_start: float | None = None
        self.scheduled = 0

    @classmethod
    def from_rate(cls, requests_per_second: float, **kwargs) -> "RateLimiter":
        """Build a limiter from a requests-per-second ceiling."""
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {requests_per_second}")
        return cls(1.0 / requests_per_second, **kwargs)

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run ``task`` once its turn comes up and return its result.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Whatever the task's awaitable resolves to
        """
        if self._slots is None:
            await self._wait_for_turn()
            return await task()

        async with self._slots:
            await self._wait_for_turn()
            return await task()

    async def _wait_for_turn(self) -> None:
        # asyncio.Lock wakes waiters in acquisition order, which gives FIFO admission
        async with self._start_lock:
            if self._next_start is not None:
                delay = self._next_start - self._clock()
                if delay > 0:
                    await self._sleep(delay)
            self._next_start = self._clock() + self.min_interval
            self.scheduled += 1
