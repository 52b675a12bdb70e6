"""Background sweep that evicts expired cache entries.

Freshness never depends on the janitor: DataCache checks TTLs at read time.
The sweep only bounds memory held by entries nobody reads again.
"""

import asyncio

from kolada_gateway.cache.data_cache import DataCache
from kolada_gateway.monitoring import get_logger

log = get_logger(__name__)

DEFAULT_CLEANUP_INTERVAL = 3600.0  # 1 hour


class CacheJanitor:
    """Periodically calls DataCache.cleanup() from an asyncio task.

    Example:
        async with CacheJanitor(cache, interval=3600):
            ...  # serve tool calls
    """

    def __init__(self, cache: DataCache, interval: float = DEFAULT_CLEANUP_INTERVAL):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._cache = cache
        self.interval = interval
        self._task: asyncio.Task | None = None
        self.sweeps = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> int:
        """Run one cleanup pass; returns the number of entries removed."""
        removed = self._cache.cleanup()
        self.sweeps += 1
        if removed > 0:
            log.info("cache_cleanup_completed", removed=removed, remaining=len(self._cache))
        return removed

    def start(self) -> None:
        """Start the sweep loop on the running event loop (no-op if running)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="cache-janitor")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "CacheJanitor":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.sweep()
            except Exception:
                log.exception("cache_cleanup_failed")
