"""In-memory read-through cache with per-entry TTL.

Catalogs such as the ~6000-entry KPI list or the 310 municipalities change
at most daily, so agents read them through this cache instead of
re-paginating the API on every tool call.

Freshness is checked on every read: an expired entry is never returned,
whether or not the CacheJanitor has swept it yet. Producer failures are
never cached.

Concurrent misses on the same key are coalesced (single-flight): the first
caller starts the producer in its own task and every caller, the first
included, awaits that task. Cancelling one caller does not abort the fetch.

Example:
    cache = DataCache(default_ttl=86400)

    kpis = await cache.get_or_fetch(
        build_key("/kpi"),
        lambda: client.fetch_all("/kpi"),
    )
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from kolada_gateway.monitoring import CacheMetrics, get_logger

log = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL = 86400.0  # 24 hours


class _Missing:
    """Sentinel type for a cache miss, so that None and [] can be cached."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _wall_clock() -> float:
    # Looked up per call so freezegun can patch time.time
    return time.time()


def _retrieve_exception(task: asyncio.Future) -> None:
    # Every caller may have been cancelled; mark the error as retrieved
    if not task.cancelled():
        task.exception()


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return str(value)


@dataclass
class CacheEntry:
    """A cached payload with its creation time and time-to-live.

    Attributes:
        key: Cache key
        payload: Cached value
        created_at: Clock timestamp (seconds) when the value was stored
        ttl: Seconds the value stays fresh
    """

    key: str
    payload: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache contents.

    Attributes:
        total: Entries currently held
        valid: Entries still within their TTL
        expired: Expired entries not yet removed
        size_bytes: Approximate size of live payloads, serialized as JSON
    """

    total: int
    valid: int
    expired: int
    size_bytes: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "valid": self.valid,
            "expired": self.expired,
            "size_bytes": self.size_bytes,
        }


class DataCache:
    """Read-through key/value cache with per-entry TTL.

    All methods except get_or_fetch are synchronous and never suspend, so
    they are atomic with respect to other asyncio tasks.
    """

    def __init__(
        self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] | None = None
    ):
        """Initialize an empty cache.

        Args:
            default_ttl: Seconds an entry stays fresh when no ttl is given
            clock: Time source in seconds, wall clock if None (injectable for tests)
        """
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be > 0, got {default_ttl}")
        self.default_ttl = default_ttl
        self.metrics = CacheMetrics()
        self._clock = clock or _wall_clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISSING

    def get(self, key: str) -> Any:
        """Return the live payload for ``key``, or MISSING.

        An entry found expired is removed on the spot.
        """
        entry = self._entries.get(key)
        if entry is None:
            return MISSING

        if entry.is_expired(self._clock()):
            del self._entries[key]
            return MISSING

        return entry.payload

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any existing entry.

        Args:
            key: Cache key
            value: Payload to store
            ttl: Seconds until expiry (default_ttl if None)
        """
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl}")
        ttl = ttl if ttl is not None else self.default_ttl
        self._entries[key] = CacheEntry(key=key, payload=value, created_at=self._clock(), ttl=ttl)
        log.debug("cache_set", key=key, ttl_s=ttl)

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns True if an entry was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the cached value for ``key``, producing and storing it on a miss.

        Args:
            key: Cache key (see build_key)
            producer: Zero-argument callable returning an awaitable of the value
            ttl: Seconds the produced value stays fresh (default_ttl if None)

        Returns:
            The cached or freshly produced value

        Raises:
            Whatever the producer raises; nothing is stored in that case and
            every coalesced waiter receives the same error.
        """
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl}")

        value = self.get(key)
        if value is not MISSING:
            self.metrics.hits += 1
            log.debug("cache_hit", key=key)
            return value

        pending = self._in_flight.get(key)
        if pending is not None:
            self.metrics.coalesced += 1
            log.debug("cache_miss_coalesced", key=key)
        else:
            self.metrics.misses += 1
            log.debug("cache_miss", key=key)
            pending = asyncio.ensure_future(self._produce(key, producer, ttl))
            pending.add_done_callback(_retrieve_exception)
            self._in_flight[key] = pending

        # A cancelled caller leaves the shared fetch running for the others
        return await asyncio.shield(pending)

    async def _produce(
        self, key: str, producer: Callable[[], Awaitable[T]], ttl: float | None
    ) -> T:
        try:
            value = await producer()
            self.set(key, value, ttl)
            return value
        finally:
            self._in_flight.pop(key, None)

    def cleanup(self) -> int:
        """Remove every expired entry; returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> CacheStats:
        """Count live and expired entries and estimate payload size."""
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        return CacheStats(
            total=len(self._entries),
            valid=len(self._entries) - expired,
            expired=expired,
            size_bytes=self._estimate_size(now),
        )

    def _estimate_size(self, now: float) -> int:
        return sum(
            len(json.dumps(entry.payload, default=_json_default, ensure_ascii=False).encode("utf-8"))
            for entry in self._entries.values()
            if not entry.is_expired(now)
        )
