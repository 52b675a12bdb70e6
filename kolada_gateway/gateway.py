"""Composition root wiring settings, API client, cache and janitor together.

Every component is constructed once here and injected into the tool
handlers, so tests can build a fresh gateway (or swap any single part)
per test case.

Example:
    async with KoladaGateway() as gateway:
        municipalities = await gateway.municipalities()
"""

from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import BaseModel

from kolada_gateway.cache import CacheJanitor, DataCache, build_key
from kolada_gateway.client import KPI, KoladaClient, Municipality
from kolada_gateway.config import Settings, get_settings
from kolada_gateway.monitoring import configure_logging, get_logger

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class KoladaGateway:
    """Shared client, cache and janitor for one process.

    Attributes:
        settings: Gateway settings
        client: Rate-limited Kolada API client
        cache: Read-through cache in front of the client
        janitor: Background sweep for expired cache entries
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: KoladaClient | None = None,
        cache: DataCache | None = None,
        janitor: CacheJanitor | None = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or KoladaClient(self.settings)
        self.cache = cache or DataCache(default_ttl=self.settings.cache_ttl)
        self.janitor = janitor or CacheJanitor(
            self.cache, interval=self.settings.cache_cleanup_interval
        )

    async def __aenter__(self) -> "KoladaGateway":
        configure_logging(self.settings.log_mode)
        self.janitor.start()
        log.info(
            "gateway_started",
            base_url=self.client.base_url,
            rate_limit=self.settings.rate_limit,
            max_batch_size=self.settings.max_batch_size,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop the janitor and close the HTTP client."""
        await self.janitor.stop()
        await self.client.aclose()

    async def cached(
        self,
        endpoint: str,
        producer: Callable[[], Awaitable[Any]],
        params: Mapping[str, Any] | None = None,
        ttl: float | None = None,
    ) -> Any:
        """Read ``endpoint`` + ``params`` through the cache with a custom producer."""
        return await self.cache.get_or_fetch(build_key(endpoint, params), producer, ttl)

    async def fetch_all_cached(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        ttl: float | None = None,
    ) -> list[dict[str, Any]]:
        """fetch_all through the cache, keyed on endpoint and params."""
        return await self.cached(
            endpoint, lambda: self.client.fetch_all(endpoint, params), params, ttl
        )

    async def fetch_models_cached(
        self,
        model: type[M],
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        ttl: float | None = None,
    ) -> list[M]:
        """fetch_all through the cache, validating each record into ``model`` once."""

        async def produce() -> list[M]:
            records = await self.client.fetch_all(endpoint, params)
            return [model.model_validate(record) for record in records]

        return await self.cached(endpoint, produce, params, ttl)

    async def kpi_catalog(self) -> list[KPI]:
        """Full KPI catalog, cached for settings.cache_ttl."""
        return await self.fetch_models_cached(KPI, "/kpi", ttl=self.settings.cache_ttl)

    async def municipalities(self) -> list[Municipality]:
        """All municipalities and regions, cached for settings.cache_ttl."""
        return await self.fetch_models_cached(
            Municipality, "/municipality", ttl=self.settings.cache_ttl
        )

    def stats(self) -> dict[str, Any]:
        """Cache contents, cache hit rates and upstream request counters."""
        return {
            "cache": self.cache.stats().to_dict(),
            "cache_metrics": self.cache.metrics.to_dict(),
            "requests": self.client.metrics.to_dict(),
            "janitor": {"running": self.janitor.running, "sweeps": self.janitor.sweeps},
        }
