"""Shared pytest fixtures for Kolada gateway tests."""

import pytest
import pytest_asyncio

from kolada_gateway.cache import DataCache
from kolada_gateway.client import KoladaClient, RateLimiter, RetryPolicy
from kolada_gateway.config import Settings
from kolada_gateway.gateway import KoladaGateway
from kolada_gateway.monitoring import configure_logging
from kolada_gateway.tools import build_registry

BASE_URL = "https://api.kolada.se/v3"


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Configure structlog for test output."""
    configure_logging("development")


class FakeClock:
    """Manual clock: sleep() advances time instantly and records each delay."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Default settings, independent of the environment and any .env file."""
    return Settings(_env_file=None, api_base_url=BASE_URL)


@pytest.fixture
def limiter(fake_clock, settings):
    """Limiter with real spacing rules on a fake clock, so tests never wait."""
    return RateLimiter(
        settings.min_request_interval,
        max_concurrent=settings.max_concurrent_requests,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


@pytest.fixture
def retry_sleeps():
    """Delays requested by the retry policy, in order."""
    return []


@pytest.fixture
def retry_policy(settings, retry_sleeps):
    async def record_sleep(seconds: float) -> None:
        retry_sleeps.append(seconds)

    return RetryPolicy(
        max_retries=settings.max_retries,
        delay_base=settings.retry_delay_base,
        sleep=record_sleep,
    )


@pytest_asyncio.fixture
async def client(settings, limiter, retry_policy):
    """KoladaClient talking to pytest-httpx instead of the network."""
    kolada = KoladaClient(settings, limiter=limiter, retry_policy=retry_policy)
    yield kolada
    await kolada.aclose()


@pytest_asyncio.fixture
async def gateway(settings, client):
    """Gateway with a fresh cache per test; the janitor is not started."""
    gw = KoladaGateway(settings, client=client, cache=DataCache(default_ttl=settings.cache_ttl))
    yield gw
    await gw.aclose()


@pytest.fixture
def registry(gateway):
    return build_registry(gateway)


def page(values, next_page=None, count=None):
    """Kolada page envelope as returned by the API."""
    return {
        "values": values,
        "count": len(values) if count is None else count,
        "next_page": next_page,
        "previous_page": None,
    }


@pytest.fixture
def make_page():
    return page
