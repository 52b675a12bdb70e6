"""Tests for RetryPolicy classification, backoff and exhaustion."""

import httpx
import pytest

from kolada_gateway.client import RetryPolicy, is_retryable
from kolada_gateway.errors import NetworkError, RateLimitedError

URL = "https://api.kolada.se/v3/kpi"


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", URL)
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class FlakyAttempt:
    """Raises the queued errors in order, then returns "ok"."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    async def record(seconds):
        sleeps.append(seconds)

    return RetryPolicy(max_retries=3, delay_base=1.0, sleep=record)


class TestIsRetryable:
    def test_429_is_retryable(self):
        assert is_retryable(status_error(429))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 500, 502, 503])
    def test_other_statuses_are_not(self, status):
        assert not is_retryable(status_error(status))

    def test_transport_errors_are_retryable(self):
        assert is_retryable(httpx.ConnectError("refused"))
        assert is_retryable(httpx.ReadTimeout("slow"))

    def test_other_exceptions_are_not(self):
        assert not is_retryable(ValueError("bad json"))


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, policy, sleeps):
        attempt = FlakyAttempt()
        assert await policy.run(attempt) == "ok"
        assert attempt.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_errors(self, policy, sleeps):
        attempt = FlakyAttempt(httpx.ConnectError("refused"), status_error(429))
        assert await policy.run(attempt, endpoint="/kpi") == "ok"
        assert attempt.calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_429_raises_rate_limited(self, policy, sleeps):
        attempt = FlakyAttempt(*(status_error(429) for _ in range(4)))

        with pytest.raises(RateLimitedError) as exc_info:
            await policy.run(attempt, endpoint="/kpi")

        assert attempt.calls == 1 + 3
        assert sleeps == [1.0, 2.0, 3.0]
        assert exc_info.value.code == "RATE_LIMITED"
        assert exc_info.value.details == {"endpoint": "/kpi", "attempts": 4}

    @pytest.mark.asyncio
    async def test_exhausted_network_errors_raise_network_error(self, policy):
        attempt = FlakyAttempt(*(httpx.ConnectError("refused") for _ in range(4)))

        with pytest.raises(NetworkError) as exc_info:
            await policy.run(attempt, endpoint="/municipality")

        assert attempt.calls == 4
        assert exc_info.value.code == "NETWORK_ERROR"
        assert "/municipality" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_non_retryable_status_propagates_immediately(self, policy, sleeps):
        attempt = FlakyAttempt(status_error(500))

        with pytest.raises(httpx.HTTPStatusError):
            await policy.run(attempt)

        assert attempt.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_zero_retries_fails_after_one_attempt(self, sleeps):
        async def record(seconds):
            sleeps.append(seconds)

        policy = RetryPolicy(max_retries=0, sleep=record)
        attempt = FlakyAttempt(status_error(429))

        with pytest.raises(RateLimitedError):
            await policy.run(attempt)

        assert attempt.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_backoff_scales_with_delay_base(self, sleeps):
        async def record(seconds):
            sleeps.append(seconds)

        policy = RetryPolicy(max_retries=2, delay_base=0.5, sleep=record)
        attempt = FlakyAttempt(httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow"))

        assert await policy.run(attempt) == "ok"
        assert sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_on_retry_called_per_retry(self, sleeps):
        calls = []

        async def record(seconds):
            sleeps.append(seconds)

        policy = RetryPolicy(max_retries=3, sleep=record, on_retry=lambda: calls.append(1))
        await policy.run(FlakyAttempt(status_error(429), status_error(429)))

        assert len(calls) == 2

    def test_max_attempts(self):
        assert RetryPolicy(max_retries=3).max_attempts == 4

    def test_rejects_negative_retries(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)
