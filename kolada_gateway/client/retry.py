"""Retry policy for Kolada API requests.

Transient failures (network errors, timeouts, HTTP 429) are retried with
linear backoff: the delay before retry k is ``k * delay_base``. Anything
else propagates on the first attempt. When retries run out the last error
is converted to RateLimitedError or NetworkError with the attempt count.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from kolada_gateway.errors import ERROR_MESSAGES, NetworkError, RateLimitedError
from kolada_gateway.monitoring import get_logger

log = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_BASE = 1.0


def is_retryable(error: BaseException) -> bool:
    """Classify an attempt failure.

    Transport-level failures (refused connections, timeouts, dropped reads)
    and HTTP 429 are retryable. Other HTTP statuses and malformed bodies are
    not.
    """
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code == 429
    return isinstance(error, httpx.TransportError)


class RetryPolicy:
    """Bounded linear-backoff retry around one request attempt.

    Example:
        policy = RetryPolicy(max_retries=3, delay_base=1.0)
        response = await policy.run(lambda: client.get(url), endpoint="/kpi")
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        delay_base: float = DEFAULT_RETRY_DELAY_BASE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_retry: Callable[[], None] | None = None,
    ):
        """Initialize the policy.

        Args:
            max_retries: Additional attempts after the first one
            delay_base: Seconds; retry k waits k * delay_base
            sleep: Coroutine used to wait between attempts (injectable for tests)
            on_retry: Called once before each retry, e.g. to bump a counter
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.delay_base = delay_base
        self._sleep = sleep
        self._on_retry = on_retry

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    async def run(self, attempt: Callable[[], Awaitable[T]], endpoint: str = "") -> T:
        """Run ``attempt`` until it succeeds or retries are exhausted.

        Args:
            attempt: Zero-argument callable issuing one request attempt
            endpoint: Endpoint path, for log and error context

        Returns:
            Result of the first successful attempt

        Raises:
            RateLimitedError: Last attempt failed with HTTP 429
            NetworkError: Last attempt failed at the transport level
            httpx.HTTPStatusError: Non-retryable status, raised unchanged
        """

        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            log.warning(
                "kolada_request_retry",
                endpoint=endpoint,
                attempt=retry_state.attempt_number,
                max_retries=self.max_retries,
                delay_s=retry_state.next_action.sleep if retry_state.next_action else None,
                error=f"{type(error).__name__}: {error}",
            )
            if self._on_retry is not None:
                self._on_retry()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.delay_base, increment=self.delay_base),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep,
            sleep=self._sleep,
        )

        try:
            return await retrying(attempt)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            attempts = exc.last_attempt.attempt_number
            raise self._exhausted(last_error, attempts, endpoint) from last_error

    def _exhausted(self, error: BaseException | None, attempts: int, endpoint: str):
        if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
            message = ERROR_MESSAGES.rate_limited(attempts)
            return RateLimitedError(
                f"{endpoint}: {message.message}" if endpoint else message.message,
                suggestion=message.suggestion,
                details={"endpoint": endpoint, "attempts": attempts},
            )

        message = ERROR_MESSAGES.network_error(f"{type(error).__name__}: {error}", attempts)
        return NetworkError(
            f"{endpoint}: {message.message}" if endpoint else message.message,
            suggestion=message.suggestion,
            details={"endpoint": endpoint, "attempts": attempts},
        )
