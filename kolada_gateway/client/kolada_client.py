"""Kolada API v3 client with rate limiting, retry and transparent pagination.

Layers, innermost first:
- RateLimiter: every HTTP attempt waits for its turn on the shared limiter
- RetryPolicy: network errors and 429 are retried with linear backoff
- request(): one logical GET; 404 becomes an empty envelope
- walk_pages(): follows next_page links, yielding one batch per page
- fetch_all(): drains walk_pages into a single list
- batch_fetch(): splits large id lists into per-request chunks
"""

import asyncio
import time
from typing import Any, AsyncIterator, Iterable, Mapping

import httpx
from pydantic import ValidationError

from kolada_gateway.client.models import PageEnvelope
from kolada_gateway.client.rate_limiter import RateLimiter
from kolada_gateway.client.retry import RetryPolicy
from kolada_gateway.config import Settings, get_settings
from kolada_gateway.errors import GatewayError, InvalidInputError, UpstreamError
from kolada_gateway.monitoring import RequestMetrics, get_logger

log = get_logger(__name__)

Params = Mapping[str, Any]


def chunked(ids: Iterable[str], size: int) -> list[list[str]]:
    """Partition ids into contiguous chunks of at most ``size`` items.

    Example:
        chunked(["a", "b", "c"], 2)  # [["a", "b"], ["c"]]
    """
    if size <= 0:
        raise InvalidInputError(f"Batch size must be positive, got {size}")
    items = list(ids)
    return [items[i : i + size] for i in range(0, len(items), size)]


class KoladaClient:
    """Async client for the Kolada API v3.

    One instance (and its limiter) should be shared by every caller so that
    concurrent fan-out stays under the API's requests-per-second ceiling.

    Attributes:
        base_url: API root without trailing slash
        max_batch_size: Max identifiers per request
        metrics: Request counters for observability

    Example:
        async with KoladaClient() as client:
            kpis = await client.fetch_all("/kpi", {"title": "skola"})
            async for batch in client.walk_pages("/municipality"):
                ...
    """

    def __init__(
        self,
        settings: Settings | None = None,
        limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            settings: Gateway settings (defaults to environment settings)
            limiter: Shared rate limiter (built from settings if None)
            retry_policy: Retry policy (built from settings if None)
            http_client: httpx client to reuse; the client closes only the
                one it creates itself
        """
        self._settings = settings or get_settings()
        self.base_url = self._settings.api_base_url.rstrip("/")
        self.max_batch_size = self._settings.max_batch_size
        self.metrics = RequestMetrics()

        self._limiter = limiter or RateLimiter(
            self._settings.min_request_interval,
            max_concurrent=self._settings.max_concurrent_requests,
        )
        self._retry = retry_policy or RetryPolicy(
            max_retries=self._settings.max_retries,
            delay_base=self._settings.retry_delay_base,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.timeout),
            headers={"Accept": "application/json"},
        )

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def __aenter__(self) -> "KoladaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http and not self._http.is_closed:
            await self._http.aclose()

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _display_path(self, endpoint: str) -> str:
        if endpoint.startswith(self.base_url):
            return endpoint[len(self.base_url) :] or "/"
        return endpoint

    async def request(self, endpoint: str, params: Params | None = None) -> PageEnvelope:
        """Issue one logical GET request.

        Args:
            endpoint: Path relative to the API root (e.g. "/kpi/N15033") or an
                absolute URL such as a next_page link
            params: Query parameters; None when the URL already carries them

        Returns:
            Parsed page envelope. HTTP 404 yields an empty envelope.

        Raises:
            RateLimitedError: 429 persisted through every retry
            NetworkError: Connection failures persisted through every retry
            UpstreamError: Any other non-2xx status or a malformed body
        """
        url = self._url(endpoint)
        path = self._display_path(url)
        query = dict(params) if params else None
        attempts = 0
        start_time = time.perf_counter()

        async def attempt() -> httpx.Response:
            nonlocal attempts
            attempts += 1
            self.metrics.requests += 1
            response = await self._limiter.schedule(lambda: self._http.get(url, params=query))
            if response.status_code != 404:
                response.raise_for_status()
            return response

        log.debug("kolada_request_started", endpoint=path, params=query)
        try:
            response = await self._retry.run(attempt, endpoint=path)
        except GatewayError:
            self.metrics.failures += 1
            raise
        except httpx.HTTPStatusError as exc:
            self.metrics.failures += 1
            status = exc.response.status_code
            raise UpstreamError(
                f"Kolada API error: {path} returned {status} {exc.response.reason_phrase}",
                details={"endpoint": path, "status": status},
            ) from exc
        except httpx.HTTPError as exc:
            self.metrics.failures += 1
            raise UpstreamError(
                f"Kolada API error: {path}: {type(exc).__name__}: {exc}",
                details={"endpoint": path},
            ) from exc
        finally:
            self.metrics.retries += max(0, attempts - 1)

        duration_ms = int((time.perf_counter() - start_time) * 1000)

        if response.status_code == 404:
            self.metrics.not_found += 1
            log.info("kolada_request_not_found", endpoint=path, duration_ms=duration_ms)
            return PageEnvelope.empty()

        envelope = self._parse(response, path)
        log.info(
            "kolada_request_completed",
            endpoint=path,
            status=response.status_code,
            count=len(envelope.values),
            has_next_page=envelope.next_page is not None,
            attempts=attempts,
            duration_ms=duration_ms,
        )
        return envelope

    def _parse(self, response: httpx.Response, path: str) -> PageEnvelope:
        try:
            return PageEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            self.metrics.failures += 1
            raise UpstreamError(
                f"Kolada API error: malformed response from {path}",
                details={"endpoint": path, "status": response.status_code},
            ) from exc

    async def walk_pages(
        self, endpoint: str, params: Params | None = None
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield the values of each page, following next_page links.

        Pages are fetched strictly one after another because each link comes
        from the previous response. Empty pages are skipped. Each call starts
        a fresh traversal from the first page.

        Args:
            endpoint: First page endpoint
            params: Query parameters for the first page only; next_page links
                already encode their own

        Raises:
            UpstreamError: A next_page link points back to a visited page
        """
        next_url: str | None = self._url(endpoint)
        query = params
        seen = {str(httpx.URL(next_url, params=dict(params) if params else None))}
        pages = 0

        while next_url:
            envelope = await self.request(next_url, query)
            pages += 1
            if envelope.values:
                yield envelope.values

            if envelope.next_page is None:
                break

            next_url = self._url(envelope.next_page)
            query = None
            page_key = str(httpx.URL(next_url))
            if page_key in seen:
                raise UpstreamError(
                    f"Kolada API error: pagination loop at {self._display_path(next_url)}",
                    details={"endpoint": self._display_path(endpoint), "pages": pages},
                )
            seen.add(page_key)

    async def fetch_all(self, endpoint: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Fetch every page of ``endpoint`` and return the concatenated values.

        Only for endpoints with bounded results (thousands of records, not
        millions): the whole collection is held in memory.
        """
        records: list[dict[str, Any]] = []
        pages = 0
        async for batch in self.walk_pages(endpoint, params):
            records.extend(batch)
            pages += 1

        if pages > 1:
            log.debug(
                "kolada_pages_flattened",
                endpoint=self._display_path(self._url(endpoint)),
                pages=pages,
                count=len(records),
            )
        return records

    async def fetch_one(self, endpoint: str, params: Params | None = None) -> dict[str, Any] | None:
        """Fetch a by-id endpoint and return its single record, or None if absent."""
        envelope = await self.request(endpoint, params)
        return envelope.values[0] if envelope.values else None

    async def batch_fetch(
        self,
        endpoint: str,
        ids: Iterable[str],
        max_batch_size: int | None = None,
        id_param: str = "id",
        params: Params | None = None,
        concurrent: bool = False,
    ) -> list[dict[str, Any]]:
        """Fetch records for many ids, at most ``max_batch_size`` per request.

        Args:
            endpoint: Collection endpoint (e.g. "/kpi" or "/data")
            ids: Identifiers to look up
            max_batch_size: Chunk size (defaults to the configured max)
            id_param: Query parameter receiving the comma-joined chunk
            params: Extra query parameters sent with every chunk
            concurrent: Issue chunks concurrently; every HTTP call still goes
                through the shared rate limiter

        Returns:
            Results of every chunk concatenated in chunk order
        """
        size = max_batch_size if max_batch_size is not None else self.max_batch_size
        chunks = chunked(ids, size)
        if not chunks:
            return []

        def chunk_params(chunk: list[str]) -> dict[str, Any]:
            return {**(params or {}), id_param: ",".join(chunk)}

        log.debug(
            "kolada_batch_started",
            endpoint=endpoint,
            ids=sum(len(c) for c in chunks),
            chunks=len(chunks),
            concurrent=concurrent,
        )

        if concurrent:
            chunk_results = await asyncio.gather(
                *(self.fetch_all(endpoint, chunk_params(chunk)) for chunk in chunks)
            )
        else:
            chunk_results = [await self.fetch_all(endpoint, chunk_params(chunk)) for chunk in chunks]

        return [record for result in chunk_results for record in result]
