"""Tests for KoladaClient request handling, pagination and batching.

Uses pytest-httpx to mock the Kolada API. The client fixture runs on a fake
clock, so rate limiting and retry backoff never actually sleep.
"""

import httpx
import pytest

from kolada_gateway.client import PageEnvelope, chunked
from kolada_gateway.errors import (
    InvalidInputError,
    NetworkError,
    RateLimitedError,
    UpstreamError,
)

BASE_URL = "https://api.kolada.se/v3"


def records(start, stop):
    return [{"id": f"N{i:05d}", "title": f"KPI {i}"} for i in range(start, stop)]


class TestRequest:
    @pytest.mark.asyncio
    async def test_success_returns_envelope(self, client, httpx_mock, make_page):
        httpx_mock.add_response(url=f"{BASE_URL}/kpi/N15033", json=make_page(records(15033, 15034)))

        envelope = await client.request("/kpi/N15033")

        assert isinstance(envelope, PageEnvelope)
        assert envelope.values[0]["id"] == "N15033"
        assert envelope.next_page is None
        assert client.metrics.requests == 1

    @pytest.mark.asyncio
    async def test_query_params_are_sent(self, client, httpx_mock, make_page):
        httpx_mock.add_response(json=make_page([]))

        await client.request("/kpi", {"title": "skola"})

        request = httpx_mock.get_request()
        assert request.url.path == "/v3/kpi"
        assert request.url.params["title"] == "skola"

    @pytest.mark.asyncio
    async def test_404_returns_empty_envelope(self, client, httpx_mock):
        httpx_mock.add_response(status_code=404, json={"detail": "Not found"})

        envelope = await client.request("/kpi/N99999")

        assert envelope.values == []
        assert envelope.count == 0
        assert client.metrics.not_found == 1

    @pytest.mark.asyncio
    async def test_fetch_one_returns_none_on_404(self, client, httpx_mock):
        httpx_mock.add_response(status_code=404)

        assert await client.fetch_one("/municipality/9999") is None

    @pytest.mark.asyncio
    async def test_500_raises_upstream_error_without_retry(self, client, httpx_mock, retry_sleeps):
        httpx_mock.add_response(status_code=500)

        with pytest.raises(UpstreamError) as exc_info:
            await client.request("/kpi")

        assert exc_info.value.code == "API_ERROR"
        assert exc_info.value.details["status"] == 500
        assert len(httpx_mock.get_requests()) == 1
        assert retry_sleeps == []
        assert client.metrics.failures == 1

    @pytest.mark.asyncio
    async def test_malformed_json_raises_upstream_error(self, client, httpx_mock):
        httpx_mock.add_response(text="<html>maintenance</html>")

        with pytest.raises(UpstreamError, match="malformed response"):
            await client.request("/kpi")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_wrong_envelope_shape_raises_upstream_error(self, client, httpx_mock):
        httpx_mock.add_response(json={"values": "not-a-list"})

        with pytest.raises(UpstreamError):
            await client.request("/kpi")

    @pytest.mark.asyncio
    async def test_429_is_retried_then_succeeds(self, client, httpx_mock, make_page, retry_sleeps):
        httpx_mock.add_response(status_code=429)
        httpx_mock.add_response(json=make_page(records(1, 3)))

        envelope = await client.request("/kpi")

        assert len(envelope.values) == 2
        assert retry_sleeps == [1.0]
        assert client.metrics.requests == 2
        assert client.metrics.retries == 1

    @pytest.mark.asyncio
    async def test_persistent_429_raises_rate_limited(self, client, httpx_mock, retry_sleeps):
        for _ in range(4):
            httpx_mock.add_response(status_code=429)

        with pytest.raises(RateLimitedError) as exc_info:
            await client.request("/kpi")

        assert len(httpx_mock.get_requests()) == 4
        assert retry_sleeps == [1.0, 2.0, 3.0]
        assert exc_info.value.details["attempts"] == 4

    @pytest.mark.asyncio
    async def test_persistent_connection_failure_raises_network_error(self, client, httpx_mock):
        for _ in range(4):
            httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        with pytest.raises(NetworkError) as exc_info:
            await client.request("/municipality")

        assert exc_info.value.code == "NETWORK_ERROR"
        assert len(httpx_mock.get_requests()) == 4

    @pytest.mark.asyncio
    async def test_every_attempt_goes_through_limiter(self, client, httpx_mock, make_page):
        httpx_mock.add_exception(httpx.ReadTimeout("slow"))
        httpx_mock.add_response(json=make_page([]))

        await client.request("/kpi")

        assert client.limiter.scheduled == 2


class TestPagination:
    @pytest.mark.asyncio
    async def test_fetch_all_follows_next_page(self, client, httpx_mock, make_page):
        """Pages of 10, 10 and 5 records flatten into 25 records in order."""
        page2 = f"{BASE_URL}/kpi?page=2&per_page=10"
        page3 = f"{BASE_URL}/kpi?page=3&per_page=10"
        httpx_mock.add_response(json=make_page(records(0, 10), next_page=page2, count=25))
        httpx_mock.add_response(json=make_page(records(10, 20), next_page=page3, count=25))
        httpx_mock.add_response(json=make_page(records(20, 25), count=25))

        result = await client.fetch_all("/kpi", {"per_page": 10})

        assert [r["id"] for r in result] == [f"N{i:05d}" for i in range(25)]
        requests = httpx_mock.get_requests()
        assert len(requests) == 3
        assert requests[0].url.params["per_page"] == "10"
        assert str(requests[1].url) == page2
        assert str(requests[2].url) == page3

    @pytest.mark.asyncio
    async def test_walk_pages_yields_batches_and_skips_empty_pages(
        self, client, httpx_mock, make_page
    ):
        page2 = f"{BASE_URL}/municipality?page=2"
        page3 = f"{BASE_URL}/municipality?page=3"
        httpx_mock.add_response(json=make_page(records(0, 3), next_page=page2))
        httpx_mock.add_response(json=make_page([], next_page=page3))
        httpx_mock.add_response(json=make_page(records(3, 5)))

        batches = [batch async for batch in client.walk_pages("/municipality")]

        assert [len(batch) for batch in batches] == [3, 2]

    @pytest.mark.asyncio
    async def test_single_page(self, client, httpx_mock, make_page):
        httpx_mock.add_response(json=make_page(records(0, 4)))

        assert len(await client.fetch_all("/kpi")) == 4

    @pytest.mark.asyncio
    async def test_empty_collection(self, client, httpx_mock, make_page):
        httpx_mock.add_response(json=make_page([]))

        assert await client.fetch_all("/kpi", {"title": "nothing"}) == []

    @pytest.mark.asyncio
    async def test_pagination_loop_is_detected(self, client, httpx_mock, make_page):
        page2 = f"{BASE_URL}/kpi?page=2"
        httpx_mock.add_response(json=make_page(records(0, 2), next_page=page2))
        httpx_mock.add_response(json=make_page(records(2, 4), next_page=page2))

        with pytest.raises(UpstreamError, match="pagination loop"):
            await client.fetch_all("/kpi")

        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_link_back_to_first_page_is_detected(self, client, httpx_mock, make_page):
        httpx_mock.add_response(
            json=make_page(records(0, 2), next_page=f"{BASE_URL}/kpi?title=skola")
        )

        with pytest.raises(UpstreamError, match="pagination loop"):
            await client.fetch_all("/kpi", {"title": "skola"})

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_error_on_later_page_propagates(self, client, httpx_mock, make_page):
        page2 = f"{BASE_URL}/kpi?page=2"
        httpx_mock.add_response(json=make_page(records(0, 2), next_page=page2))
        httpx_mock.add_response(status_code=503)

        with pytest.raises(UpstreamError):
            await client.fetch_all("/kpi")


class TestBatchFetch:
    @pytest.mark.asyncio
    async def test_57_ids_make_three_requests(self, client, httpx_mock, make_page):
        ids = [f"N{i:05d}" for i in range(57)]
        httpx_mock.add_response(json=make_page(records(0, 25)))
        httpx_mock.add_response(json=make_page(records(25, 50)))
        httpx_mock.add_response(json=make_page(records(50, 57)))

        result = await client.batch_fetch("/kpi", ids)

        requests = httpx_mock.get_requests()
        assert [len(r.url.params["id"].split(",")) for r in requests] == [25, 25, 7]
        assert requests[0].url.params["id"].split(",") == ids[:25]
        assert [r["id"] for r in result] == ids

    @pytest.mark.asyncio
    async def test_custom_id_param_and_extra_params(self, client, httpx_mock, make_page):
        httpx_mock.add_response(json=make_page([]))

        await client.batch_fetch(
            "/data", ["0180", "1480"], id_param="municipality", params={"kpi": "N15033"}
        )

        request = httpx_mock.get_request()
        assert request.url.params["municipality"] == "0180,1480"
        assert request.url.params["kpi"] == "N15033"

    @pytest.mark.asyncio
    async def test_concurrent_chunks_keep_chunk_order(self, client, httpx_mock):
        def respond(request: httpx.Request) -> httpx.Response:
            ids = request.url.params["id"].split(",")
            return httpx.Response(
                200, json={"values": [{"id": i, "title": i} for i in ids], "count": len(ids)}
            )

        httpx_mock.add_callback(respond, is_reusable=True)
        ids = [f"N{i:05d}" for i in range(30)]

        result = await client.batch_fetch("/kpi", ids, max_batch_size=10, concurrent=True)

        assert [r["id"] for r in result] == ids
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_concurrent_chunks_share_the_rate_limiter(self, client, httpx_mock, fake_clock):
        def respond(request: httpx.Request) -> httpx.Response:
            ids = request.url.params["id"].split(",")
            return httpx.Response(200, json={"values": [{"id": i} for i in ids]})

        httpx_mock.add_callback(respond, is_reusable=True)
        ids = [f"N{i:05d}" for i in range(30)]

        await client.batch_fetch("/kpi", ids, max_batch_size=10, concurrent=True)

        assert client.limiter.scheduled == 3
        # Start-to-start spacing holds even when chunks are gathered
        assert fake_clock.sleeps == pytest.approx([0.2, 0.2])

    @pytest.mark.asyncio
    async def test_no_ids_makes_no_request(self, client, httpx_mock):
        assert await client.batch_fetch("/kpi", []) == []
        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self, client):
        with pytest.raises(InvalidInputError):
            await client.batch_fetch("/kpi", ["N00001"], max_batch_size=0)


class TestChunked:
    def test_partitions_in_order(self):
        assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]

    def test_exact_multiple(self):
        assert chunked(["a", "b"], 2) == [["a", "b"]]

    def test_empty(self):
        assert chunked([], 25) == []

    def test_rejects_non_positive_size(self):
        with pytest.raises(InvalidInputError):
            chunked(["a"], 0)
