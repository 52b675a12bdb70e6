"""Tests for the read-only resources."""

import json

import pytest

from kolada_gateway.errors import NotFoundError
from kolada_gateway.tools import RESOURCES, list_resources, read_resource


def test_list_resources():
    uris = [resource["uri"] for resource in list_resources()]
    assert uris == ["kolada://municipalities", "kolada://kpi-catalog", "kolada://api-info"]
    assert list_resources()[2]["mimeType"] == "text/markdown"
    assert len(RESOURCES) == 3


@pytest.mark.asyncio
async def test_read_municipalities(gateway, httpx_mock, make_page):
    httpx_mock.add_response(json=make_page([{"id": "0180", "title": "Stockholm", "type": "K"}]))

    result = await read_resource(gateway, "kolada://municipalities")

    content = result["contents"][0]
    body = json.loads(content["text"])
    assert content["mimeType"] == "application/json"
    assert body["count"] == 1
    assert body["municipalities"][0]["type_description"] == "Kommun (Municipality)"


@pytest.mark.asyncio
async def test_read_kpi_catalog_shares_cache_with_tools(gateway, httpx_mock, make_page):
    httpx_mock.add_response(json=make_page([{"id": "N15033", "title": "Behörighet"}]))

    await gateway.kpi_catalog()
    result = await read_resource(gateway, "kolada://kpi-catalog")

    assert json.loads(result["contents"][0]["text"])["kpis"][0]["id"] == "N15033"
    assert len(httpx_mock.get_requests()) == 1


@pytest.mark.asyncio
async def test_read_api_info_reflects_settings(gateway, httpx_mock):
    result = await read_resource(gateway, "kolada://api-info")

    text = result["contents"][0]["text"]
    assert "https://api.kolada.se/v3" in text
    assert "At most 5 requests per second" in text
    assert "At most 25 IDs per request" in text
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_unknown_resource(gateway):
    with pytest.raises(NotFoundError, match="Unknown resource"):
        await read_resource(gateway, "kolada://nope")
