from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from servicedesk.core.errors import FetchFailure
from servicedesk.infrastructure.http_store import HttpRequestStore

BASE_URL = "http://store.test/api"


def _store(handler) -> HttpRequestStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpRequestStore(BASE_URL, http_client=client)


def test_fetch_records_by_month_hits_month_endpoint():
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        return httpx.Response(200, json=[{"id": 1, "issue": "Printer Jam"}, "junk"])

    rows = asyncio.run(_store(handler).fetch_records_by_month("m-7"))

    assert captured["url"] == f"{BASE_URL}/year/get-request/m-7"
    assert rows == [{"id": 1, "issue": "Printer Jam"}]


def test_fetch_records_recent_sends_paging_and_unwraps_data():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": [{"id": 5}, {"id": 4}]})

    rows = asyncio.run(_store(handler).fetch_records_recent(100, 0))

    assert captured["path"] == "/api/year/get-all-softrequest"
    assert captured["params"] == {"limit": "100", "offset": "0"}
    assert [row["id"] for row in rows] == [5, 4]


def test_fetch_months_and_years():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/month/getByYear/y1"):
            return httpx.Response(
                200,
                json=[
                    {"id": "m2", "month": "February"},
                    {"id": "m1", "month": "January"},
                    {"month": "orphan"},
                    {"id": "m13", "month": "Extra"},
                ],
            )
        if request.url.path.endswith("/year/get-year"):
            return httpx.Response(200, json=[{"id": "y1", "year": "2024"}, {"id": "bad"}])
        return httpx.Response(404)

    async def scenario():
        store = _store(handler)
        return await store.fetch_months_of_year("y1"), await store.fetch_years()

    months, years = asyncio.run(scenario())

    assert [(ref.id, ref.index) for ref in months] == [("m2", 1), ("m1", 0), ("m13", 3)]
    assert [(ref.id, ref.year) for ref in years] == [("y1", 2024)]


def test_http_errors_become_fetch_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/year/get-year"):
            return httpx.Response(500, json={"message": "boom"})
        if request.url.path.endswith("/month/getByYear/y1"):
            return httpx.Response(200, text="<html>")
        raise httpx.ConnectError("connection refused", request=request)

    store = _store(handler)

    with pytest.raises(FetchFailure, match="500"):
        asyncio.run(store.fetch_years())
    with pytest.raises(FetchFailure, match="undecodable"):
        asyncio.run(store.fetch_months_of_year("y1"))
    with pytest.raises(FetchFailure, match="failed"):
        asyncio.run(store.fetch_records_by_month("m1"))


def test_non_list_payload_is_a_fetch_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(FetchFailure, match="expected a list"):
        asyncio.run(_store(handler).fetch_records_by_month("m1"))


def test_base_url_requires_scheme():
    with pytest.raises(ValueError):
        HttpRequestStore("localhost:5000/api")
