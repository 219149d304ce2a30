"""Tests for the PostgREST store adapter (httpx.MockTransport, no network)."""

import json
from collections.abc import Callable

import httpx
import pytest

from salary_stats.core.config import StoreConfig
from salary_stats.store.base import DataAccessError
from salary_stats.store.postgrest import PostgrestSalaryStore, build_client

BASE_URL = "https://demo.supabase.co/rest/v1/"

Handler = Callable[[httpx.Request], httpx.Response]


def _store(handler: Handler) -> tuple[PostgrestSalaryStore, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(recording))
    return PostgrestSalaryStore(client, "salaries"), seen


class TestSelect:
    async def test_builds_postgrest_query(self) -> None:
        store, seen = _store(lambda r: httpx.Response(200, json=[]))

        await store.select(
            equals={"formation": "Master", "contract_type": "Prestation de service"},
            members={"years_since_graduation": [1, 3]},
        )

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/salaries"
        params = request.url.params
        assert params["select"] == "*"
        assert params["formation"] == "eq.Master"
        assert params["contract_type"] == "eq.Prestation de service"
        assert params["years_since_graduation"] == "in.(1,3)"
        assert params["order"] == "created_at.desc"

    async def test_empty_membership_not_sent(self) -> None:
        store, seen = _store(lambda r: httpx.Response(200, json=[]))
        await store.select(equals={}, members={"years_since_graduation": []})
        assert "years_since_graduation" not in seen[0].url.params

    async def test_returns_rows(self) -> None:
        rows = [{"id": "1", "salary": "300000"}, {"id": "2", "salary": 250000}]
        store, _ = _store(lambda r: httpx.Response(200, json=rows))
        assert await store.select(equals={}, members={}) == rows

    async def test_no_match_is_empty_list(self) -> None:
        store, _ = _store(lambda r: httpx.Response(200, json=[]))
        assert await store.select(equals={"formation": "DIT"}, members={}) == []

    async def test_http_error_status(self) -> None:
        store, _ = _store(lambda r: httpx.Response(401, json={"message": "Invalid API key"}))
        with pytest.raises(DataAccessError, match="HTTP 401"):
            await store.select(equals={}, members={})

    async def test_transport_error(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store, _ = _store(fail)
        with pytest.raises(DataAccessError, match="connection refused"):
            await store.select(equals={}, members={})

    async def test_non_list_payload(self) -> None:
        store, _ = _store(lambda r: httpx.Response(200, json={"rows": []}))
        with pytest.raises(DataAccessError, match="Expected a list"):
            await store.select(equals={}, members={})

    async def test_invalid_json(self) -> None:
        store, _ = _store(lambda r: httpx.Response(200, content=b"<html>"))
        with pytest.raises(DataAccessError, match="Malformed"):
            await store.select(equals={}, members={})


class TestInsert:
    async def test_posts_row(self) -> None:
        store, seen = _store(lambda r: httpx.Response(201))
        await store.insert({"formation": "DIC", "salary": 200_000})

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/salaries"
        assert request.headers["Prefer"] == "return=minimal"
        assert json.loads(request.content) == {"formation": "DIC", "salary": 200_000}

    async def test_constraint_violation(self) -> None:
        store, _ = _store(lambda r: httpx.Response(400, json={"message": "violates check constraint"}))
        with pytest.raises(DataAccessError, match="check constraint"):
            await store.insert({"salary": -1})


class TestBuildClient:
    async def test_headers_and_base_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        client = build_client(StoreConfig(url="https://demo.supabase.co/", timeout_s=5))
        try:
            assert str(client.base_url) == BASE_URL
            assert client.headers["apikey"] == "anon-key"
            assert client.headers["Authorization"] == "Bearer anon-key"
        finally:
            await client.aclose()

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError, match="store.url"):
            build_client(StoreConfig())

    def test_requires_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        with pytest.raises(ValueError, match="SUPABASE_ANON_KEY"):
            build_client(StoreConfig(url="https://demo.supabase.co"))
