# tests/test_graph_client.py
from http import HTTPStatus
from typing import Any, Dict, Optional

import httpx
import pytest

from inyourface.services.graph_client import GraphClient, GraphClientError


class _FakeResponse:
    def __init__(self, status_code: int, json_data: Dict[str, Any]):
        self.status_code = status_code
        self._json_data = json_data
        self.text = str(json_data)

    def json(self) -> Dict[str, Any]:
        return self._json_data


class _FakeAsyncClient:
    """
    Minimal stand-in for httpx.AsyncClient used in tests.
    """

    last_request: Dict[str, Any] = {}
    token_call_count: int = 0
    graph_call_count: int = 0

    def __init__(self, timeout: float | None = None):
        self._timeout = timeout

    async def __aenter__(self) -> "_FakeAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def post(self, url: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> _FakeResponse:
        _FakeAsyncClient.token_call_count += 1
        return _FakeResponse(
            status_code=HTTPStatus.OK,
            json_data={"access_token": "fake-token-123", "expires_in": 300},
        )

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> _FakeResponse:
        _FakeAsyncClient.last_request = {
            "method": method,
            "url": url,
            "headers": headers,
            "params": params,
        }
        _FakeAsyncClient.graph_call_count += 1
        return _FakeResponse(status_code=HTTPStatus.OK, json_data={"ok": True})


def _client(**kwargs) -> GraphClient:
    return GraphClient(
        tenant_id="tenant-123",
        client_id="client-123",
        client_secret="secret-xyz",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_graph_client_fetches_and_caches_token(monkeypatch):
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)
    client = _client()
    _FakeAsyncClient.token_call_count = 0

    token1 = await client.get_access_token()
    token2 = await client.get_access_token()

    assert token1 == token2 == "fake-token-123"
    assert _FakeAsyncClient.token_call_count == 1


@pytest.mark.asyncio
async def test_get_json_builds_url_and_merges_headers(monkeypatch):
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)
    client = _client(base_url="https://graph.microsoft.com/")

    data = await client.get_json(
        "/v1.0/users/me@test.com/calendarView",
        params={"$top": 5},
        headers={"Prefer": 'outlook.timezone="UTC"'},
    )

    assert data == {"ok": True}
    last = _FakeAsyncClient.last_request
    assert last["method"] == "GET"
    assert last["url"] == "https://graph.microsoft.com/v1.0/users/me@test.com/calendarView"
    assert last["headers"]["Authorization"] == "Bearer fake-token-123"
    assert last["headers"]["Prefer"] == 'outlook.timezone="UTC"'


@pytest.mark.asyncio
async def test_get_json_uses_absolute_next_links_verbatim(monkeypatch):
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)
    client = _client()

    await client.get_json("https://graph.microsoft.com/v1.0/next?$skip=10")

    assert _FakeAsyncClient.last_request["url"] == "https://graph.microsoft.com/v1.0/next?$skip=10"


@pytest.mark.asyncio
async def test_graph_client_raises_on_bad_token_response(monkeypatch):
    class _BadTokenClient(_FakeAsyncClient):
        async def post(self, url: str, data=None, **kwargs) -> _FakeResponse:
            return _FakeResponse(HTTPStatus.BAD_REQUEST, {"error": "invalid_client"})

    monkeypatch.setattr(httpx, "AsyncClient", _BadTokenClient)

    with pytest.raises(GraphClientError):
        await _client().get_access_token()


@pytest.mark.asyncio
async def test_graph_client_raises_on_error_status(monkeypatch):
    class _ForbiddenClient(_FakeAsyncClient):
        async def request(self, method, url, headers=None, params=None, json=None):
            return _FakeResponse(HTTPStatus.FORBIDDEN, {"error": "Authorization_RequestDenied"})

    monkeypatch.setattr(httpx, "AsyncClient", _ForbiddenClient)

    with pytest.raises(GraphClientError):
        await _client().get_json("/v1.0/users/x/calendarView")


def test_graph_client_requires_credentials():
    with pytest.raises(ValueError):
        GraphClient(tenant_id="", client_id="c", client_secret="s")
