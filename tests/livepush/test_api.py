"""Tests for the inbound query API."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from livepush.api import create_app
from livepush.coordinator import QueryResponse, ResponseStatus
from livepush.exceptions import InvalidQueryError


class StubService:
    """Stands in for QueryService and records what the endpoint passed on."""

    def __init__(self, response: QueryResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or QueryResponse(ResponseStatus.OK, hash="h1", data={"classes": []})
        self.error = error
        self.calls: list[tuple[str, dict[str, Any], str | None]] = []

    async def handle(self, method, params=None, last_hash=None) -> QueryResponse:
        self.calls.append((method, dict(params or {}), last_hash))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def service() -> StubService:
    return StubService()


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


class TestApi:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "ok"}

    def test_query_forwards_params(self, client, service) -> None:
        response = client.get(
            "/api",
            params={"method": "getclassresults", "comp": "10278", "class": "H21", "last_hash": "h0"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "hash": "h1", "data": {"classes": []}}
        assert service.calls == [
            ("getclassresults", {"comp": "10278", "class": "H21", "club": None}, "h0"),
        ]

    def test_unchanged_has_no_data(self) -> None:
        stub = StubService(QueryResponse(ResponseStatus.UNCHANGED, hash="h1"))
        response = TestClient(create_app(stub)).get("/api", params={"method": "getclasses", "comp": "1"})
        assert response.status_code == 200
        assert response.json() == {"status": "unchanged", "hash": "h1"}

    def test_missing_method(self, client, service) -> None:
        response = client.get("/api", params={"comp": "10278"})
        assert response.status_code == 400
        assert service.calls == []

    def test_invalid_query(self) -> None:
        stub = StubService(error=InvalidQueryError("Unsupported method: getsplits"))
        response = TestClient(create_app(stub)).get("/api", params={"method": "getsplits"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported method: getsplits"

    def test_upstream_error(self) -> None:
        stub = StubService(QueryResponse(ResponseStatus.ERROR, error="HTTP 500: down"))
        response = TestClient(create_app(stub)).get(
            "/api", params={"method": "getclassresults", "comp": "1", "class": "H21"},
        )
        assert response.status_code == 502
        assert response.json() == {"status": "error", "hash": None, "error": "HTTP 500: down"}
