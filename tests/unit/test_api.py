"""
Unit Tests for API Routes

Runs the FastAPI app with TestClient over an in-memory backend whose HTTP
client is backed by a MockTransport.
"""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from conftest import NO_RESULTS_HTML, RESULTS_HTML, make_client

from main import create_app
from spyglass.core.backend import SearchBackend

PAGES = {
    "books.example.com?q=foo bar": RESULTS_HTML,
    "books.example.com?q=asdfghjklqwerty12345": NO_RESULTS_HTML,
    "books.example.com?q=the": RESULTS_HTML,
    "books.example.com?q=of": RESULTS_HTML,
}


@pytest.fixture
def backend(test_settings):
    return SearchBackend.from_settings(test_settings, client=make_client(PAGES))


@pytest.fixture
def client(backend):
    with TestClient(create_app(backend)) as test_client:
        yield test_client


def ndjson(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


class TestStatusEndpoints:
    """Tests for / and /health."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["status"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSearchEndpoint:
    """Tests for GET /api/search."""

    def test_streams_ndjson_results(self, backend, client, sample_link):
        asyncio.run(backend.link_store.upsert_many([sample_link]))

        response = client.get("/api/search", params={"query": "foo bar"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        results = ndjson(response)
        assert {r["title"] for r in results} == {"Foo", "Foo Bar"}
        assert all("resultUrl" in r and "websiteTitle" in r for r in results)

    def test_repeat_query_is_sorted_replay(self, backend, client, sample_link):
        asyncio.run(backend.link_store.upsert_many([sample_link]))

        client.get("/api/search", params={"query": "foo bar"})
        response = client.get("/api/search", params={"query": "foo bar"})

        assert [r["title"] for r in ndjson(response)] == ["Foo Bar", "Foo"]

    def test_empty_catalog_returns_empty_stream(self, client):
        response = client.get("/api/search", params={"query": "dune"})
        assert response.status_code == 200
        assert ndjson(response) == []

    def test_blank_query_rejected(self, client):
        response = client.get("/api/search", params={"query": "   "})
        assert response.status_code == 400

    def test_missing_query_rejected(self, client):
        response = client.get("/api/search")
        assert response.status_code == 422


class TestCatalogEndpoints:
    """Tests for /api/links and /api/results."""

    def test_list_links(self, backend, client, sample_link):
        asyncio.run(backend.link_store.upsert_many([sample_link]))

        response = client.get("/api/links")

        assert response.status_code == 200
        assert response.json()[0]["cardSelector"] == "ul > li.card"

    def test_rebuild_missing_file(self, client, tmp_path):
        response = client.post("/api/links/rebuild", json={"path": str(tmp_path / "missing.json")})
        assert response.status_code == 404

    def test_rebuild_runs_in_background(self, client, tmp_path):
        path = tmp_path / "search_links.json"
        path.write_text(json.dumps([{
            "title": "Example Books",
            "url": "https://books.example.com",
            "category": "Books",
            "searchUrl": "https://books.example.com/search?q={query}",
        }]))

        response = client.post("/api/links/rebuild", json={"path": str(path)})

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        links = client.get("/api/links").json()
        assert [link["cardSelector"] for link in links] == ["ul > li.card"]

    def test_clear_results(self, backend, client, sample_link):
        asyncio.run(backend.link_store.upsert_many([sample_link]))
        client.get("/api/search", params={"query": "foo bar"})

        response = client.delete("/api/results")

        assert response.status_code == 200
        assert response.json() == {"status": "success", "removed": 1}


class TestMiddleware:
    """Tests for request logging and error mapping."""

    @pytest.fixture
    def failing_client(self, backend):
        app = create_app(backend)

        @app.get("/raise/value")
        async def raise_value():
            raise ValueError("bad selector")

        @app.get("/raise/runtime")
        async def raise_runtime():
            raise RuntimeError("boom")

        with TestClient(app) as test_client:
            yield test_client

    def test_response_time_header(self, client):
        response = client.get("/health")
        assert float(response.headers["X-Response-Time"]) >= 0

    def test_value_error_maps_to_400(self, failing_client):
        response = failing_client.get("/raise/value")
        assert response.status_code == 400
        assert response.json()["message"] == "bad selector"

    def test_unhandled_error_maps_to_500(self, failing_client):
        response = failing_client.get("/raise/runtime")
        assert response.status_code == 500
        assert response.json()["status"] == "error"
