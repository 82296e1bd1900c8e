"""
API contract tests for the BookGraph API.

These tests validate status codes and response shapes of every endpoint.
The document store is replaced by the in-memory FakeDocumentRepository
through FastAPI dependency overrides, so no database is needed.
"""

from __future__ import annotations

import logging

import pytest
from starlette.testclient import TestClient

from bookgraph.api.dependencies import get_repository
import bookgraph.api.main as api_main
from bookgraph.api.main import create_app
from bookgraph.core.exceptions import StoreQueryError


@pytest.fixture
def app(settings, scenario_repository):
    app = create_app(settings=settings)
    app.dependency_overrides[get_repository] = lambda: scenario_repository
    return app


@pytest.fixture
def client(app):
    """Create a sync test client for the FastAPI app.

    Uses Starlette's TestClient which handles the async lifespan
    and provides a synchronous interface for test simplicity.
    """
    with TestClient(app) as c:
        yield c


# =========================================================================
# Health endpoints
# =========================================================================


class TestHealthEndpoints:
    def test_health_basic(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_health_db_without_database(self, client):
        r = client.get("/health/db")
        assert r.status_code == 503
        data = r.json()
        assert data["status"] == "unhealthy"
        assert data["database"] == "disconnected"

    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        data = r.json()
        assert data["name"] == "BookGraph API"
        assert "/graph" in data["endpoints"]


# =========================================================================
# Graph endpoint
# =========================================================================


class TestGraphContract:
    def test_graph_shape(self, client):
        r = client.get("/graph", params={"book_id": "B1", "match_threshold": 0.0})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("application/json")
        assert "X-Process-Time" in r.headers

        data = r.json()
        assert set(data) == {"nodes", "links"}
        for node in data["nodes"]:
            assert set(node) == {"id", "metadata", "group"}
            assert set(node["metadata"]) == {"id", "data"}
        for link in data["links"]:
            assert set(link) == {"source", "target", "value"}
            assert link["value"] == 1

    def test_graph_scenario(self, client):
        r = client.get("/graph", params={"book_id": "B1", "match_threshold": 0.0, "top_n": 3})
        data = r.json()

        assert [n["metadata"]["id"] for n in data["nodes"]] == ["B1", "B2", "B3"]
        assert [n["group"] for n in data["nodes"]] == ["PR", "PR", "PS"]
        assert [(l["source"], l["target"]) for l in data["links"]] == [
            ("Pride and Prejudice", "Emma"),
            ("Pride and Prejudice", "Moby Dick"),
            ("Pride and Prejudice", "Emma"),
        ]
        assert data["nodes"][0]["metadata"]["data"]["title"] == "Pride and Prejudice"

    def test_default_threshold_filters_weak_matches(self, client):
        # Moby Dick's best similarity (0.5) is below the 0.75 default
        r = client.get("/graph", params={"book_id": "B1"})
        assert r.status_code == 200
        assert [n["metadata"]["id"] for n in r.json()["nodes"]] == ["B1", "B2"]

    def test_top_n_zero_gives_selected_book_only(self, client):
        r = client.get("/graph", params={"book_id": "B1", "top_n": 0})
        assert r.status_code == 200
        data = r.json()
        assert len(data["nodes"]) == 1
        assert data["links"] == []

    def test_book_without_fragments(self, client, scenario_repository):
        scenario_repository.add_book("B9", "Unindexed", "QA", fragments=[])

        r = client.get("/graph", params={"book_id": "B9"})
        assert r.status_code == 200
        assert r.json() == {
            "nodes": [
                {
                    "id": "Unindexed",
                    "metadata": {
                        "id": "B9",
                        "data": {"book_id": "B9", "title": "Unindexed", "locc": "QA"},
                    },
                    "group": "QA",
                }
            ],
            "links": [],
        }

    def test_repeated_requests_are_identical(self, client):
        params = {"book_id": "B1", "match_threshold": 0.0}
        assert client.get("/graph", params=params).json() == client.get("/graph", params=params).json()

    def test_parameters_reach_the_store(self, client, scenario_repository):
        client.get("/graph", params={"book_id": "B1", "match_threshold": 0.6, "top_n": 5})
        assert {call[1:] for call in scenario_repository.similar_calls} == {(0.6, 5, "B1")}


class TestGraphErrors:
    def test_missing_book_id(self, client):
        r = client.get("/graph")
        assert r.status_code == 400
        assert r.json() == {"error": "Missing book_id parameter"}

    def test_blank_book_id(self, client):
        r = client.get("/graph", params={"book_id": ""})
        assert r.status_code == 400
        assert r.json() == {"error": "Missing book_id parameter"}

    def test_unknown_book(self, client):
        r = client.get("/graph", params={"book_id": "nope"})
        assert r.status_code == 404
        assert r.json() == {"error": "Book not found"}

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch"])
    def test_method_not_allowed(self, client, method):
        r = getattr(client, method)("/graph", params={"book_id": "B1"})
        assert r.status_code == 405
        assert r.json() == {"error": "Method not allowed"}

    def test_invalid_threshold(self, client):
        r = client.get("/graph", params={"book_id": "B1", "match_threshold": "high"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid match_threshold parameter"}

    def test_threshold_out_of_range(self, client):
        r = client.get("/graph", params={"book_id": "B1", "match_threshold": 1.5})
        assert r.status_code == 400

    def test_negative_top_n(self, client):
        r = client.get("/graph", params={"book_id": "B1", "top_n": -1})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid top_n parameter"}

    def test_store_failure_is_500_with_message(self, client, scenario_repository):
        scenario_repository.fail_similar = StoreQueryError("Get similar books: connection reset")

        r = client.get("/graph", params={"book_id": "B1"})
        assert r.status_code == 500
        assert r.json() == {"error": "Get similar books: connection reset"}

    def test_selected_book_without_category_is_500(self, client, scenario_repository):
        scenario_repository.add_book("B8", "No Class", locc=None, fragments=[])

        r = client.get("/graph", params={"book_id": "B8"})
        assert r.status_code == 500
        assert "locc" in r.json()["error"]

    def test_related_metadata_failure_is_skipped(self, client, scenario_repository):
        scenario_repository.fail_metadata["B3"] = StoreQueryError("Error fetching metadata for book ID B3: boom")

        r = client.get("/graph", params={"book_id": "B1", "match_threshold": 0.0})
        assert r.status_code == 200
        assert [n["metadata"]["id"] for n in r.json()["nodes"]] == ["B1", "B2"]

    def test_timeout_is_500(self, settings, scenario_repository):
        app = create_app(settings=settings.model_copy(update={"request_timeout": 0.05}))
        app.dependency_overrides[get_repository] = lambda: scenario_repository
        scenario_repository.similar_delay = 1.0

        with TestClient(app) as client:
            r = client.get("/graph", params={"book_id": "B1"})
        assert r.status_code == 500
        assert r.json() == {"error": "Graph computation timed out after 0.05 seconds"}

    def test_no_database_configured_is_500(self, settings):
        app = create_app(settings=settings)

        with TestClient(app, raise_server_exceptions=False) as client:
            r = client.get("/graph", params={"book_id": "B1"})
        assert r.status_code == 500
        assert "error" in r.json()


class _StubPool:
    def __init__(self):
        self.opened = False
        self.closed = False

    async def initialize(self):
        self.opened = True

    async def close(self):
        self.closed = True


class TestLifespan:
    def test_opens_and_closes_configured_pool(self, settings, monkeypatch, caplog):
        pool = _StubPool()
        monkeypatch.setattr(api_main.AsyncPostgresDB, "from_settings", classmethod(lambda cls, s: pool))
        caplog.set_level(logging.INFO, logger="bookgraph.api.main")
        configured = settings.model_copy(
            update={
                "database_url": "postgresql://localhost/books",
                "database_pool_min_size": 3,
                "database_pool_size": 7,
            }
        )
        app = create_app(settings=configured)

        with TestClient(app):
            assert app.state.db is pool
            assert pool.opened

        assert pool.closed
        assert app.state.db is None
        assert "Database connection pool opened (min_size=3, max_size=7)" in caplog.text
