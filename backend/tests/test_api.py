"""
HTTP-level tests for the sources and chat routes.
"""
import pytest
from fastapi.testclient import TestClient

from app.core.db import get_db
from app.main import app
from app.services import query_generation
from app.models.chat_query import ChatQuery
from app.services.connectors import ParallelExtractConnector, get_extract_connector

from tests.fixtures.extraction_fixtures import (
    LONG_SPECIFIC_QUESTION,
    FakeExtractConnector,
    source_urls,
)


@pytest.fixture
def connector():
    return FakeExtractConnector()


@pytest.fixture
def client(db, connector, monkeypatch):
    def _get_db():
        yield db

    def _no_llm():
        raise RuntimeError("No LLM API key configured. Set PARALLEL_API_KEY.")

    monkeypatch.setattr(query_generation, "get_llm_client", _no_llm)
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_extract_connector] = lambda: connector
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestSourcesRoutes:

    def test_add_and_list(self, client, connector):
        resp = client.post("/api/sources", json={"urls": ["https://Example.com/a/", "https://example.com/b"]})

        assert resp.status_code == 200
        body = resp.json()
        assert body["added"] == 2
        assert {s["url"] for s in body["sources"]} == {"https://example.com/a", "https://example.com/b"}
        assert all(s["latest_extracted_page_id"] is not None for s in body["sources"])
        assert len(connector.calls) == 1

        listed = client.get("/api/sources").json()["sources"]
        assert len(listed) == 2

    @pytest.mark.parametrize("payload", [{}, {"urls": []}, {"urls": ["   "]}, {"urls": ["not a url"]}])
    def test_add_rejects_bad_input(self, client, connector, payload):
        resp = client.post("/api/sources", json=payload)

        assert resp.status_code == 400
        assert connector.calls == []

    def test_add_extraction_failure_is_bad_gateway(self, client, connector):
        connector.fail_on_call = 1

        resp = client.post("/api/sources", json={"urls": ["https://example.com/a"]})

        assert resp.status_code == 502

    def test_deactivate_and_filter(self, client):
        client.post("/api/sources", json={"urls": source_urls(2), "run_extract": False})

        resp = client.post("/api/sources/deactivate", json={"urls": [source_urls(2)[0]]})
        assert resp.status_code == 200
        flags = {s["url"]: s["is_active"] for s in resp.json()["sources"]}
        assert flags == {source_urls(2)[0]: False, source_urls(2)[1]: True}

        active = client.get("/api/sources", params={"include_inactive": False}).json()["sources"]
        assert [s["url"] for s in active] == [source_urls(2)[1]]

    def test_deactivate_requires_urls(self, client):
        assert client.post("/api/sources/deactivate", json={"urls": []}).status_code == 400

    def test_refresh_counts(self, client, connector):
        client.post("/api/sources", json={"urls": source_urls(3), "run_extract": False})
        connector.error_urls = {source_urls(3)[0]}

        resp = client.post("/api/sources/refresh")

        assert resp.status_code == 200
        assert resp.json() == {"extracted": 2, "errors": 1}


class TestChatRoute:

    def test_chat_returns_evidence(self, client, connector):
        client.post("/api/sources", json={"urls": source_urls(2), "run_extract": False})

        resp = client.post("/api/chat", json={"question": LONG_SPECIFIC_QUESTION})

        assert resp.status_code == 200
        body = resp.json()
        assert body["decision"]["mode"] == "objective_only"
        assert body["search_queries"] is None
        assert [e["url"] for e in body["evidence"]] == source_urls(2)
        assert body["message"] is None

    def test_unconfigured_generation_degrades(self, client, connector):
        client.post("/api/sources", json={"urls": source_urls(1), "run_extract": False})

        body = client.post("/api/chat", json={"question": "pricing?"}).json()

        assert body["decision"]["mode"] == "objective_only"
        assert body["decision"]["signals"]["generation_failed"] is True
        assert connector.calls[0]["search_queries"] is None

    def test_no_evidence_message(self, client, connector):
        client.post("/api/sources", json={"urls": source_urls(1), "run_extract": False})
        connector.error_urls = set(source_urls(1))

        body = client.post("/api/chat", json={"question": LONG_SPECIFIC_QUESTION}).json()

        assert body["evidence"] == []
        assert body["message"]

    def test_blank_question(self, client):
        resp = client.post("/api/chat", json={"question": "  "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Question required"

    def test_no_sources(self, client):
        resp = client.post("/api/chat", json={"question": "pricing?"})
        assert resp.status_code == 400

    def test_question_too_long(self, client):
        resp = client.post("/api/chat", json={"question": "x" * 4001})
        assert resp.status_code == 422

    def test_missing_extract_key_is_bad_gateway(self, client, db):
        client.post("/api/sources", json={"urls": source_urls(1), "run_extract": False})
        unconfigured = ParallelExtractConnector()
        unconfigured.api_key = None
        app.dependency_overrides[get_extract_connector] = lambda: unconfigured

        resp = client.post("/api/chat", json={"question": LONG_SPECIFIC_QUESTION})

        assert resp.status_code == 502
        assert "PARALLEL_API_KEY" in resp.json()["detail"]
        assert db.query(ChatQuery).count() == 1
