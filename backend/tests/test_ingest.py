"""
Tests for ingest.py - adding sources, refresh and the periodic Celery task.
"""
import os
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from app.models.extract_run import ExtractRun, ExtractTrigger
from app.models.source import Source
from app.services import ingest
from app.services.ingest import BASELINE_OBJECTIVE, add_sources, refresh_sources
from app.services.source_registry import SourceRegistry
from app.services.urls import InvalidUrl

from tests.fixtures.extraction_fixtures import FakeExtractConnector, source_urls


class TestAddSources:

    @pytest.mark.parametrize("raw", [None, [], "https://example.com", {"url": "x"}])
    def test_missing_or_empty_list(self, db, raw):
        with pytest.raises(ValueError, match="urls array required"):
            add_sources(db, raw, connector=FakeExtractConnector())

    def test_no_usable_strings(self, db):
        with pytest.raises(ValueError, match="At least one valid URL required"):
            add_sources(db, ["  ", 42, None], connector=FakeExtractConnector())

    def test_invalid_url_writes_nothing(self, db):
        connector = FakeExtractConnector()
        with pytest.raises(InvalidUrl):
            add_sources(db, ["https://example.com/ok", "not a url"], connector=connector)

        assert db.query(Source).count() == 0
        assert connector.calls == []

    def test_baseline_extraction(self, db):
        connector = FakeExtractConnector()

        result = add_sources(db, source_urls(3), connector=connector)

        assert len(result.added) == 3
        (call,) = connector.calls
        assert call["objective"] == BASELINE_OBJECTIVE
        assert call["search_queries"] is None
        assert call["full_content"] is False
        assert all(s.latest_objective == BASELINE_OBJECTIVE for s in result.sources)
        assert db.query(ExtractRun).one().trigger == ExtractTrigger.ADD_SOURCES

    def test_equivalent_urls_are_extracted_once(self, db):
        connector = FakeExtractConnector()

        result = add_sources(
            db,
            ["https://example.com/a", "HTTPS://EXAMPLE.com:443/a/"],
            connector=connector,
        )

        assert len(result.added) == 2
        assert result.added[0].id == result.added[1].id
        assert connector.calls[0]["urls"] == ["https://example.com/a"]
        assert len(result.sources) == 1

    def test_without_extraction(self, db):
        connector = FakeExtractConnector()

        result = add_sources(db, source_urls(2), run_extract=False, connector=connector)

        assert connector.calls == []
        assert result.outcomes == []
        assert all(s.latest_extracted_page_id is None for s in result.sources)

    def test_sources_include_inactive(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/old"])
        registry.deactivate(["https://example.com/old"])

        result = add_sources(db, ["https://example.com/new"], run_extract=False)

        assert {s.url for s in result.sources} == {"https://example.com/old", "https://example.com/new"}


class TestRefresh:

    def test_only_active_sources_are_refreshed(self, db):
        registry = SourceRegistry(db)
        urls = source_urls(3)
        registry.upsert(urls)
        registry.deactivate([urls[1]])
        connector = FakeExtractConnector()

        outcomes = refresh_sources(db, connector=connector)

        assert connector.calls[0]["urls"] == [urls[0], urls[2]]
        assert connector.calls[0]["objective"] == BASELINE_OBJECTIVE
        assert len(outcomes) == 2
        assert db.query(ExtractRun).one().trigger == ExtractTrigger.REFRESH

    def test_nothing_active_makes_no_calls(self, db):
        connector = FakeExtractConnector()
        assert refresh_sources(db, connector=connector) == []
        assert connector.calls == []

    def test_periodic_task(self, db, engine, monkeypatch):
        SourceRegistry(db).upsert(source_urls(2))
        connector = FakeExtractConnector(error_urls=[source_urls(2)[1]])
        monkeypatch.setattr(ingest, "SessionLocal", sessionmaker(bind=engine, autoflush=False))
        monkeypatch.setattr(ingest, "get_extract_connector", lambda: connector)

        assert ingest.refresh_active_sources() == 1
        assert len(connector.calls) == 1

    def test_periodic_task_propagates_failures(self, db, engine, monkeypatch):
        SourceRegistry(db).upsert(source_urls(1))
        monkeypatch.setattr(ingest, "SessionLocal", sessionmaker(bind=engine, autoflush=False))
        monkeypatch.setattr(ingest, "get_extract_connector", lambda: FakeExtractConnector(fail_on_call=1))

        with pytest.raises(Exception, match="connection reset"):
            ingest.refresh_active_sources()


WORKER_REFRESH_SCRIPT = textwrap.dedent(
    """
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from app.services import ingest
    from app.core.db import Base
    from app.models.extract_run import ExtractRun
    from app.services.source_registry import SourceRegistry
    from tests.fixtures.extraction_fixtures import FakeExtractConnector

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine, autoflush=False)()
    SourceRegistry(db).upsert(["https://example.com/a", "https://example.com/b"])
    outcomes = ingest.refresh_sources(db, connector=FakeExtractConnector())
    print("REFRESHED", len(outcomes), db.query(ExtractRun).count())
    """
)


class TestWorkerImports:

    def test_refresh_with_only_the_task_module_imported(self):
        backend_dir = Path(__file__).resolve().parents[1]
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(backend_dir), env.get("PYTHONPATH")) if p
        )

        proc = subprocess.run(
            [sys.executable, "-c", WORKER_REFRESH_SCRIPT],
            cwd=backend_dir,
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert proc.returncode == 0, proc.stderr
        result = [line for line in proc.stdout.splitlines() if line.startswith("REFRESHED")]
        assert result == ["REFRESHED 2 1"]
