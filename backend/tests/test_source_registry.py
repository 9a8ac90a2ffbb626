"""
Tests for source_registry.py - idempotent registration and listings.
"""
import pytest

from app.models.source import Source
from app.services.page_history import record_extract_run, record_page_success, set_source_latest
from app.models.extract_run import ExtractTrigger
from app.services.source_registry import SourceRegistry
from app.services.urls import InvalidUrl


class TestUpsert:

    def test_same_url_twice_creates_one_row(self, db):
        registry = SourceRegistry(db)
        first = registry.upsert(["https://example.com/docs/"])[0]
        first_id, first_updated = first.id, first.updated_at

        second = registry.upsert(["HTTPS://EXAMPLE.COM/docs"])[0]

        assert db.query(Source).count() == 1
        assert second.id == first_id
        assert second.url == "https://example.com/docs"
        assert second.updated_at >= first_updated

    def test_created_at_is_kept_on_conflict(self, db):
        registry = SourceRegistry(db)
        created = registry.upsert(["https://example.com/a"])[0].created_at
        again = registry.upsert(["https://example.com/a"])[0]
        assert again.created_at == created

    def test_reregistering_updates_active_flag(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/a"])
        row = registry.upsert(["https://example.com/a"], active=False)[0]
        assert row.is_active is False

        row = registry.upsert(["https://example.com/a"])[0]
        assert row.is_active is True
        assert db.query(Source).count() == 1

    def test_returns_rows_in_input_order(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://b.example.com/"])
        rows = registry.upsert([
            "https://c.example.com/",
            "https://b.example.com/",
            "https://a.example.com/",
        ])
        assert [r.url for r in rows] == [
            "https://c.example.com/",
            "https://b.example.com/",
            "https://a.example.com/",
        ]

    def test_equivalent_urls_in_one_call_share_a_row(self, db):
        rows = SourceRegistry(db).upsert([
            "https://example.com/p/",
            "https://EXAMPLE.com:443/p#top",
        ])
        assert len(rows) == 2
        assert rows[0].id == rows[1].id
        assert db.query(Source).count() == 1

    def test_invalid_url_rejects_whole_call(self, db):
        with pytest.raises(InvalidUrl):
            SourceRegistry(db).upsert(["https://example.com/ok", "not a url"])
        assert db.query(Source).count() == 0

    def test_empty_input_is_a_no_op(self, db):
        assert SourceRegistry(db).upsert([]) == []

    def test_deactivate(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/a", "https://example.com/b"])
        registry.deactivate(["https://example.com/a/"])
        assert [s.url for s in registry.list_active()] == ["https://example.com/b"]


class TestListings:

    def test_list_active_ascending_by_id(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/1", "https://example.com/2", "https://example.com/3"])
        registry.upsert(["https://example.com/2"], active=False)
        registry.upsert(["https://example.com/1"])

        active = registry.list_active()
        assert [s.url for s in active] == ["https://example.com/1", "https://example.com/3"]
        assert [s.id for s in active] == sorted(s.id for s in active)

    def test_list_with_latest_orders_by_recent_update(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/1", "https://example.com/2", "https://example.com/3"])
        registry.upsert(["https://example.com/1"])

        rows = registry.list_with_latest()
        assert rows[0].url == "https://example.com/1"
        assert [r.url for r in rows[1:]] == ["https://example.com/3", "https://example.com/2"]

    def test_list_with_latest_hides_inactive_unless_requested(self, db):
        registry = SourceRegistry(db)
        registry.upsert(["https://example.com/1", "https://example.com/2"])
        registry.deactivate(["https://example.com/2"])

        assert [r.url for r in registry.list_with_latest()] == ["https://example.com/1"]
        everything = registry.list_with_latest(include_inactive=True)
        assert {r.url for r in everything} == {"https://example.com/1", "https://example.com/2"}

    def test_list_with_latest_joins_latest_state(self, db):
        registry = SourceRegistry(db)
        with_latest, without_latest = registry.upsert(
            ["https://example.com/1", "https://example.com/2"]
        )
        run = record_extract_run(db, trigger=ExtractTrigger.REFRESH, parallel_extract_id="extract_1")
        page = record_page_success(
            db,
            source_id=with_latest.id,
            extract_run_id=run.id,
            extracted_at=run.created_at,
            title="Docs",
            publish_date=None,
            excerpts=["hello"],
            full_content=None,
        )
        set_source_latest(
            db,
            source_id=with_latest.id,
            extracted_page_id=page.id,
            extracted_at=run.created_at,
            title="Docs",
            has_full_content=False,
            objective="Summarize key topics for later Q&A",
        )
        db.commit()

        rows = {r.url: r for r in registry.list_with_latest()}
        joined = rows["https://example.com/1"]
        assert joined.latest_extracted_page_id == page.id
        assert joined.latest_title == "Docs"
        assert joined.latest_objective == "Summarize key topics for later Q&A"

        empty = rows["https://example.com/2"]
        assert empty.latest_extracted_page_id is None
        assert empty.latest_has_full_content is False
