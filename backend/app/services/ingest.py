from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.celery_app import celery_app
from ..core.db import SessionLocal
from ..models.extract_run import ExtractTrigger
from ..models.source import Source
from .connectors import BaseConnector, get_extract_connector
from .extraction import ExtractionOrchestrator, ExtractionOutcome
from .source_registry import SourceRegistry, SourceWithLatest

logger = logging.getLogger(__name__)

BASELINE_OBJECTIVE = "Summarize key topics for later Q&A"


@dataclass
class AddSourcesResult:
    added: List[Source]
    sources: List[SourceWithLatest] = field(default_factory=list)
    outcomes: List[ExtractionOutcome] = field(default_factory=list)


def _clean_raw_urls(raw_urls: Any) -> List[str]:
    if not isinstance(raw_urls, list) or not raw_urls:
        raise ValueError("urls array required and must not be empty")
    cleaned = [u for u in raw_urls if isinstance(u, str) and u.strip()]
    if not cleaned:
        raise ValueError("At least one valid URL required")
    return cleaned


def _run_baseline_extraction(
    db: Session,
    sources: List[Source],
    trigger: ExtractTrigger,
    connector: Optional[BaseConnector],
) -> List[ExtractionOutcome]:
    if not sources:
        return []
    orchestrator = ExtractionOrchestrator(db, connector or get_extract_connector())
    return orchestrator.run(
        sources,
        objective=BASELINE_OBJECTIVE,
        search_queries=None,
        full_content=False,
        trigger=trigger,
    )


def add_sources(
    db: Session,
    raw_urls: Any,
    run_extract: bool = True,
    connector: Optional[BaseConnector] = None,
) -> AddSourcesResult:
    """
    Register URLs and (optionally) extract them straight away.

    Validation happens before any write or external call: the list must be
    non-empty, contain at least one non-blank string, and every URL must
    canonicalise.
    """
    urls = _clean_raw_urls(raw_urls)
    registry = SourceRegistry(db)
    added = registry.upsert(urls)

    outcomes: List[ExtractionOutcome] = []
    if run_extract:
        # Two raw URLs may canonicalise to the same source
        unique = list({s.id: s for s in added}.values())
        outcomes = _run_baseline_extraction(db, unique, ExtractTrigger.ADD_SOURCES, connector)

    return AddSourcesResult(
        added=added,
        sources=registry.list_with_latest(include_inactive=True),
        outcomes=outcomes,
    )


def refresh_sources(
    db: Session,
    connector: Optional[BaseConnector] = None,
) -> List[ExtractionOutcome]:
    """Re-extract every active source with the baseline objective."""
    sources = SourceRegistry(db).list_active()
    return _run_baseline_extraction(db, sources, ExtractTrigger.REFRESH, connector)


@celery_app.task(name="app.services.ingest.refresh_active_sources")
def refresh_active_sources() -> int:
    """
    Periodic task re-extracting all active sources.

    Returns the number of successful per-URL extractions.
    """
    db: Session = SessionLocal()
    try:
        outcomes = refresh_sources(db)
        ok = sum(1 for o in outcomes if o.ok)
        logger.info(
            "Refreshed %d active source(s): %d ok, %d errors",
            len(outcomes),
            ok,
            len(outcomes) - ok,
            extra={"trigger": ExtractTrigger.REFRESH.value, "step": "refresh"},
        )
        return ok
    except Exception:
        db.rollback()
        logger.exception("Refresh of active sources failed", extra={"step": "refresh"})
        raise
    finally:
        db.close()
