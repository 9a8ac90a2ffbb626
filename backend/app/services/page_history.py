"""
Append-only extraction history and the per-source "latest" projection.

Every per-URL outcome of an extract run becomes a new ExtractedPage row, even
when its content fingerprint matches an earlier row. SourceLatest is
last-write-wins by processing order; it relies on extract runs being processed
sequentially (see ExtractionOrchestrator).
"""
from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.db import dialect_insert
from ..models.extract_run import ExtractRun, ExtractTrigger
from ..models.extracted_page import ExtractedPage
from ..models.source_latest import SourceLatest

FINGERPRINT_SEPARATOR = "\n---\n"


def _excerpts_json(excerpts: Optional[List[str]]) -> Optional[str]:
    if not excerpts:
        return None
    return json.dumps(excerpts, separators=(",", ":"), ensure_ascii=False)


def compute_content_fingerprint(
    title: Optional[str],
    publish_date: Optional[str],
    excerpts: Optional[List[str]],
    full_content: Optional[str],
) -> Optional[str]:
    """
    SHA256 over (title, publish date, excerpts as compact JSON, full content).

    Missing fields count as "". Returns None when all four are empty.
    """
    parts = [
        title or "",
        publish_date or "",
        _excerpts_json(excerpts) or "",
        full_content or "",
    ]
    if not any(parts):
        return None
    return hashlib.sha256(FINGERPRINT_SEPARATOR.join(parts).encode("utf-8")).hexdigest()


def record_extract_run(
    db: Session,
    *,
    trigger: ExtractTrigger,
    parallel_extract_id: str,
    chat_query_id: Optional[int] = None,
    warnings: Any = None,
    usage: Any = None,
) -> ExtractRun:
    run = ExtractRun(
        chat_query_id=chat_query_id,
        trigger=trigger,
        parallel_extract_id=parallel_extract_id,
        warnings=warnings or None,
        usage=usage or None,
    )
    db.add(run)
    db.flush()
    return run


def record_page_success(
    db: Session,
    *,
    source_id: int,
    extract_run_id: int,
    extracted_at: datetime,
    title: Optional[str],
    publish_date: Optional[str],
    excerpts: Optional[List[str]],
    full_content: Optional[str],
) -> ExtractedPage:
    page = ExtractedPage(
        source_id=source_id,
        extract_run_id=extract_run_id,
        extracted_at=extracted_at,
        title=title,
        publish_date=publish_date,
        excerpts=excerpts or None,
        full_content_md=full_content,
        content_sha256=compute_content_fingerprint(title, publish_date, excerpts, full_content),
    )
    db.add(page)
    db.flush()
    return page


def record_page_error(
    db: Session,
    *,
    source_id: int,
    extract_run_id: int,
    extracted_at: datetime,
    error_type: str,
    http_status_code: Optional[int],
    error_content: Optional[str],
) -> ExtractedPage:
    page = ExtractedPage(
        source_id=source_id,
        extract_run_id=extract_run_id,
        extracted_at=extracted_at,
        error_type=error_type,
        http_status_code=http_status_code,
        error_content=error_content,
    )
    db.add(page)
    db.flush()
    return page


def set_source_latest(
    db: Session,
    *,
    source_id: int,
    extracted_page_id: int,
    extracted_at: datetime,
    title: Optional[str],
    has_full_content: bool,
    objective: Optional[str],
) -> None:
    """
    Point the source's latest state at ``extracted_page_id``.

    Overwrites unconditionally; no comparison with the previous timestamp.
    """
    values = {
        "latest_extracted_page_id": extracted_page_id,
        "latest_extracted_at": extracted_at,
        "latest_title": title,
        "latest_has_full_content": has_full_content,
        "latest_objective": objective,
    }
    stmt = dialect_insert(db, SourceLatest.__table__).values(source_id=source_id, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[SourceLatest.__table__.c.source_id],
        set_=values,
    )
    db.execute(stmt)
