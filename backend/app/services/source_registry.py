from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.db import dialect_insert
from ..models.source import Source
from ..models.source_latest import SourceLatest
from .urls import canonicalize

logger = logging.getLogger(__name__)


@dataclass
class SourceWithLatest:
    """A Source row left-joined with its SourceLatest pointer (if any)."""
    id: int
    url: str
    created_at: datetime
    updated_at: datetime
    is_active: bool
    latest_extracted_page_id: Optional[int] = None
    latest_extracted_at: Optional[datetime] = None
    latest_title: Optional[str] = None
    latest_has_full_content: bool = False
    latest_objective: Optional[str] = None


class SourceRegistry:
    """
    Create/read access to the tracked sources.

    The session is injected so callers (API requests, Celery tasks, tests)
    decide which store the registry talks to.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def upsert(self, raw_urls: Iterable[str], active: bool = True) -> List[Source]:
        """
        Register URLs, returning one Source per input in input order.

        Every URL is canonicalised before anything is written, so one invalid
        URL rejects the whole call. Existing rows only get their active flag
        and ``updated_at`` refreshed.
        """
        canonical_urls = [canonicalize(u) for u in raw_urls]
        if not canonical_urls:
            return []

        sources: List[Source] = []
        for url in canonical_urls:
            now = datetime.utcnow()
            stmt = dialect_insert(self.db, Source.__table__).values(
                url=url,
                is_active=active,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[Source.__table__.c.url],
                set_={"is_active": stmt.excluded.is_active, "updated_at": now},
            )
            self.db.execute(stmt)

            source = (
                self.db.query(Source)
                .populate_existing()
                .filter(Source.url == url)
                .one()
            )
            sources.append(source)

        self.db.commit()

        logger.info(
            "Upserted %d source(s)",
            len(sources),
            extra={"step": "upsert_sources"},
        )
        return sources

    def deactivate(self, raw_urls: Iterable[str]) -> List[Source]:
        return self.upsert(raw_urls, active=False)

    def list_with_latest(self, include_inactive: bool = False) -> List[SourceWithLatest]:
        query = (
            self.db.query(Source, SourceLatest)
            .populate_existing()
            .outerjoin(SourceLatest, SourceLatest.source_id == Source.id)
        )
        if not include_inactive:
            query = query.filter(Source.is_active.is_(True))

        rows = query.order_by(Source.updated_at.desc(), Source.id.desc()).all()

        return [
            SourceWithLatest(
                id=src.id,
                url=src.url,
                created_at=src.created_at,
                updated_at=src.updated_at,
                is_active=bool(src.is_active),
                latest_extracted_page_id=latest.latest_extracted_page_id if latest else None,
                latest_extracted_at=latest.latest_extracted_at if latest else None,
                latest_title=latest.latest_title if latest else None,
                latest_has_full_content=bool(latest.latest_has_full_content) if latest else False,
                latest_objective=latest.latest_objective if latest else None,
            )
            for src, latest in rows
        ]

    def list_active(self) -> List[Source]:
        """Working set for chat-driven extraction, oldest registration first."""
        return (
            self.db.query(Source)
            .filter(Source.is_active.is_(True))
            .order_by(Source.id.asc())
            .all()
        )
