"""
Batch Extraction Orchestrator

Partitions sources into fixed-size batches, calls the extraction connector
once per batch and records the outcome of every URL.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..models.extract_run import ExtractTrigger
from ..models.source import Source
from .connectors import BaseConnector, ExtractServiceError
from .page_history import (
    record_extract_run,
    record_page_error,
    record_page_success,
    set_source_latest,
)
from .urls import InvalidUrl, canonicalize

logger = logging.getLogger(__name__)

EXTRACT_BATCH_SIZE = 10

T = TypeVar("T")


@dataclass
class ExtractionOutcome:
    source_id: int
    url: str
    extract_run_id: int
    extracted_page_id: int
    ok: bool
    content: Optional[str] = None
    title: Optional[str] = None
    error_type: Optional[str] = None
    http_status_code: Optional[int] = None


def chunk_sources(items: Sequence[T], size: int = EXTRACT_BATCH_SIZE) -> List[List[T]]:
    """Split into consecutive chunks of ``size``; only the last may be short."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def _evidence_text(excerpts: Optional[List[str]], full_content: Optional[str]) -> str:
    if full_content is not None:
        return full_content
    return "\n\n".join(excerpts or [])


def _match_key(url: str) -> Optional[str]:
    try:
        return canonicalize(url)
    except InvalidUrl:
        return None


class ExtractionOrchestrator:
    """
    Runs one extraction pass over a list of sources.

    Batches are processed strictly one after another. SourceLatest is
    last-write-wins, so its correctness depends on this ordering.
    """

    def __init__(
        self,
        db: Session,
        connector: BaseConnector,
        batch_size: Optional[int] = None,
    ) -> None:
        self.db = db
        self.connector = connector
        if batch_size is None:
            batch_size = get_settings().EXTRACT_BATCH_SIZE
        self.batch_size = batch_size

    def run(
        self,
        sources: Sequence[Source],
        objective: str,
        search_queries: Optional[List[str]],
        full_content: bool,
        trigger: ExtractTrigger,
        chat_query_id: Optional[int] = None,
    ) -> List[ExtractionOutcome]:
        """
        Extract every source, one connector call per batch.

        An ExtractServiceError on any batch aborts the run; batches already
        processed stay committed.
        """
        outcomes: List[ExtractionOutcome] = []
        batches = chunk_sources(list(sources), self.batch_size)

        log_extra = {
            "trigger": trigger.value,
            "chat_query_id": chat_query_id,
            "step": "extract",
        }
        logger.info(
            "Starting extraction of %d source(s) in %d batch(es)",
            len(sources),
            len(batches),
            extra=log_extra,
        )

        for index, batch in enumerate(batches):
            outcomes.extend(
                self._run_batch(
                    index,
                    batch,
                    objective=objective,
                    search_queries=search_queries,
                    full_content=full_content,
                    trigger=trigger,
                    chat_query_id=chat_query_id,
                )
            )

        logger.info(
            "Extraction finished: %d ok, %d errors",
            sum(1 for o in outcomes if o.ok),
            sum(1 for o in outcomes if not o.ok),
            extra=log_extra,
        )
        return outcomes

    def _run_batch(
        self,
        index: int,
        batch: List[Source],
        *,
        objective: str,
        search_queries: Optional[List[str]],
        full_content: bool,
        trigger: ExtractTrigger,
        chat_query_id: Optional[int],
    ) -> List[ExtractionOutcome]:
        url_to_source: Dict[str, Source] = {s.url: s for s in batch}

        try:
            response = self.connector.extract(
                [s.url for s in batch],
                objective=objective,
                search_queries=search_queries or None,
                excerpts=True,
                full_content=full_content,
            )
        except ExtractServiceError:
            logger.error(
                "Extraction batch %d failed; aborting remaining batches",
                index,
                extra={"trigger": trigger.value, "chat_query_id": chat_query_id, "step": "extract_batch"},
            )
            raise

        run = record_extract_run(
            self.db,
            trigger=trigger,
            parallel_extract_id=response.extract_id,
            chat_query_id=chat_query_id,
            warnings=response.warnings,
            usage=response.usage,
        )
        extracted_at = datetime.utcnow()
        outcomes: List[ExtractionOutcome] = []

        for result in response.results:
            source = url_to_source.get(_match_key(result.url))
            if source is None:
                logger.debug("Ignoring result for unknown URL: %s", result.url[:100])
                continue

            excerpts = result.excerpts or []
            page = record_page_success(
                self.db,
                source_id=source.id,
                extract_run_id=run.id,
                extracted_at=extracted_at,
                title=result.title,
                publish_date=result.publish_date,
                excerpts=excerpts or None,
                full_content=result.full_content,
            )
            set_source_latest(
                self.db,
                source_id=source.id,
                extracted_page_id=page.id,
                extracted_at=extracted_at,
                title=result.title,
                has_full_content=bool(result.full_content),
                objective=objective,
            )
            outcomes.append(
                ExtractionOutcome(
                    source_id=source.id,
                    url=source.url,
                    extract_run_id=run.id,
                    extracted_page_id=page.id,
                    ok=True,
                    content=_evidence_text(excerpts, result.full_content),
                    title=result.title,
                )
            )

        for err in response.errors:
            source = url_to_source.get(_match_key(err.url))
            if source is None:
                logger.debug("Ignoring error for unknown URL: %s", err.url[:100])
                continue

            page = record_page_error(
                self.db,
                source_id=source.id,
                extract_run_id=run.id,
                extracted_at=extracted_at,
                error_type=err.error_type,
                http_status_code=err.http_status_code,
                error_content=err.content,
            )
            outcomes.append(
                ExtractionOutcome(
                    source_id=source.id,
                    url=source.url,
                    extract_run_id=run.id,
                    extracted_page_id=page.id,
                    ok=False,
                    error_type=err.error_type,
                    http_status_code=err.http_status_code,
                )
            )

        self.db.commit()

        logger.info(
            "Extraction batch %d recorded (%d urls, %d outcomes)",
            index,
            len(batch),
            len(outcomes),
            extra={
                "trigger": trigger.value,
                "chat_query_id": chat_query_id,
                "extract_run_id": run.id,
                "step": "extract_batch",
            },
        )
        return outcomes
