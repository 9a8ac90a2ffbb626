from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.db import dialect_insert
from ..models.chat_query import ChatQuery
from ..models.chat_query_extract_params import (
    ChatQueryExtractParams,
    DEFAULT_PARALLEL_BETA_HEADER,
)
from ..models.extract_run import ExtractTrigger
from .connectors import BaseConnector, get_extract_connector
from .extraction import ExtractionOrchestrator, ExtractionOutcome
from .query_generation import QueryGenerationResult, generate_search_queries
from .routing import RoutedExtractParams, RouterDecision, route_extract_params
from .source_registry import SourceRegistry

logger = logging.getLogger(__name__)


class NoActiveSourcesError(ValueError):
    """Raised when a question arrives while no source is active."""


@dataclass
class SourceEvidence:
    url: str
    content: str


@dataclass
class ChatEvidence:
    """Supporting evidence handed to the answer-synthesis step."""
    chat_query_id: int
    decision: RouterDecision
    search_queries: Optional[List[str]]
    evidence: List[SourceEvidence] = field(default_factory=list)
    outcomes: List[ExtractionOutcome] = field(default_factory=list)


def upsert_chat_query_extract_params(
    db: Session,
    chat_query_id: int,
    routed: RoutedExtractParams,
    fetch_policy: Optional[dict] = None,
) -> None:
    values = {
        "objective": routed.objective,
        "search_queries": routed.search_queries,
        "excerpts": routed.excerpts,
        "full_content": routed.full_content,
        "fetch_policy": fetch_policy,
        "parallel_beta_header": DEFAULT_PARALLEL_BETA_HEADER,
    }
    stmt = dialect_insert(db, ChatQueryExtractParams.__table__).values(
        chat_query_id=chat_query_id, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ChatQueryExtractParams.__table__.c.chat_query_id],
        set_=values,
    )
    db.execute(stmt)


def prepare_chat_evidence(
    db: Session,
    question: str,
    full_page: bool = False,
    connector: Optional[BaseConnector] = None,
    generator: Callable[[str], QueryGenerationResult] = generate_search_queries,
) -> ChatEvidence:
    """
    Route a question, re-extract the active sources and collect evidence.

    1. Validate the question and the active source set
    2. Decide objective-only vs. generated search queries
    3. Persist ChatQuery (with routing audit) and its extract params
    4. Run the batch orchestrator with trigger "chat"
    5. Return (url, content) pairs for every successful extraction
    """
    question = (question or "").strip()
    if not question:
        raise ValueError("Question required")

    sources = SourceRegistry(db).list_active()
    if not sources:
        raise NoActiveSourcesError("No sources configured. Add URLs before asking questions.")

    routed = route_extract_params(
        question,
        full_page=full_page,
        url_count=len(sources),
        generator=generator,
    )

    chat_query = ChatQuery(
        question=question,
        full_page=full_page,
        router_reason=routed.audit,
    )
    db.add(chat_query)
    db.flush()
    upsert_chat_query_extract_params(db, chat_query.id, routed)
    db.commit()

    logger.info(
        "Chat query routed: %s (%s)",
        routed.decision.mode,
        routed.decision.reason,
        extra={"chat_query_id": chat_query.id, "step": "route"},
    )

    orchestrator = ExtractionOrchestrator(db, connector or get_extract_connector())
    outcomes = orchestrator.run(
        sources,
        objective=routed.objective,
        search_queries=routed.search_queries,
        full_content=routed.full_content,
        trigger=ExtractTrigger.CHAT,
        chat_query_id=chat_query.id,
    )

    evidence = [
        SourceEvidence(url=o.url, content=o.content or "")
        for o in outcomes
        if o.ok
    ]

    return ChatEvidence(
        chat_query_id=chat_query.id,
        decision=routed.decision,
        search_queries=routed.search_queries,
        evidence=evidence,
        outcomes=outcomes,
    )
