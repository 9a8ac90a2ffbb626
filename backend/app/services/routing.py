"""
Heuristic router deciding how to focus extraction for a chat question.

Two outcomes:
- objective_only: send the question as the extraction objective.
- generate_search_queries: additionally ask the LLM for keyword queries.

The decision is pure; ``route_extract_params`` adds the (optional) external
query-generation call and the fallback when it yields nothing usable.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from ..core.config import get_settings
from .query_generation import QueryGenerationResult, generate_search_queries

logger = logging.getLogger(__name__)

RouterMode = Literal["objective_only", "generate_search_queries"]

# Whitespace-delimited words only, so "it's" or "this?" do not count.
AMBIGUOUS_REFERENCE_RE = re.compile(
    r"(?<!\S)(it|they|this|that|these|those|there|here)(?!\S)", re.IGNORECASE
)
# A long question is less likely to be ambiguous because of a single "this/that".
AMBIGUOUS_MAX_WORDS = 12

BROAD_PHRASES = (
    "compare",
    "comparison",
    "overview",
    "summarize",
    "summary",
    "pros and cons",
    "pros/cons",
    "tradeoffs",
    "everything about",
    "all about",
    "list",
    "bullet",
    "timeline",
    "pricing",
)

SHORT_MAX_WORDS = 9        # exclusive
SHORT_MAX_CHARS = 60       # exclusive
KEYWORDISH_MAX_WORDS = 3
KEYWORDISH_MAX_CHARS = 30
MANY_SOURCES_THRESHOLD = 5

REASON_NO_SOURCES = "no sources"
REASON_OBJECTIVE_SUFFICIENT = "heuristics indicate objective-only is sufficient"
REASON_GENERATION_FAILED = (
    "search query generation returned no usable queries; falling back to objective-only"
)


@dataclass
class RouterDecision:
    mode: RouterMode
    reason: str
    signals: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RoutedExtractParams:
    objective: str
    search_queries: Optional[List[str]]
    excerpts: bool
    full_content: bool
    decision: RouterDecision
    audit: Dict[str, Any]


def word_count(text: str) -> int:
    return len(text.split())


def has_ambiguous_reference(question: str) -> bool:
    if not AMBIGUOUS_REFERENCE_RE.search(question):
        return False
    return word_count(question) <= AMBIGUOUS_MAX_WORDS


def is_keywordish(question: str) -> bool:
    if word_count(question) <= KEYWORDISH_MAX_WORDS:
        return True
    trimmed = question.strip()
    return len(trimmed) <= KEYWORDISH_MAX_CHARS and not trimmed.endswith(("?", ".", "!"))


def needs_broad_coverage(question: str) -> bool:
    q = question.lower()
    return any(p in q for p in BROAD_PHRASES)


def decide_router(question: str, url_count: int) -> RouterDecision:
    question = question.strip()
    wc = word_count(question)
    is_short = wc < SHORT_MAX_WORDS or len(question) < SHORT_MAX_CHARS
    ambiguous = has_ambiguous_reference(question)
    keywordish = is_keywordish(question)
    broad = needs_broad_coverage(question)
    many_sources = url_count > MANY_SOURCES_THRESHOLD
    no_sources = url_count == 0

    signals: Dict[str, Any] = {
        "word_count": wc,
        "char_count": len(question),
        "url_count": url_count,
        "short_question": is_short,
        "ambiguous_reference": ambiguous,
        "keywordish": keywordish,
        "broad_question": broad,
        "many_sources": many_sources,
        "no_sources": no_sources,
    }

    if no_sources:
        return RouterDecision("objective_only", REASON_NO_SOURCES, signals)

    fired = [
        name
        for name in (
            "short_question",
            "ambiguous_reference",
            "keywordish",
            "broad_question",
            "many_sources",
        )
        if signals[name]
    ]
    if fired:
        return RouterDecision("generate_search_queries", ", ".join(fired), signals)

    return RouterDecision("objective_only", REASON_OBJECTIVE_SUFFICIENT, signals)


def route_extract_params(
    question: str,
    full_page: bool,
    url_count: int,
    generator: Callable[[str], QueryGenerationResult] = generate_search_queries,
) -> RoutedExtractParams:
    """
    Resolve the extraction parameters for a chat question.

    The downgrade to objective_only happens only after the generator has been
    called and produced nothing usable; ``generation_failed`` is then set on
    the signals.
    """
    objective = question.strip()
    decision = decide_router(objective, url_count)

    search_queries: Optional[List[str]] = None
    generation_status: Optional[str] = None
    final = decision

    if decision.mode == "generate_search_queries":
        result = generator(objective)
        generation_status = result.status
        if result.queries:
            search_queries = list(result.queries)
        else:
            final = RouterDecision(
                "objective_only",
                REASON_GENERATION_FAILED,
                {**decision.signals, "generation_failed": True},
            )
            logger.warning(
                "Search query generation yielded nothing (%s); using objective only",
                result.status,
                extra={"step": "route"},
            )

    audit: Dict[str, Any] = {
        "decision": final.mode,
        "reason": final.reason,
        "signals": final.signals,
        "search_query_count": len(search_queries) if search_queries else 0,
        "generation_status": generation_status,
    }
    if final.mode == "generate_search_queries":
        audit["model"] = get_settings().QUERY_GEN_MODEL

    return RoutedExtractParams(
        objective=objective,
        search_queries=search_queries,
        excerpts=True,
        full_content=full_page,
        decision=final,
        audit=audit,
    )
