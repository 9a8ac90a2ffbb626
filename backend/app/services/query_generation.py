"""
Search query generation for focusing web extraction.

Asks the chat completions endpoint for 1-3 short keyword queries. The public
contract is fail-soft: ``generate`` never raises and returns [] when no usable
queries are available. Internally every call yields a tagged
``QueryGenerationResult`` so callers can record *why* the list is empty.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from openai import OpenAIError
from pydantic import BaseModel, ConfigDict, ValidationError

from ..core.config import get_settings
from .llm import get_llm_client, limit_llm_concurrency

logger = logging.getLogger(__name__)

MAX_SEARCH_QUERIES = 3

GenerationStatus = Literal[
    "ok",
    "empty",
    "not_configured",
    "transport_error",
    "decode_error",
]

SEARCH_QUERIES_SCHEMA = {
    "name": "search_queries_schema",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "search_queries": {
                "type": "array",
                "minItems": 1,
                "maxItems": MAX_SEARCH_QUERIES,
                "items": {"type": "string"},
                "description": "1-3 short keyword queries to focus web extraction",
            },
        },
        "required": ["search_queries"],
    },
}

SYSTEM_PROMPT = "\n".join(
    [
        "You generate keyword-style search queries to focus web page extraction.",
        "Return only valid JSON matching the schema.",
        "Queries should be short (2-6 words), specific, and non-redundant.",
        "Do not include quotes unless the phrase must be exact.",
    ]
)


class SearchQueriesPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    search_queries: List[str]


@dataclass
class QueryGenerationResult:
    status: GenerationStatus
    queries: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def _clean_queries(raw: List[str]) -> List[str]:
    cleaned = [q.strip() for q in raw if isinstance(q, str)]
    return [q for q in cleaned if q][:MAX_SEARCH_QUERIES]


def generate_search_queries(question: str, client: Any = None) -> QueryGenerationResult:
    settings = get_settings()

    try:
        client = client or get_llm_client()
    except RuntimeError as e:
        logger.warning("Search query generation unavailable: %s", e, extra={"step": "generate_queries"})
        return QueryGenerationResult(status="not_configured", error=str(e))

    user_prompt = "\n".join(
        [
            "Generate 1-3 keyword search queries that would help extract relevant snippets from a set of web pages.",
            f"Question: {question}",
        ]
    )

    try:
        with limit_llm_concurrency():
            response = client.chat.completions.create(
                model=settings.QUERY_GEN_MODEL,
                stream=False,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": SEARCH_QUERIES_SCHEMA,
                },
            )
    except OpenAIError as e:
        logger.warning("Search query generation request failed: %s", e, extra={"step": "generate_queries"})
        return QueryGenerationResult(status="transport_error", error=str(e))

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        content = None
    if not content:
        logger.warning("Search query generation returned no content", extra={"step": "generate_queries"})
        return QueryGenerationResult(status="decode_error", error="empty completion")

    try:
        payload = SearchQueriesPayload.model_validate_json(content)
    except ValidationError as e:
        logger.warning(
            "Search query generation returned malformed output: %s",
            e.errors()[0].get("msg") if e.errors() else e,
            extra={"step": "generate_queries"},
        )
        return QueryGenerationResult(status="decode_error", error=str(e))

    queries = _clean_queries(payload.search_queries)
    if not queries:
        return QueryGenerationResult(status="empty")

    return QueryGenerationResult(status="ok", queries=queries)


def generate(question: str) -> List[str]:
    """Fail-soft wrapper: [] means "no queries available"."""
    return generate_search_queries(question).queries
