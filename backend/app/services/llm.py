from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from threading import BoundedSemaphore
from typing import Iterator

from openai import OpenAI

from ..core.config import get_settings


@lru_cache(maxsize=1)
def _llm_slots() -> BoundedSemaphore:
    return BoundedSemaphore(get_settings().LLM_MAX_CONCURRENCY)


@contextmanager
def limit_llm_concurrency() -> Iterator[None]:
    """
    Hold one of LLM_MAX_CONCURRENCY slots for the duration of a completion call.

    Chat requests and Celery workers share the same process-wide limit.
    """
    slots = _llm_slots()
    slots.acquire()
    try:
        yield
    finally:
        slots.release()


@lru_cache(maxsize=1)
def get_llm_client() -> OpenAI:
    """
    OpenAI-compatible client for Parallel's chat completions endpoint.

    Raises RuntimeError when PARALLEL_API_KEY is unset; callers treat that as
    "query generation not configured".
    """
    settings = get_settings()
    if not settings.PARALLEL_API_KEY:
        raise RuntimeError("No LLM API key configured. Set PARALLEL_API_KEY.")

    return OpenAI(
        base_url=settings.PARALLEL_BASE_URL.rstrip("/"),
        api_key=settings.PARALLEL_API_KEY.strip(),
        timeout=settings.PARALLEL_TIMEOUT_SECONDS,
        max_retries=0,
    )
