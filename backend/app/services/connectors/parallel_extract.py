# backend/app/services/connectors/parallel_extract.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .base import BaseConnector, ExtractResponse, ExtractServiceError
from ...core.config import get_settings

logger = logging.getLogger(__name__)


class ParallelExtractConnector(BaseConnector):
    """
    Connector for the Parallel Extract API (beta).

    One call covers one batch of canonical URLs and returns per-URL results
    and per-URL errors. Per-URL errors are data; anything that prevents us
    from getting a well-formed response for the whole batch raises
    ExtractServiceError. Calls are never retried here.
    """

    name = "parallel_extract"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        beta_header: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.PARALLEL_API_KEY
        self.base_url = (base_url or settings.PARALLEL_BASE_URL).rstrip("/")
        self.beta_header = beta_header or settings.PARALLEL_BETA_HEADER
        self.timeout = timeout if timeout is not None else settings.PARALLEL_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def extract_url(self) -> str:
        return f"{self.base_url}/v1beta/extract"

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ExtractServiceError(
                "No Parallel API key configured. Set PARALLEL_API_KEY."
            )
        return {
            "x-api-key": self.api_key.strip(),
            "parallel-beta": self.beta_header,
            "Content-Type": "application/json",
            "accept": "application/json",
        }

    def _build_payload(
        self,
        urls: List[str],
        objective: str,
        search_queries: Optional[List[str]],
        excerpts: bool,
        full_content: bool,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "urls": list(urls),
            "objective": objective,
            "excerpts": excerpts,
            "full_content": full_content,
        }
        if search_queries:
            payload["search_queries"] = list(search_queries)
        return payload

    def extract(
        self,
        urls: List[str],
        *,
        objective: str,
        search_queries: Optional[List[str]] = None,
        excerpts: bool = True,
        full_content: bool = False,
    ) -> ExtractResponse:
        payload = self._build_payload(urls, objective, search_queries, excerpts, full_content)
        headers = self._headers()

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.extract_url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ExtractServiceError(f"Extract request failed: {e}") from e

        if resp.status_code >= 400:
            raise ExtractServiceError(
                f"Extract API error: {resp.status_code} {resp.text[:500]}"
            )

        try:
            return ExtractResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ExtractServiceError(f"Malformed extract response: {e}") from e
