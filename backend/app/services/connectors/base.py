from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtractResult(BaseModel):
    """One per-URL success returned by an extraction service."""
    model_config = ConfigDict(extra="ignore")

    url: str
    title: Optional[str] = None
    publish_date: Optional[str] = None
    excerpts: Optional[List[str]] = None
    full_content: Optional[str] = None


class ExtractError(BaseModel):
    """One per-URL failure returned by an extraction service."""
    model_config = ConfigDict(extra="ignore")

    url: str
    error_type: str
    http_status_code: Optional[int] = None
    content: Optional[str] = None


class ExtractResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    extract_id: str
    results: List[ExtractResult] = Field(default_factory=list)
    errors: List[ExtractError] = Field(default_factory=list)
    warnings: Optional[list] = None
    usage: Optional[list | dict] = None


class ExtractServiceError(RuntimeError):
    """Batch-level failure: transport error, non-2xx status or malformed body."""


class BaseConnector(ABC):
    name: str

    @abstractmethod
    def extract(
        self,
        urls: List[str],
        *,
        objective: str,
        search_queries: Optional[List[str]] = None,
        excerpts: bool = True,
        full_content: bool = False,
    ) -> ExtractResponse:
        ...
