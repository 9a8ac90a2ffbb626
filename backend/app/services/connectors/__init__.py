from __future__ import annotations

from .base import (
    BaseConnector,
    ExtractError,
    ExtractResponse,
    ExtractResult,
    ExtractServiceError,
)
from .parallel_extract import ParallelExtractConnector

__all__ = [
    "BaseConnector",
    "ExtractError",
    "ExtractResponse",
    "ExtractResult",
    "ExtractServiceError",
    "ParallelExtractConnector",
    "get_extract_connector",
]


def get_extract_connector() -> BaseConnector:
    return ParallelExtractConnector()
