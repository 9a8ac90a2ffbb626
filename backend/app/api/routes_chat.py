from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.sources import (
    ChatEvidenceOut,
    ChatRequest,
    RouterDecisionOut,
    SourceEvidenceOut,
)
from ..services.chat import prepare_chat_evidence
from ..services.connectors import BaseConnector, ExtractServiceError, get_extract_connector

router = APIRouter(tags=["chat"])

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = (
    "No content could be extracted from the configured sources. "
    "Please check that the URLs are valid and accessible."
)


@router.post("/chat", response_model=ChatEvidenceOut)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    connector: BaseConnector = Depends(get_extract_connector),
):
    """
    Route the question, re-extract active sources and return the evidence set
    for answer synthesis.
    """
    request_id = str(uuid4())
    logger.info("Chat request received", extra={"request_id": request_id, "step": "chat"})

    try:
        result = prepare_chat_evidence(
            db,
            payload.question,
            full_page=payload.full_page,
            connector=connector,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractServiceError as e:
        logger.exception(
            "Extraction failed for chat request",
            extra={"request_id": request_id, "step": "chat"},
        )
        raise HTTPException(status_code=502, detail=str(e))

    return ChatEvidenceOut(
        chat_query_id=result.chat_query_id,
        decision=RouterDecisionOut(
            mode=result.decision.mode,
            reason=result.decision.reason,
            signals=result.decision.signals,
        ),
        search_queries=result.search_queries,
        evidence=[SourceEvidenceOut(url=e.url, content=e.content) for e in result.evidence],
        message=None if result.evidence else NO_CONTENT_MESSAGE,
    )
