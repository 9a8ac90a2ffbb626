import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.sources import (
    AddSourcesOut,
    AddSourcesRequest,
    DeactivateSourcesRequest,
    RefreshOut,
    SourceListOut,
    SourceWithLatestOut,
)
from ..services.connectors import BaseConnector, ExtractServiceError, get_extract_connector
from ..services.ingest import add_sources, refresh_sources
from ..services.source_registry import SourceRegistry

router = APIRouter(tags=["sources"])

logger = logging.getLogger(__name__)


@router.get("/sources", response_model=SourceListOut)
def list_sources(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
):
    rows = SourceRegistry(db).list_with_latest(include_inactive=include_inactive)
    return {"sources": [SourceWithLatestOut.model_validate(r, from_attributes=True) for r in rows]}


@router.post("/sources", response_model=AddSourcesOut)
def create_sources(
    payload: AddSourcesRequest,
    db: Session = Depends(get_db),
    connector: BaseConnector = Depends(get_extract_connector),
):
    try:
        result = add_sources(
            db,
            payload.urls,
            run_extract=payload.run_extract,
            connector=connector,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractServiceError as e:
        logger.exception("Extraction failed while adding sources", extra={"step": "add_sources"})
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "added": len(result.added),
        "sources": [
            SourceWithLatestOut.model_validate(r, from_attributes=True)
            for r in result.sources
        ],
    }


@router.post("/sources/deactivate", response_model=SourceListOut)
def deactivate_sources(
    payload: DeactivateSourcesRequest,
    db: Session = Depends(get_db),
):
    if not payload.urls:
        raise HTTPException(status_code=400, detail="urls array required and must not be empty")

    registry = SourceRegistry(db)
    try:
        registry.deactivate(payload.urls)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rows = registry.list_with_latest(include_inactive=True)
    return {"sources": [SourceWithLatestOut.model_validate(r, from_attributes=True) for r in rows]}


@router.post("/sources/refresh", response_model=RefreshOut)
def refresh(
    db: Session = Depends(get_db),
    connector: BaseConnector = Depends(get_extract_connector),
):
    try:
        outcomes = refresh_sources(db, connector=connector)
    except ExtractServiceError as e:
        logger.exception("Extraction failed during refresh", extra={"step": "refresh"})
        raise HTTPException(status_code=502, detail=str(e))

    ok = sum(1 for o in outcomes if o.ok)
    return {"extracted": ok, "errors": len(outcomes) - ok}
