# backend/app/schemas/sources.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, constr

MAX_QUESTION_LEN = 4000


class AddSourcesRequest(BaseModel):
    urls: list[str] | None = None
    run_extract: bool = True


class DeactivateSourcesRequest(BaseModel):
    urls: list[str]


class SourceOut(BaseModel):
    id: int
    url: str
    created_at: datetime
    updated_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SourceWithLatestOut(SourceOut):
    latest_extracted_page_id: int | None = None
    latest_extracted_at: datetime | None = None
    latest_title: str | None = None
    latest_has_full_content: bool = False
    latest_objective: str | None = None


class SourceListOut(BaseModel):
    sources: list[SourceWithLatestOut]


class AddSourcesOut(BaseModel):
    added: int
    sources: list[SourceWithLatestOut]


class RefreshOut(BaseModel):
    extracted: int
    errors: int


# ---------------------------------------------------------------------------
# Chat Schemas
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    question: constr(max_length=MAX_QUESTION_LEN) = ""
    full_page: bool = False


class RouterDecisionOut(BaseModel):
    mode: str
    reason: str
    signals: dict

    model_config = ConfigDict(from_attributes=True)


class SourceEvidenceOut(BaseModel):
    url: str
    content: str

    model_config = ConfigDict(from_attributes=True)


class ChatEvidenceOut(BaseModel):
    chat_query_id: int
    decision: RouterDecisionOut
    search_queries: list[str] | None = None
    evidence: list[SourceEvidenceOut] = []
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)
