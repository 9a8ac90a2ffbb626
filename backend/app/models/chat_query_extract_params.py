from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON

from ..core.db import Base

DEFAULT_PARALLEL_BETA_HEADER = "search-extract-2025-10-10"

class ChatQueryExtractParams(Base):
    """Resolved extraction configuration actually used for one chat query."""
    __tablename__ = "chat_query_extract_params"

    chat_query_id = Column(
        Integer,
        ForeignKey("chat_queries.id", ondelete="CASCADE"),
        primary_key=True,
    )
    objective = Column(Text, nullable=False)
    search_queries = Column(JSON, nullable=True)  # List[str] or NULL
    excerpts = Column(JSON, nullable=False)
    full_content = Column(JSON, nullable=False)
    fetch_policy = Column(JSON, nullable=True)
    parallel_beta_header = Column(
        String,
        nullable=False,
        default=DEFAULT_PARALLEL_BETA_HEADER,
    )
