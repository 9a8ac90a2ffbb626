from sqlalchemy import Column, Integer, String, JSON, Enum, DateTime, ForeignKey
from datetime import datetime
import enum
from ..core.db import Base
from . import chat_query  # noqa: F401  (extract_runs.chat_query_id references chat_queries)

class ExtractTrigger(str, enum.Enum):
    CHAT = "chat"
    ADD_SOURCES = "add_sources"
    REFRESH = "refresh"

class ExtractRun(Base):
    """One external extraction call covering one batch of URLs."""
    __tablename__ = "extract_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_query_id = Column(
        Integer,
        ForeignKey("chat_queries.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    trigger = Column(
        Enum(
            ExtractTrigger,
            name="extract_trigger",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    parallel_extract_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    warnings = Column(JSON, nullable=True)
    usage = Column(JSON, nullable=True)
