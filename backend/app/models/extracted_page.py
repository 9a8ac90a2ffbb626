"""
ExtractedPage model: append-only history of per-URL extraction outcomes.

Each row is either a success (title / publish date / excerpts / full content
plus a content fingerprint) or a failure (error type, HTTP status, error body),
never both.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index, JSON

from ..core.db import Base


class ExtractedPage(Base):
    __tablename__ = "extracted_pages"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign keys
    source_id = Column(Integer, ForeignKey("sources.id", ondelete="CASCADE"), nullable=False)
    extract_run_id = Column(
        Integer,
        ForeignKey("extract_runs.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    extracted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Success payload
    title = Column(String, nullable=True)
    publish_date = Column(String, nullable=True)
    excerpts = Column(JSON, nullable=True)  # List[str]
    full_content_md = Column(Text, nullable=True)
    content_sha256 = Column(String(64), nullable=True)

    # Failure payload
    error_type = Column(String, nullable=True)
    http_status_code = Column(Integer, nullable=True)
    error_content = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_extracted_pages_source_extracted_at", "source_id", "extracted_at"),
    )

    @property
    def is_error(self) -> bool:
        return self.error_type is not None
