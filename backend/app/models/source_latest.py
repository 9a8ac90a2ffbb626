from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey

from ..core.db import Base

class SourceLatest(Base):
    """Pointer to the most recently processed successful page of a source."""
    __tablename__ = "source_latest"

    source_id = Column(Integer, ForeignKey("sources.id", ondelete="CASCADE"), primary_key=True)
    latest_extracted_page_id = Column(
        Integer,
        ForeignKey("extracted_pages.id", ondelete="CASCADE"),
        nullable=False,
    )
    latest_extracted_at = Column(DateTime, nullable=False)
    latest_title = Column(String, nullable=True)
    latest_has_full_content = Column(Boolean, nullable=False, default=False)
    latest_objective = Column(Text, nullable=True)
