from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON
from datetime import datetime

from ..core.db import Base

class ChatQuery(Base):
    __tablename__ = "chat_queries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    full_page = Column(Boolean, nullable=False, default=False)
    router_reason = Column(JSON, nullable=True)  # {decision, reason, signals, ...}
