"""Notice model."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func
from gclub.db.base import Base


class Notice(Base):
    """Announcement written by administrators."""
    __tablename__ = "notices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String(64), nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
