"""GameComment model."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from gclub.db.base import Base

DELETED_COMMENT_TEXT = "[This comment has been deleted]"


class GameComment(Base):
    """A comment on a game post. Deletion is soft and keeps the original text."""
    __tablename__ = "game_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_post_id = Column(Integer, ForeignKey("game_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(64), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    game_post = relationship("GamePost")

    @property
    def display_content(self) -> str:
        return DELETED_COMMENT_TEXT if self.is_deleted else self.content
