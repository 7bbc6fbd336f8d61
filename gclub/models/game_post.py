"""GamePost, GameParticipant and WaitingParticipant models."""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, Index,
    UniqueConstraint, func, text,
)
from sqlalchemy.orm import relationship
from gclub.db.base import Base


class GamePostStatus(str, enum.Enum):
    OPEN = "OPEN"
    FULL = "FULL"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"


class WaitingStatus(str, enum.Enum):
    WAITING = "WAITING"
    TIME_WAITING = "TIME_WAITING"
    PROMOTED = "PROMOTED"
    CANCELED = "CANCELED"


ACTIVE_WAITING_STATUSES = (WaitingStatus.WAITING, WaitingStatus.TIME_WAITING)
RECRUITING_STATUSES = (GamePostStatus.OPEN, GamePostStatus.FULL)

_ACTIVE_WAITING_SQL = text("status IN ('WAITING', 'TIME_WAITING')")


class GamePost(Base):
    """A hosted game session with a participant capacity."""
    __tablename__ = "game_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    game_name = Column(String(100), nullable=False)
    max_players = Column(Integer, nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)
    status = Column(
        Enum(GamePostStatus, name="game_post_status"),
        default=GamePostStatus.OPEN,
        nullable=False,
        index=True,
    )
    author_id = Column(String(64), nullable=False, index=True)
    view_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    participants = relationship(
        "GameParticipant",
        back_populates="game_post",
        cascade="all, delete-orphan",
        order_by="GameParticipant.id",
        lazy="selectin",
    )
    waiting_list = relationship(
        "WaitingParticipant",
        back_populates="game_post",
        cascade="all, delete-orphan",
        order_by="WaitingParticipant.id",
        lazy="selectin",
    )

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def has_free_slot(self) -> bool:
        return self.participant_count < self.max_players


class GameParticipant(Base):
    """A confirmed occupant of a GamePost slot."""
    __tablename__ = "game_participants"
    __table_args__ = (
        UniqueConstraint("game_post_id", "user_id", name="uq_participant_post_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_post_id = Column(Integer, ForeignKey("game_posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    is_leader = Column(Boolean, default=False, nullable=False)
    is_reserve = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime, server_default=func.now(), nullable=False)

    game_post = relationship("GamePost", back_populates="participants")


class WaitingParticipant(Base):
    """A queued request for a GamePost slot.

    WAITING and TIME_WAITING are the only non-terminal states; PROMOTED and
    CANCELED rows are kept for history and never change again.
    """
    __tablename__ = "waiting_participants"
    __table_args__ = (
        Index(
            "uq_waiting_active_post_user",
            "game_post_id",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_WAITING_SQL,
            sqlite_where=_ACTIVE_WAITING_SQL,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_post_id = Column(Integer, ForeignKey("game_posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(
        Enum(WaitingStatus, name="waiting_status"),
        default=WaitingStatus.WAITING,
        nullable=False,
    )
    available_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    game_post = relationship("GamePost", back_populates="waiting_list")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_WAITING_STATUSES
