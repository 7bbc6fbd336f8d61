"""Notification and NotificationReceipt models."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from gclub.db.base import Base


class Notification(Base):
    """A notification message, delivered to users through receipts."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(50), nullable=False, index=True)  # e.g. "WAITING_PROMOTED"
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    action_url = Column(String(500), nullable=True)
    game_post_id = Column(Integer, ForeignKey("game_posts.id", ondelete="SET NULL"), nullable=True)
    sender_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    receipts = relationship("NotificationReceipt", back_populates="notification")


class NotificationReceipt(Base):
    """Per-user delivery record of a notification.

    Receipts are only ever marked read, never deleted.
    """
    __tablename__ = "notification_receipts"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_receipt_notification_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    notification = relationship("Notification", back_populates="receipts", lazy="joined")
