"""Web-push subscription model."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from gclub.db.base import Base


class PushSubscription(Base):
    """Browser push endpoint registered by a user (one per user)."""
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    endpoint = Column(String(1000), nullable=False)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
