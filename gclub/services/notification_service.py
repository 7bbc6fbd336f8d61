"""Notification service — dispatch and per-user receipts."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gclub.core.exceptions import ResourceNotFoundError
from gclub.models.notification import Notification, NotificationReceipt

logger = logging.getLogger("gclub")


class NotificationType:
    PARTICIPANT_JOINED = "PARTICIPANT_JOINED"
    PARTICIPANT_LEFT = "PARTICIPANT_LEFT"
    PARTICIPANT_REMOVED = "PARTICIPANT_REMOVED"
    GAME_FULL = "GAME_FULL"
    WAITING_PROMOTED = "WAITING_PROMOTED"
    GAME_POST_DELETED = "GAME_POST_DELETED"
    ANNOUNCEMENT = "ANNOUNCEMENT"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class NotificationService:
    """Creates notifications and tracks read state per recipient."""

    @staticmethod
    def dispatch(
        db: Session,
        recipients: Iterable[str],
        type: str,
        title: str,
        body: str,
        game_post_id: Optional[int] = None,
        sender_id: Optional[str] = None,
        action_url: Optional[str] = None,
    ) -> Optional[Notification]:
        """Create a notification and one receipt per distinct recipient."""
        recipients = sorted({r for r in recipients if r})
        if not recipients:
            return None
        notification = Notification(
            type=type,
            title=title,
            body=body,
            game_post_id=game_post_id,
            sender_id=sender_id,
            action_url=action_url,
        )
        db.add(notification)
        db.flush()
        db.add_all(
            NotificationReceipt(notification_id=notification.id, user_id=user_id)
            for user_id in recipients
        )
        db.commit()
        return notification

    @staticmethod
    def dispatch_quietly(db: Session, recipients: Iterable[str], **kwargs) -> Optional[Notification]:
        """Dispatch after the main change has committed; failures are only logged."""
        try:
            return NotificationService.dispatch(db, recipients, **kwargs)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to dispatch %s notification", kwargs.get("type"))
            return None

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: str,
        page: int = 1,
        page_size: int = 20,
        unread_only: bool = False,
        type: Optional[str] = None,
    ):
        """Receipts of a user, newest first."""
        query = db.query(NotificationReceipt).filter(NotificationReceipt.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationReceipt.is_read.is_(False))
        if type:
            query = query.join(Notification).filter(Notification.type == type)

        total = query.count()
        receipts = (
            query.order_by(NotificationReceipt.created_at.desc(), NotificationReceipt.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {
            "receipts": receipts,
            "total": total,
            "page": page,
            "page_size": page_size,
            "unread_count": NotificationService.unread_count(db, user_id),
        }

    @staticmethod
    def unread_count(db: Session, user_id: str) -> int:
        return (
            db.query(NotificationReceipt)
            .filter(NotificationReceipt.user_id == user_id, NotificationReceipt.is_read.is_(False))
            .count()
        )

    @staticmethod
    def mark_read(db: Session, user_id: str, receipt_id: int):
        """Mark one of the user's receipts read. Returns (receipt, was_already_read)."""
        receipt = (
            db.query(NotificationReceipt)
            .filter(NotificationReceipt.id == receipt_id, NotificationReceipt.user_id == user_id)
            .first()
        )
        if not receipt:
            raise ResourceNotFoundError("Notification not found")
        if receipt.is_read:
            return receipt, True

        receipt.is_read = True
        receipt.read_at = _utcnow()
        db.commit()
        return receipt, False

    @staticmethod
    def mark_all_read(db: Session, user_id: str) -> int:
        count = (
            db.query(NotificationReceipt)
            .filter(NotificationReceipt.user_id == user_id, NotificationReceipt.is_read.is_(False))
            .update({"is_read": True, "read_at": _utcnow()}, synchronize_session=False)
        )
        db.commit()
        return count


notification_service = NotificationService()
