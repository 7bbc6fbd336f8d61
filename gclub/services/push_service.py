"""Push subscription service."""

from typing import Optional

from sqlalchemy.orm import Session

from gclub.models.push_subscription import PushSubscription


class PushService:
    """Stores one browser push endpoint per user."""

    @staticmethod
    def subscribe(db: Session, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """Create or replace the user's subscription."""
        sub = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).first()
        if sub is None:
            sub = PushSubscription(user_id=user_id)
            db.add(sub)
        sub.endpoint = endpoint
        sub.p256dh = p256dh
        sub.auth = auth
        sub.enabled = True
        db.commit()
        db.refresh(sub)
        return sub

    @staticmethod
    def get(db: Session, user_id: str) -> Optional[PushSubscription]:
        return db.query(PushSubscription).filter(PushSubscription.user_id == user_id).first()

    @staticmethod
    def is_enabled(db: Session, user_id: str) -> bool:
        """No subscription row simply means disabled."""
        sub = PushService.get(db, user_id)
        return bool(sub and sub.enabled)

    @staticmethod
    def unsubscribe(db: Session, user_id: str) -> bool:
        deleted = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).delete()
        db.commit()
        return bool(deleted)


push_service = PushService()
