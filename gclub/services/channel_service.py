"""Channel service."""

from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from gclub.core.exceptions import ResourceNotFoundError, ValidationError
from gclub.models.channel import Channel


class ChannelService:
    """Channel listing and ordering."""

    @staticmethod
    def list_channels(db: Session, include_inactive: bool = False) -> List[Channel]:
        query = db.query(Channel)
        if not include_inactive:
            query = query.filter(Channel.is_active.is_(True))
        return query.order_by(Channel.order.asc(), Channel.id.asc()).all()

    @staticmethod
    def reorder(db: Session, orders: Iterable[Tuple[int, int]]) -> int:
        """Apply (channel_id, order) pairs in one transaction; all or nothing."""
        orders = list(orders)
        ids = [channel_id for channel_id, _ in orders]
        if len(set(ids)) != len(ids):
            raise ValidationError("Duplicate channel ids")
        if not ids:
            return 0

        channels = {c.id: c for c in db.query(Channel).filter(Channel.id.in_(ids)).all()}
        missing = [i for i in ids if i not in channels]
        if missing:
            raise ResourceNotFoundError(f"Channels not found: {missing}")

        for channel_id, order in orders:
            channels[channel_id].order = order
        db.commit()
        return len(orders)


channel_service = ChannelService()
