"""Waiting-list service — queueing for full game posts and automatic promotion.

All mutations of a post's participant and waiting collections run while the
post row is locked (``SELECT ... FOR UPDATE``), so promotions for the same
post are serialized and a freed slot is claimed by exactly one entry.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gclub.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from gclub.models.game_post import (
    ACTIVE_WAITING_STATUSES, RECRUITING_STATUSES,
    GameParticipant, GamePost, GamePostStatus, WaitingParticipant, WaitingStatus,
)

logger = logging.getLogger("gclub")

# Posts in these states can still hand out freed slots.
PROMOTABLE_STATUSES = (GamePostStatus.OPEN, GamePostStatus.FULL, GamePostStatus.IN_PROGRESS)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class WaitingListService:
    """Enqueue, cancel and promote waiting entries of a game post."""

    @staticmethod
    def get_post(db: Session, post_id: int, for_update: bool = False) -> GamePost:
        """Fetch a non-deleted post, optionally locking its row."""
        query = db.query(GamePost).filter(
            GamePost.id == post_id,
            GamePost.status != GamePostStatus.DELETED,
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        post = query.first()
        if not post:
            raise ResourceNotFoundError("Game post not found")
        return post

    @staticmethod
    def recompute_status(post: GamePost) -> GamePostStatus:
        """FULL iff every slot is taken while recruiting; later states are kept."""
        if post.status in RECRUITING_STATUSES:
            post.status = GamePostStatus.FULL if not post.has_free_slot else GamePostStatus.OPEN
        return post.status

    @staticmethod
    def find_active_entry(db: Session, post_id: int, user_id: str) -> Optional[WaitingParticipant]:
        return (
            db.query(WaitingParticipant)
            .filter(
                WaitingParticipant.game_post_id == post_id,
                WaitingParticipant.user_id == user_id,
                WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
            )
            .first()
        )

    @staticmethod
    def next_in_line(db: Session, post_id: int) -> Optional[WaitingParticipant]:
        """Earliest-created non-terminal entry (FIFO, ties broken by id)."""
        return (
            db.query(WaitingParticipant)
            .filter(
                WaitingParticipant.game_post_id == post_id,
                WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
            )
            .order_by(WaitingParticipant.created_at.asc(), WaitingParticipant.id.asc())
            .first()
        )

    @staticmethod
    def enqueue(
        db: Session,
        post_id: int,
        user_id: str,
        available_time: Optional[datetime] = None,
    ) -> WaitingParticipant:
        """Queue the user for a slot on a full post.

        Entries with a future ``available_time`` start as TIME_WAITING.
        """
        post = WaitingListService.get_post(db, post_id, for_update=True)

        if post.author_id == user_id:
            raise ValidationError("You cannot wait on your own game post")
        if post.status not in RECRUITING_STATUSES:
            raise ValidationError("This game post is no longer accepting players")
        if any(p.user_id == user_id for p in post.participants):
            raise ResourceConflictError("You are already participating in this game post")
        if WaitingListService.find_active_entry(db, post.id, user_id):
            raise ResourceConflictError("You are already on the waiting list")
        if post.has_free_slot:
            raise ValidationError("This game post still has free slots; join it directly")

        available_time = to_naive_utc(available_time)
        time_boxed = available_time is not None and available_time > utcnow()
        entry = WaitingParticipant(
            game_post_id=post.id,
            user_id=user_id,
            available_time=available_time,
            status=WaitingStatus.TIME_WAITING if time_boxed else WaitingStatus.WAITING,
        )
        db.add(entry)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ResourceConflictError("You are already on the waiting list")
        db.refresh(entry)
        logger.info("User %s queued on post %s as %s", user_id, post.id, entry.status.value)
        return entry

    @staticmethod
    def cancel(db: Session, post_id: int, user_id: str) -> None:
        """Cancel the caller's own non-terminal entry.

        The update is conditional on the entry still being non-terminal, so an
        entry promoted in the meantime is reported as not found.
        """
        WaitingListService.get_post(db, post_id)
        entry = WaitingListService.find_active_entry(db, post_id, user_id)
        if entry is None:
            raise ResourceNotFoundError("No cancelable waiting entry found")

        updated = (
            db.query(WaitingParticipant)
            .filter(
                WaitingParticipant.id == entry.id,
                WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
            )
            .update({"status": WaitingStatus.CANCELED}, synchronize_session=False)
        )
        if not updated:
            db.rollback()
            raise ResourceNotFoundError("No cancelable waiting entry found")
        db.commit()
        logger.info("User %s canceled waiting entry %s on post %s", user_id, entry.id, post_id)

    @staticmethod
    def promote_waiting(db: Session, post: GamePost) -> List[WaitingParticipant]:
        """Fill free slots from the head of the queue.

        Must be called with the post row locked. Does not commit.
        """
        promoted: List[WaitingParticipant] = []
        if post.status not in PROMOTABLE_STATUSES:
            return promoted

        while post.has_free_slot:
            candidate = WaitingListService.next_in_line(db, post.id)
            if candidate is None:
                break
            candidate.status = WaitingStatus.PROMOTED
            if not any(p.user_id == candidate.user_id for p in post.participants):
                post.participants.append(GameParticipant(user_id=candidate.user_id))
            db.flush()
            promoted.append(candidate)
            logger.info(
                "Promoted waiting entry %s (user %s) on post %s",
                candidate.id, candidate.user_id, post.id,
            )

        WaitingListService.recompute_status(post)
        return promoted

    @staticmethod
    def cancel_all(db: Session, post: GamePost) -> int:
        """Cancel every non-terminal entry of a post that stops recruiting. Does not commit."""
        return (
            db.query(WaitingParticipant)
            .filter(
                WaitingParticipant.game_post_id == post.id,
                WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
            )
            .update({"status": WaitingStatus.CANCELED}, synchronize_session=False)
        )

    @staticmethod
    def increment_view(db: Session, post_id: int) -> None:
        """Atomic ``view_count + 1`` on a non-deleted post."""
        updated = (
            db.query(GamePost)
            .filter(GamePost.id == post_id, GamePost.status != GamePostStatus.DELETED)
            .update({"view_count": GamePost.view_count + 1}, synchronize_session=False)
        )
        if not updated:
            db.rollback()
            raise ResourceNotFoundError("Game post not found")
        db.commit()


waiting_list_service = WaitingListService()
