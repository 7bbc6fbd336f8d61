"""Scheduled status sweeps for game posts and time-boxed waiting entries."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from gclub.core.config import settings
from gclub.models.game_post import (
    ACTIVE_WAITING_STATUSES, RECRUITING_STATUSES,
    GamePost, GamePostStatus, WaitingParticipant, WaitingStatus,
)
from gclub.services.waiting_list_service import utcnow

logger = logging.getLogger("gclub.jobs")


class StatusService:
    """Time-driven transitions, run by the scheduler."""

    @staticmethod
    def update_post_status(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Start posts whose start time passed, complete games that ran their course."""
        now = now or utcnow()
        finished_before = now - timedelta(hours=settings.GAME_DURATION_HOURS)

        started = (
            db.query(GamePost)
            .filter(GamePost.status.in_(RECRUITING_STATUSES), GamePost.start_time <= now)
            .update({"status": GamePostStatus.IN_PROGRESS}, synchronize_session=False)
        )
        finished_ids = [
            post_id for (post_id,) in db.query(GamePost.id).filter(
                GamePost.status == GamePostStatus.IN_PROGRESS,
                GamePost.start_time <= finished_before,
            )
        ]
        completed = canceled = 0
        if finished_ids:
            completed = (
                db.query(GamePost)
                .filter(GamePost.id.in_(finished_ids), GamePost.status == GamePostStatus.IN_PROGRESS)
                .update({"status": GamePostStatus.COMPLETED}, synchronize_session=False)
            )
            # a finished game hands out no more slots
            canceled = (
                db.query(WaitingParticipant)
                .filter(
                    WaitingParticipant.game_post_id.in_(finished_ids),
                    WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
                )
                .update({"status": WaitingStatus.CANCELED}, synchronize_session=False)
            )
        db.commit()

        logger.info(
            "Status sweep: %s in progress, %s completed, %s waiting entries canceled",
            started, completed, canceled,
        )
        return {
            "updated_to_in_progress": started,
            "updated_to_completed": completed,
            "canceled_waiting": canceled,
        }

    @staticmethod
    def promote_time_waiting(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """TIME_WAITING entries whose available time has come become WAITING."""
        now = now or utcnow()
        entries = (
            db.query(WaitingParticipant)
            .filter(
                WaitingParticipant.status == WaitingStatus.TIME_WAITING,
                WaitingParticipant.available_time <= now,
            )
            .order_by(WaitingParticipant.id)
            .all()
        )
        for entry in entries:
            entry.status = WaitingStatus.WAITING
        db.commit()

        logger.info("Time-waiting sweep: %s entries now WAITING", len(entries))
        return {
            "promoted_count": len(entries),
            "promoted": [
                {"id": e.id, "user_id": e.user_id, "game_post_id": e.game_post_id}
                for e in entries
            ],
        }


status_service = StatusService()
