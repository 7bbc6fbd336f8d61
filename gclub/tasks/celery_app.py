"""Celery app and scheduled status tasks."""

from celery import Celery
from celery.schedules import crontab

from gclub.core.config import settings

celery_app = Celery(
    "gclub",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_soft_time_limit=60,
    task_time_limit=120,
    beat_schedule={
        "update-post-status": {
            "task": "update_post_status",
            "schedule": crontab(minute="*/5"),
        },
        "promote-time-waiting": {
            "task": "promote_time_waiting",
            "schedule": crontab(minute="*"),
        },
    },
)


@celery_app.task(name="update_post_status")
def update_post_status() -> dict:
    """Advance game posts through IN_PROGRESS and COMPLETED."""
    from gclub.db.session import SessionLocal
    from gclub.services.status_service import status_service

    db = SessionLocal()
    try:
        return status_service.update_post_status(db)
    finally:
        db.close()


@celery_app.task(name="promote_time_waiting")
def promote_time_waiting() -> dict:
    """Turn matured TIME_WAITING entries into WAITING."""
    from gclub.db.session import SessionLocal
    from gclub.services.status_service import status_service

    db = SessionLocal()
    try:
        return status_service.promote_time_waiting(db)
    finally:
        db.close()
