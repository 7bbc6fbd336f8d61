"""Cron API router — HTTP triggers for the scheduled status jobs."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from gclub.core.config import settings
from gclub.tasks.celery_app import promote_time_waiting, update_post_status

router = APIRouter(prefix="/cron", tags=["cron"])
logger = logging.getLogger("gclub.jobs")


async def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require ``Bearer <CRON_SECRET>`` when a secret is configured."""
    if settings.CRON_SECRET and authorization != f"Bearer {settings.CRON_SECRET}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")


def run_remote(task) -> dict:
    """Dispatch a task to the workers and wait for its result."""
    result = task.apply_async()
    return result.get(timeout=settings.STATUS_UPDATE_TIMEOUT_SECONDS)


async def _trigger(task, success_message: str, failure_message: str) -> JSONResponse:
    try:
        data = await run_in_threadpool(run_remote, task)
    except Exception:
        logger.exception("Scheduled task %s failed", task.name)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": failure_message},
        )
    return JSONResponse(content={"success": True, "message": success_message, "data": data})


@router.get("/update-post-status", dependencies=[Depends(verify_cron_secret)])
async def trigger_update_post_status():
    """Run the game post status sweep."""
    return await _trigger(
        update_post_status,
        "Post statuses updated",
        "Failed to update post statuses",
    )


@router.post("/promote-time-waiting", dependencies=[Depends(verify_cron_secret)])
async def trigger_promote_time_waiting():
    """Run the time-waiting maturation sweep."""
    return await _trigger(
        promote_time_waiting,
        "Time-waiting entries promoted",
        "Failed to promote time-waiting entries",
    )
