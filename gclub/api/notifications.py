"""Notifications API router."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import NotificationListResponse, ReceiptOut, MessageResponse
from gclub.services.notification_service import notification_service
from gclub.core.security import Identity, get_current_identity

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    unread_only: bool = Query(False),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """The caller's notifications, newest first."""
    result = notification_service.list_for_user(db, identity.id, page, page_size, unread_only, type)
    return NotificationListResponse(
        receipts=[ReceiptOut.model_validate(r) for r in result["receipts"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        unread_count=result["unread_count"],
    )


@router.get("/unread-count")
async def unread_count(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return {"unread_count": notification_service.unread_count(db, identity.id)}


@router.post("/read-all", response_model=MessageResponse)
async def read_all(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Mark every unread notification read."""
    count = notification_service.mark_all_read(db, identity.id)
    return MessageResponse(message=f"Marked {count} notifications as read", detail={"count": count})


@router.post("/{receipt_id}/read", response_model=MessageResponse)
async def read_one(
    receipt_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Mark one of the caller's notifications read."""
    _, already_read = notification_service.mark_read(db, identity.id, receipt_id)
    if already_read:
        return MessageResponse(message="Notification already read")
    return MessageResponse(message="Notification marked as read")
