"""Waiting-list API router."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import WaitRequest, WaitingOut, MessageResponse
from gclub.services.waiting_list_service import waiting_list_service
from gclub.core.exceptions import RetiredOperationError
from gclub.core.permissions import AuthContext
from gclub.core.security import Identity, get_current_identity, require_member

router = APIRouter(prefix="/game-posts", tags=["waiting-list"])

MANUAL_PROMOTION_RETIRED = (
    "Waiting participants are promoted automatically. "
    "Manual promotion and rejection have been disabled."
)


@router.post("/{post_id}/wait", response_model=WaitingOut)
async def join_waiting_list(
    post_id: int,
    body: Optional[WaitRequest] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_member),
):
    """Queue for a slot on a full game post."""
    available_time = body.available_time if body else None
    return waiting_list_service.enqueue(db, post_id, ctx.user_id, available_time)


@router.post("/{post_id}/wait/cancel", response_model=MessageResponse)
async def cancel_waiting(
    post_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Cancel the caller's own waiting entry."""
    waiting_list_service.cancel(db, post_id, identity.id)
    return MessageResponse(message="Waiting entry canceled")


@router.patch("/{post_id}/waiting/{waiting_id}", include_in_schema=False)
async def manual_promotion(post_id: str, waiting_id: str):
    raise RetiredOperationError(MANUAL_PROMOTION_RETIRED)
