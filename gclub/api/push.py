"""Push subscription API router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import PushSubscribeRequest, PushStatusResponse, MessageResponse
from gclub.services.push_service import push_service
from gclub.core.security import Identity, get_current_identity

router = APIRouter(prefix="/push", tags=["push"])


@router.post("/subscribe", response_model=PushStatusResponse)
async def subscribe(
    body: PushSubscribeRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Register (or replace) the caller's push endpoint."""
    sub = push_service.subscribe(db, identity.id, body.endpoint, body.p256dh, body.auth)
    return PushStatusResponse(enabled=sub.enabled)


@router.get("/check", response_model=PushStatusResponse)
async def check(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return PushStatusResponse(enabled=push_service.is_enabled(db, identity.id))


@router.delete("/unsubscribe", response_model=MessageResponse)
async def unsubscribe(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    removed = push_service.unsubscribe(db, identity.id)
    return MessageResponse(message="Unsubscribed" if removed else "No subscription")
