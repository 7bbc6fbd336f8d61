"""Channels API router."""

import pydantic
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import ChannelOut, ChannelOrderRequest, MessageResponse
from gclub.services.audit_service import audit_service
from gclub.services.channel_service import channel_service
from gclub.core.exceptions import bad_request, forbidden
from gclub.core.permissions import AuthContext, can_manage_channels
from gclub.core.security import get_auth_context

router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("/")
async def list_channels(db: Session = Depends(get_db)):
    """Active channels in display order."""
    return [ChannelOut.model_validate(c) for c in channel_service.list_channels(db)]


@router.put("/order", response_model=MessageResponse)
async def update_channel_order(
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Persist a new channel order in a single transaction."""
    if not can_manage_channels(ctx.role):
        raise forbidden()

    try:
        body = ChannelOrderRequest.model_validate(await request.json())
    except (ValueError, pydantic.ValidationError):
        raise bad_request("Malformed request body")

    orders = [(item.id, item.order) for item in body.channels]
    audit_service.log_from_request(
        db, request,
        actor_id=ctx.user_id,
        action="channel.reordered",
        resource_type="channel",
        new_value=dict(orders),
    )
    updated = channel_service.reorder(db, orders)
    return MessageResponse(message="Channel order updated", detail={"updated": updated})
