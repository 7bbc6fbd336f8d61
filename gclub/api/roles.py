"""Role check API router."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import RoleCheckRequest
from gclub.services.role_service import role_service

router = APIRouter(prefix="/roles", tags=["roles"])
logger = logging.getLogger("gclub")


@router.post("/check")
async def check_permission(request: Request, db: Session = Depends(get_db)):
    """Answer ``{hasPermission}`` for a role id and permission name.

    Guards display logic only, so every failure answers ``false``.
    """
    try:
        body = RoleCheckRequest.model_validate(await request.json())
        allowed = role_service.check_permission(db, body.role_id, body.permission_name)
    except Exception:
        logger.warning("Permission check failed; answering false", exc_info=True)
        allowed = False
    return {"hasPermission": allowed}
