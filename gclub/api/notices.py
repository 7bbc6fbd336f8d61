"""Notices API router."""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import NoticeCreate, NoticeOut, MessageResponse
from gclub.services.audit_service import audit_service
from gclub.services.notice_service import notice_service
from gclub.core.config import settings
from gclub.core.permissions import AuthContext, PermissionKey
from gclub.core.rate_limiter import limiter
from gclub.core.security import RequirePermission

router = APIRouter(prefix="/notices", tags=["notices"])

require_notice_manager = RequirePermission(PermissionKey.NOTICE_MANAGE)


@router.get("/")
async def list_notices(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    result = notice_service.list_notices(db, page, page_size)
    return {
        "notices": [NoticeOut.model_validate(n) for n in result["notices"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/{notice_id}", response_model=NoticeOut)
async def get_notice(notice_id: int, db: Session = Depends(get_db)):
    return notice_service.get_notice(db, notice_id)


@router.post("/", response_model=NoticeOut, status_code=status.HTTP_201_CREATED)
async def create_notice(
    body: NoticeCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_notice_manager),
):
    """Publish a notice (notice managers only)."""
    return notice_service.create_notice(db, ctx.user_id, body.title, body.content, body.is_pinned)


@router.delete("/{notice_id}", response_model=MessageResponse)
async def delete_notice(
    notice_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_notice_manager),
):
    audit_service.log_from_request(
        db, request,
        actor_id=ctx.user_id,
        action="notice.deleted",
        resource_type="notice",
        resource_id=notice_id,
    )
    notice_service.delete_notice(db, notice_id)
    return MessageResponse(message="Notice deleted")


@router.post("/{notice_id}/view", response_model=MessageResponse)
@limiter.limit(settings.VIEW_RATE_LIMIT)
async def increment_view(request: Request, notice_id: int, db: Session = Depends(get_db)):
    notice_service.increment_view(db, notice_id)
    return MessageResponse(message="View counted")
