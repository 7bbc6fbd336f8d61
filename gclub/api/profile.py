"""Profile API router — registration and the caller's own profile."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import (
    GameMateHistoryResponse, GameMatePostOut, GamePostOut, MeResponse, ProfileCreate, ProfileOut,
)
from gclub.services.profile_service import profile_service
from gclub.core.permissions import AuthContext, capabilities
from gclub.core.security import Identity, get_auth_context, get_current_identity

router = APIRouter(prefix="/profile", tags=["profile"])


@router.post("/", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def register_profile(
    body: ProfileCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Register the caller's profile with the default role."""
    return profile_service.register(db, identity.id, body.name, body.image or identity.image)


@router.get("/me", response_model=MeResponse)
async def get_me(ctx: AuthContext = Depends(get_auth_context)):
    """Caller's profile, role and capability flags.

    ``profile`` is null until the caller registers.
    """
    return MeResponse(
        profile=ProfileOut.model_validate(ctx.profile) if ctx.profile else None,
        capabilities=capabilities(ctx.role),
    )


@router.get("/game-mate-history", response_model=GameMateHistoryResponse)
async def game_mate_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Game posts the caller is playing in, hosted ones included."""
    result = profile_service.game_mate_history(db, identity.id, page, page_size)
    return GameMateHistoryResponse(
        posts=[
            GameMatePostOut(
                **GamePostOut.model_validate(post).model_dump(),
                is_owner=post.author_id == identity.id,
                waiting_count=sum(1 for w in post.waiting_list if w.is_active),
            )
            for post in result["posts"]
        ],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )
