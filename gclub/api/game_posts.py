"""Game posts API router."""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import (
    GamePostCreate, GamePostUpdate, GamePostDetail, GamePostOut,
    GamePostListResponse, ParticipantOut, WaitingOut, MessageResponse,
)
from gclub.models.game_post import GamePost
from gclub.services.game_post_service import game_post_service
from gclub.services.waiting_list_service import waiting_list_service
from gclub.core.config import settings
from gclub.core.exceptions import GameFullError
from gclub.core.permissions import AuthContext
from gclub.core.rate_limiter import limiter
from gclub.core.security import Identity, get_auth_context, get_current_identity, require_member

router = APIRouter(prefix="/game-posts", tags=["game-posts"])


def to_detail(post: GamePost) -> GamePostDetail:
    return GamePostDetail(
        **GamePostOut.model_validate(post).model_dump(),
        content=post.content,
        participants=[ParticipantOut.model_validate(p) for p in post.participants],
        waiting_list=[WaitingOut.model_validate(w) for w in post.waiting_list if w.is_active],
    )


@router.post("/", response_model=GamePostDetail, status_code=status.HTTP_201_CREATED)
async def create_game_post(
    body: GamePostCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_member),
):
    """Create a game post; the author becomes its leader."""
    post = game_post_service.create_post(
        db,
        author_id=ctx.user_id,
        title=body.title,
        content=body.content,
        game_name=body.game_name,
        max_players=body.max_players,
        start_time=body.start_time,
    )
    return to_detail(post)


@router.get("/", response_model=GamePostListResponse)
async def list_game_posts(
    status_filter: Optional[str] = Query(None, alias="status"),
    author_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List game posts (``status=recruiting`` for OPEN and FULL)."""
    result = game_post_service.list_posts(db, status_filter, page, page_size, author_id)
    return GamePostListResponse(
        posts=[GamePostOut.model_validate(p) for p in result["posts"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/{post_id}", response_model=GamePostDetail)
async def get_game_post(post_id: int, db: Session = Depends(get_db)):
    """Post detail with participants and the active waiting list."""
    return to_detail(game_post_service.get_post(db, post_id))


@router.patch("/{post_id}", response_model=GamePostDetail)
async def update_game_post(
    post_id: int,
    body: GamePostUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Edit a post (author or moderators)."""
    post = game_post_service.update_post(db, ctx, post_id, body.model_dump(exclude_unset=True))
    return to_detail(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_game_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Soft-delete a post (author or moderators)."""
    game_post_service.delete_post(db, ctx, post_id)
    return MessageResponse(message="Game post deleted")


@router.patch("/{post_id}/close-recruitment", response_model=GamePostDetail)
async def close_recruitment(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """End recruiting early (author only)."""
    return to_detail(game_post_service.close_recruitment(db, ctx, post_id))


@router.post("/{post_id}/participate", response_model=MessageResponse)
async def participate(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_member),
):
    """Join a game post with a free slot."""
    try:
        game_post_service.join(db, post_id, ctx.user_id)
    except GameFullError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message,
            headers={"X-Requires-Waiting": "true"},
        )
    return MessageResponse(message="Joined the game")


@router.delete("/{post_id}/participate", response_model=MessageResponse)
async def leave(
    post_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Leave a game post; the first waiting user takes the slot."""
    promoted = game_post_service.leave(db, post_id, identity.id)
    return MessageResponse(
        message="Left the game",
        detail={"promoted_user_ids": [w.user_id for w in promoted]},
    )


@router.delete("/{post_id}/participants/{participant_id}", response_model=MessageResponse)
async def remove_participant(
    post_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Remove another participant (author only)."""
    promoted = game_post_service.remove_participant(db, ctx, post_id, participant_id)
    return MessageResponse(
        message="Participant removed",
        detail={"promoted_user_ids": [w.user_id for w in promoted]},
    )


@router.post("/{post_id}/view", response_model=MessageResponse)
@limiter.limit(settings.VIEW_RATE_LIMIT)
async def increment_view(request: Request, post_id: int, db: Session = Depends(get_db)):
    """Count a view."""
    waiting_list_service.increment_view(db, post_id)
    return MessageResponse(message="View counted")
