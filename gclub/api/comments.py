"""Game post comments API router."""

from typing import Dict, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import CommentOut, CommentWrite, MessageResponse
from gclub.models.comment import GameComment
from gclub.services.comment_service import comment_service
from gclub.services.profile_service import profile_service
from gclub.core.permissions import AuthContext
from gclub.core.security import Identity, get_auth_context, get_current_identity

router = APIRouter(prefix="/game-posts", tags=["comments"])


def to_out(comment: GameComment, names: Dict[str, str]) -> CommentOut:
    return CommentOut(
        id=comment.id,
        game_post_id=comment.game_post_id,
        author_id=comment.author_id,
        author_name=names.get(comment.author_id),
        content=comment.display_content,
        is_deleted=comment.is_deleted,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


@router.get("/{post_id}/comments", response_model=List[CommentOut])
async def list_comments(post_id: int, db: Session = Depends(get_db)):
    """Comments oldest first; deleted ones show placeholder text."""
    comments = comment_service.list_comments(db, post_id)
    names = profile_service.display_names(db, [c.author_id for c in comments])
    return [to_out(c, names) for c in comments]


@router.post("/{post_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: int,
    body: CommentWrite,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    comment = comment_service.create_comment(db, ctx, post_id, body.content)
    return to_out(comment, {ctx.user_id: ctx.profile.name})


@router.patch("/{post_id}/comments/{comment_id}", response_model=CommentOut)
async def update_comment(
    post_id: int,
    comment_id: int,
    body: CommentWrite,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Edit one's own comment."""
    comment = comment_service.update_comment(db, post_id, comment_id, identity.id, body.content)
    return to_out(comment, profile_service.display_names(db, [identity.id]))


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    post_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    comment_service.delete_comment(db, post_id, comment_id, identity.id)
    return MessageResponse(message="Comment deleted")
