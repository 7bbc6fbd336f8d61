"""Comment service — discussion threads under game posts."""

import logging
from typing import List

from sqlalchemy.orm import Session

from gclub.core.config import settings
from gclub.core.exceptions import ResourceNotFoundError, ValidationError
from gclub.core.permissions import AuthContext
from gclub.models.comment import GameComment
from gclub.services.waiting_list_service import waiting_list_service

logger = logging.getLogger("gclub")


def _clean_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment content is required")
    if len(content) > settings.COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comments are limited to {settings.COMMENT_MAX_LENGTH} characters")
    return content


class CommentService:
    """Oldest-first comments; only the writer edits or deletes."""

    @staticmethod
    def list_comments(db: Session, post_id: int) -> List[GameComment]:
        """All comments of a post, deleted ones included (their text is masked on output)."""
        waiting_list_service.get_post(db, post_id)
        return (
            db.query(GameComment)
            .filter(GameComment.game_post_id == post_id)
            .order_by(GameComment.created_at.asc(), GameComment.id.asc())
            .all()
        )

    @staticmethod
    def create_comment(db: Session, ctx: AuthContext, post_id: int, content: str) -> GameComment:
        content = _clean_content(content)
        waiting_list_service.get_post(db, post_id)
        if ctx.profile is None:
            raise ResourceNotFoundError("Register a profile before commenting")

        comment = GameComment(game_post_id=post_id, author_id=ctx.user_id, content=content)
        db.add(comment)
        db.commit()
        db.refresh(comment)
        logger.info("Comment %s added to post %s by %s", comment.id, post_id, ctx.user_id)
        return comment

    @staticmethod
    def _own_comment(db: Session, post_id: int, comment_id: int, user_id: str) -> GameComment:
        comment = (
            db.query(GameComment)
            .filter(
                GameComment.id == comment_id,
                GameComment.game_post_id == post_id,
                GameComment.author_id == user_id,
                GameComment.is_deleted.is_(False),
            )
            .first()
        )
        if not comment:
            raise ResourceNotFoundError("Comment not found or not yours")
        return comment

    @staticmethod
    def update_comment(db: Session, post_id: int, comment_id: int, user_id: str, content: str) -> GameComment:
        content = _clean_content(content)
        comment = CommentService._own_comment(db, post_id, comment_id, user_id)
        comment.content = content
        db.commit()
        db.refresh(comment)
        return comment

    @staticmethod
    def delete_comment(db: Session, post_id: int, comment_id: int, user_id: str) -> None:
        """Soft delete; the original text stays in the row."""
        comment = CommentService._own_comment(db, post_id, comment_id, user_id)
        comment.is_deleted = True
        db.commit()
        logger.info("Comment %s on post %s deleted by %s", comment_id, post_id, user_id)


comment_service = CommentService()
