"""Game post service — create/edit/delete posts, join and leave."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gclub.core.config import settings
from gclub.core.exceptions import (
    AuthorizationError, GameFullError, ResourceConflictError,
    ResourceNotFoundError, ValidationError,
)
from gclub.core.permissions import AuthContext, PermissionKey, has_permission, is_admin
from gclub.models.game_post import (
    ACTIVE_WAITING_STATUSES, RECRUITING_STATUSES,
    GameParticipant, GamePost, GamePostStatus, WaitingParticipant, WaitingStatus,
)
from gclub.services.notification_service import NotificationType, notification_service
from gclub.services.profile_service import profile_service
from gclub.services.waiting_list_service import to_naive_utc, waiting_list_service

logger = logging.getLogger("gclub")

EDITABLE_FIELDS = ("title", "content", "game_name", "start_time", "max_players")


def _validate_capacity(max_players: int) -> None:
    if not settings.MIN_PLAYERS <= max_players <= settings.MAX_PLAYERS:
        raise ValidationError(
            f"max_players must be between {settings.MIN_PLAYERS} and {settings.MAX_PLAYERS}"
        )


def _can_moderate(ctx: AuthContext, post: GamePost) -> bool:
    return (
        post.author_id == ctx.user_id
        or is_admin(ctx.role)
        or has_permission(ctx.role, PermissionKey.POST_MANAGE_ALL)
    )


class GamePostService:
    """Lifecycle of game posts and their confirmed participants."""

    @staticmethod
    def create_post(
        db: Session,
        author_id: str,
        title: str,
        content: str,
        game_name: str,
        max_players: int,
        start_time: datetime,
    ) -> GamePost:
        """Create a post; the author takes the first slot as leader."""
        _validate_capacity(max_players)
        post = GamePost(
            title=title,
            content=content,
            game_name=game_name,
            max_players=max_players,
            start_time=to_naive_utc(start_time),
            author_id=author_id,
            status=GamePostStatus.OPEN,
        )
        post.participants.append(GameParticipant(user_id=author_id, is_leader=True))
        waiting_list_service.recompute_status(post)
        db.add(post)
        db.commit()
        db.refresh(post)
        logger.info("Game post %s created by %s", post.id, author_id)
        return post

    @staticmethod
    def list_posts(
        db: Session,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        author_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Non-deleted posts, newest first. ``recruiting`` means OPEN or FULL."""
        query = db.query(GamePost).filter(GamePost.status != GamePostStatus.DELETED)
        if status == "recruiting":
            query = query.filter(GamePost.status.in_(RECRUITING_STATUSES))
        elif status:
            try:
                wanted = GamePostStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown status '{status}'")
            if wanted == GamePostStatus.DELETED:
                raise ValidationError("Deleted posts cannot be listed")
            query = query.filter(GamePost.status == wanted)
        if author_id:
            query = query.filter(GamePost.author_id == author_id)

        total = query.count()
        posts = (
            query.order_by(GamePost.created_at.desc(), GamePost.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"posts": posts, "total": total, "page": page, "page_size": page_size}

    @staticmethod
    def get_post(db: Session, post_id: int) -> GamePost:
        return waiting_list_service.get_post(db, post_id)

    @staticmethod
    def update_post(db: Session, ctx: AuthContext, post_id: int, changes: Dict[str, Any]) -> GamePost:
        """Edit a post; a capacity increase promotes waiting entries."""
        post = waiting_list_service.get_post(db, post_id, for_update=True)
        if not _can_moderate(ctx, post):
            raise AuthorizationError("You cannot edit this game post")
        if post.status == GamePostStatus.COMPLETED:
            raise ValidationError("Completed game posts cannot be edited")

        if changes.get("max_players") is not None:
            max_players = changes["max_players"]
            _validate_capacity(max_players)
            if max_players < post.participant_count:
                raise ValidationError(
                    f"max_players cannot be lower than the current participant count ({post.participant_count})"
                )

        for field in EDITABLE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "start_time":
                value = to_naive_utc(value)
            setattr(post, field, value)

        promoted = waiting_list_service.promote_waiting(db, post)
        db.commit()
        db.refresh(post)
        GamePostService._notify_promoted(db, post, promoted)
        return post

    @staticmethod
    def delete_post(db: Session, ctx: AuthContext, post_id: int) -> None:
        """Soft delete: the post moves to DELETED and its queue is canceled."""
        post = waiting_list_service.get_post(db, post_id, for_update=True)
        if not _can_moderate(ctx, post):
            raise AuthorizationError("You cannot delete this game post")

        recipients = [p.user_id for p in post.participants if p.user_id != ctx.user_id]
        post.status = GamePostStatus.DELETED
        waiting_list_service.cancel_all(db, post)
        db.commit()
        logger.info("Game post %s deleted by %s", post_id, ctx.user_id)

        notification_service.dispatch_quietly(
            db,
            recipients,
            type=NotificationType.GAME_POST_DELETED,
            title="Game canceled",
            body=f"'{post.title}' has been deleted.",
            game_post_id=post.id,
            sender_id=ctx.user_id,
        )

    @staticmethod
    def close_recruitment(db: Session, ctx: AuthContext, post_id: int) -> GamePost:
        """Author ends recruiting early; the post completes and the queue is canceled."""
        post = waiting_list_service.get_post(db, post_id, for_update=True)
        if post.author_id != ctx.user_id:
            raise AuthorizationError("Only the author can close recruitment")
        if post.status not in RECRUITING_STATUSES:
            raise ValidationError("Only recruiting game posts can be closed")

        post.status = GamePostStatus.COMPLETED
        waiting_list_service.cancel_all(db, post)
        db.commit()
        db.refresh(post)
        return post

    @staticmethod
    def join(db: Session, post_id: int, user_id: str) -> GameParticipant:
        """Take a free slot on an OPEN post.

        Raises:
            GameFullError: every slot is taken; the caller may enqueue instead.
        """
        post = waiting_list_service.get_post(db, post_id, for_update=True)

        if post.author_id == user_id:
            raise ValidationError("You cannot join your own game post")
        if any(p.user_id == user_id for p in post.participants):
            raise ResourceConflictError("You are already participating in this game post")
        if post.status == GamePostStatus.FULL or (post.status == GamePostStatus.OPEN and not post.has_free_slot):
            raise GameFullError("All slots are taken. Join the waiting list instead.")
        if post.status != GamePostStatus.OPEN:
            raise ValidationError("This game post is not recruiting")

        participant = GameParticipant(user_id=user_id)
        post.participants.append(participant)
        # a queued user who takes a slot directly leaves the queue
        db.query(WaitingParticipant).filter(
            WaitingParticipant.game_post_id == post.id,
            WaitingParticipant.user_id == user_id,
            WaitingParticipant.status.in_(ACTIVE_WAITING_STATUSES),
        ).update({"status": WaitingStatus.CANCELED}, synchronize_session=False)
        waiting_list_service.recompute_status(post)
        others = [p.user_id for p in post.participants if p.user_id not in (user_id, post.author_id)]
        became_full = post.status == GamePostStatus.FULL
        db.commit()
        db.refresh(participant)

        name = profile_service.display_names(db, [user_id]).get(user_id, "Someone")
        notification_service.dispatch_quietly(
            db,
            [post.author_id],
            type=NotificationType.PARTICIPANT_JOINED,
            title="New participant",
            body=f"{name} joined '{post.title}'.",
            game_post_id=post.id,
            sender_id=user_id,
        )
        notification_service.dispatch_quietly(
            db,
            others,
            type=NotificationType.PARTICIPANT_JOINED,
            title="New participant",
            body=f"{name} joined '{post.title}'.",
            game_post_id=post.id,
            sender_id=user_id,
        )
        if became_full:
            notification_service.dispatch_quietly(
                db,
                [p.user_id for p in post.participants],
                type=NotificationType.GAME_FULL,
                title="Game is full",
                body=f"'{post.title}' has all of its players.",
                game_post_id=post.id,
            )
        return participant

    @staticmethod
    def leave(db: Session, post_id: int, user_id: str) -> List[WaitingParticipant]:
        """Give up a slot; the head of the waiting list takes it."""
        post = waiting_list_service.get_post(db, post_id, for_update=True)

        participation = next((p for p in post.participants if p.user_id == user_id), None)
        if participation is None:
            raise ResourceNotFoundError("Participation not found")
        if post.author_id == user_id:
            raise AuthorizationError("The author cannot leave; delete the game post instead")
        if post.status == GamePostStatus.COMPLETED:
            raise ValidationError("This game has already finished")

        post.participants.remove(participation)
        db.flush()
        promoted = waiting_list_service.promote_waiting(db, post)
        db.commit()
        db.refresh(post)
        logger.info("User %s left post %s", user_id, post_id)

        name = profile_service.display_names(db, [user_id]).get(user_id, "Someone")
        notification_service.dispatch_quietly(
            db,
            [p.user_id for p in post.participants if p.user_id not in {w.user_id for w in promoted}],
            type=NotificationType.PARTICIPANT_LEFT,
            title="Participant left",
            body=f"{name} left '{post.title}'.",
            game_post_id=post.id,
            sender_id=user_id,
        )
        GamePostService._notify_promoted(db, post, promoted)
        return promoted

    @staticmethod
    def remove_participant(
        db: Session, ctx: AuthContext, post_id: int, participant_id: int,
    ) -> List[WaitingParticipant]:
        """Author takes another player off the roster; the queue fills the slot."""
        post = waiting_list_service.get_post(db, post_id, for_update=True)
        if post.author_id != ctx.user_id:
            raise AuthorizationError("Only the author can remove participants")

        participation = next((p for p in post.participants if p.id == participant_id), None)
        if participation is None:
            raise ResourceNotFoundError("Participation not found")
        if participation.user_id == post.author_id:
            raise ValidationError("The author cannot be removed")
        if post.status == GamePostStatus.COMPLETED:
            raise ValidationError("This game has already finished")

        removed_user_id = participation.user_id
        post.participants.remove(participation)
        db.flush()
        promoted = waiting_list_service.promote_waiting(db, post)
        db.commit()
        db.refresh(post)
        logger.info("User %s removed from post %s by %s", removed_user_id, post_id, ctx.user_id)

        notification_service.dispatch_quietly(
            db,
            [removed_user_id],
            type=NotificationType.PARTICIPANT_REMOVED,
            title="Removed from game",
            body=f"The host removed you from '{post.title}'.",
            game_post_id=post.id,
            sender_id=ctx.user_id,
        )
        GamePostService._notify_promoted(db, post, promoted)
        return promoted

    @staticmethod
    def _notify_promoted(db: Session, post: GamePost, promoted: List[WaitingParticipant]) -> None:
        if not promoted:
            return
        notification_service.dispatch_quietly(
            db,
            [entry.user_id for entry in promoted],
            type=NotificationType.WAITING_PROMOTED,
            title="You're in!",
            body=f"A slot opened up and you joined '{post.title}'.",
            game_post_id=post.id,
            action_url=f"/game-mate/{post.id}",
        )


game_post_service = GamePostService()
