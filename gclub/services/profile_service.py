"""Profile service — user profiles and their role assignment."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from gclub.core.permissions import RoleName
from gclub.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from gclub.models.game_post import GameParticipant, GamePost, GamePostStatus
from gclub.models.role import Role
from gclub.models.user import UserProfile

logger = logging.getLogger("gclub")


class ProfileService:
    """Reads and registers user profiles (the authorization anchor)."""

    @staticmethod
    def get_user_profile(db: Session, user_id: str) -> Optional[UserProfile]:
        """Profile (with role and permissions loaded) or None."""
        return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    @staticmethod
    def get_profile(db: Session, user_id: str) -> UserProfile:
        profile = ProfileService.get_user_profile(db, user_id)
        if not profile:
            raise ResourceNotFoundError(f"Profile for user {user_id} not found")
        return profile

    @staticmethod
    def default_role(db: Session) -> Optional[Role]:
        role = db.query(Role).filter(Role.is_default.is_(True)).first()
        if role is None:
            role = db.query(Role).filter(Role.name == RoleName.NONE.value).first()
        return role

    @staticmethod
    def register(db: Session, user_id: str, name: str, image: Optional[str] = None) -> UserProfile:
        """Create the caller's profile with the default role."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        if ProfileService.get_user_profile(db, user_id):
            raise ResourceConflictError("Profile already exists")

        role = ProfileService.default_role(db)
        profile = UserProfile(
            user_id=user_id,
            name=name,
            image=image,
            role_id=role.id if role else None,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info("Registered profile for %s with role %s", user_id, role.name if role else None)
        return profile

    @staticmethod
    def list_profiles(db: Session, page: int = 1, page_size: int = 20, query: Optional[str] = None):
        """List profiles with pagination and optional name search."""
        q = db.query(UserProfile)
        if query:
            q = q.filter(UserProfile.name.ilike(f"%{query}%"))
        total = q.count()
        profiles = (
            q.order_by(UserProfile.created_at.desc(), UserProfile.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"profiles": profiles, "total": total, "page": page}

    @staticmethod
    def game_mate_history(db: Session, user_id: str, page: int = 1, page_size: int = 10):
        """Non-deleted posts the user holds a slot in, latest start first."""
        query = (
            db.query(GamePost)
            .join(GameParticipant, GameParticipant.game_post_id == GamePost.id)
            .filter(GameParticipant.user_id == user_id, GamePost.status != GamePostStatus.DELETED)
        )
        total = query.count()
        posts = (
            query.order_by(GamePost.start_time.desc(), GamePost.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"posts": posts, "total": total, "page": page, "page_size": page_size}

    @staticmethod
    def display_names(db: Session, user_ids) -> dict:
        user_ids = [u for u in set(user_ids) if u]
        if not user_ids:
            return {}
        rows = db.query(UserProfile.user_id, UserProfile.name).filter(UserProfile.user_id.in_(user_ids)).all()
        return {user_id: name for user_id, name in rows}


profile_service = ProfileService()
