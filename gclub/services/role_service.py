"""Role service — role/permission lookups and administrative edits."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gclub.core.config import settings
from gclub.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from gclub.core.permissions import (
    AuthContext, RoleName, RoleSnapshot, has_permission, is_super_admin, role_rank,
)
from gclub.models.role import Permission, Role
from gclub.models.user import UserProfile
from gclub.services.cache_service import cache_service

logger = logging.getLogger("gclub")


class RoleService:
    """Reads role reference data and applies administrative changes."""

    @staticmethod
    def get_role(db: Session, role_id: int) -> Role:
        role = db.query(Role).filter(Role.id == role_id).first()
        if not role:
            raise ResourceNotFoundError(f"Role {role_id} not found")
        return role

    @staticmethod
    def get_role_snapshot(db: Session, role_id: int) -> Optional[RoleSnapshot]:
        """Role name and permission names, served from cache when possible."""
        key = cache_service.role_key(role_id)
        cached = cache_service.get_json(key)
        if cached:
            return RoleSnapshot.from_dict(cached)

        role = db.query(Role).filter(Role.id == role_id).first()
        if role is None:
            return None
        snapshot = RoleSnapshot.from_role(role)
        cache_service.set_json(key, snapshot.to_dict(), settings.ROLE_CACHE_TTL_SECONDS)
        return snapshot

    @staticmethod
    def check_permission(db: Session, role_id: int, permission_name: str) -> bool:
        return has_permission(RoleService.get_role_snapshot(db, role_id), permission_name)

    @staticmethod
    def list_roles(db: Session) -> List[Role]:
        roles = db.query(Role).all()
        return sorted(roles, key=lambda r: (role_rank(r) is None, role_rank(r) or 0, r.name))

    @staticmethod
    def list_permissions(db: Session) -> List[Permission]:
        return db.query(Permission).order_by(Permission.name).all()

    @staticmethod
    def set_role_permissions(db: Session, role_id: int, permission_ids: List[int]) -> Role:
        """Replace a role's permission set. Caller commits, then calls ``invalidate_role``."""
        role = RoleService.get_role(db, role_id)
        wanted = set(permission_ids)
        permissions = db.query(Permission).filter(Permission.id.in_(wanted)).all() if wanted else []
        missing = wanted - {p.id for p in permissions}
        if missing:
            raise ValidationError(f"Unknown permission ids: {sorted(missing)}")

        role.permissions = permissions
        logger.info("Role %s permissions set to %s", role.name, sorted(p.name for p in permissions))
        return role

    @staticmethod
    def invalidate_role(role_id: int) -> None:
        """Drop the cached snapshot. Call once the permission change is committed."""
        cache_service.delete(cache_service.role_key(role_id))

    @staticmethod
    def assign_user_role(db: Session, ctx: AuthContext, target_user_id: str, role_id: int) -> UserProfile:
        """Change another user's role. Caller commits."""
        if target_user_id == ctx.user_id:
            raise AuthorizationError("You cannot change your own role")

        profile = db.query(UserProfile).filter(UserProfile.user_id == target_user_id).first()
        if not profile:
            raise ResourceNotFoundError(f"Profile for user {target_user_id} not found")
        role = RoleService.get_role(db, role_id)

        touches_super_admin = role.name == RoleName.SUPER_ADMIN.value or is_super_admin(profile.role)
        if touches_super_admin and not is_super_admin(ctx.role):
            raise AuthorizationError("Only a super admin can grant or revoke SUPER_ADMIN")

        profile.role_id = role.id
        profile.role = role
        logger.info("User %s role set to %s by %s", target_user_id, role.name, ctx.user_id)
        return profile


role_service = RoleService()
