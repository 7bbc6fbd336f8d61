"""Seed the super-admin profile from env vars."""

from sqlalchemy.orm import Session
from gclub.models.user import UserProfile
from gclub.models.role import Role
from gclub.core.config import settings
from gclub.core.permissions import RoleName


def seed_super_admin(db: Session) -> None:
    """Attach SUPER_ADMIN to the configured auth subject, creating its profile if needed."""
    if not settings.SUPER_ADMIN_USER_ID:
        print("ℹ️  SUPER_ADMIN_USER_ID not set, skipping.")
        return

    super_admin_role = db.query(Role).filter(Role.name == RoleName.SUPER_ADMIN.value).first()
    if not super_admin_role:
        print("⚠️  SUPER_ADMIN role not found. Run seed_roles first.")
        return

    profile = db.query(UserProfile).filter(UserProfile.user_id == settings.SUPER_ADMIN_USER_ID).first()
    if profile and profile.role_id == super_admin_role.id:
        print(f"ℹ️  Super admin '{settings.SUPER_ADMIN_USER_ID}' already exists, skipping.")
        return

    if profile:
        profile.role_id = super_admin_role.id
    else:
        db.add(UserProfile(
            user_id=settings.SUPER_ADMIN_USER_ID,
            name=settings.SUPER_ADMIN_NAME,
            role_id=super_admin_role.id,
        ))
    db.commit()
    print(f"✅ Super admin set: {settings.SUPER_ADMIN_USER_ID}")
