"""Seed default roles and permissions into the database."""

from sqlalchemy.orm import Session
from gclub.models.role import Role, Permission
from gclub.core.permissions import PermissionKey, RoleName


PERMISSIONS = {
    PermissionKey.MANAGE_CHANNELS: "Reorder and edit channels",
    PermissionKey.ADMIN_PANEL_ACCESS: "Open the admin panel",
    PermissionKey.USER_ROLE_MANAGE: "Change other users' roles",
    PermissionKey.POST_MANAGE_ALL: "Edit or delete any game post",
    PermissionKey.GAME_POST_CREATE: "Create game posts",
    PermissionKey.NOTICE_MANAGE: "Publish and remove notices",
    PermissionKey.NOTIFICATION_SEND: "Send notifications to users",
    PermissionKey.SYSTEM_SETTINGS: "Change system settings",
}

ROLES = [
    {
        "name": RoleName.NONE.value,
        "description": "Signed up, not yet a member",
        "is_default": True,
        "permissions": [],
    },
    {
        "name": RoleName.USER.value,
        "description": "Community member",
        "is_default": False,
        "permissions": [PermissionKey.GAME_POST_CREATE],
    },
    {
        "name": RoleName.ADMIN.value,
        "description": "Manage channels, posts, and notices",
        "is_default": False,
        "permissions": [
            PermissionKey.MANAGE_CHANNELS,
            PermissionKey.ADMIN_PANEL_ACCESS,
            PermissionKey.POST_MANAGE_ALL,
            PermissionKey.GAME_POST_CREATE,
            PermissionKey.NOTICE_MANAGE,
            PermissionKey.NOTIFICATION_SEND,
        ],
    },
    {
        "name": RoleName.SUPER_ADMIN.value,
        "description": "Full system access",
        "is_default": False,
        # listed for display only, super admin bypasses permission checks
        "permissions": list(PERMISSIONS),
    },
]


def seed_roles(db: Session) -> None:
    """Insert default permissions and roles if they don't already exist."""
    permissions = {}
    for name, description in PERMISSIONS.items():
        permission = db.query(Permission).filter(Permission.name == name).first()
        if not permission:
            permission = Permission(name=name, description=description)
            db.add(permission)
        permissions[name] = permission

    for role_data in ROLES:
        existing = db.query(Role).filter(Role.name == role_data["name"]).first()
        if existing:
            continue
        db.add(Role(
            name=role_data["name"],
            description=role_data["description"],
            is_default=role_data["is_default"],
            permissions=[permissions[p] for p in role_data["permissions"]],
        ))

    db.commit()
    print(f"✅ Seeded {len(PERMISSIONS)} permissions and {len(ROLES)} roles")
