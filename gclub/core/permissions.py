"""Role/permission evaluation shared by route guards and profile responses.

Every predicate takes the caller's role explicitly (an ORM ``Role`` or a
cached ``RoleSnapshot``) and fails closed when it is missing.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional, Union


class RoleName(str, enum.Enum):
    NONE = "NONE"
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


ROLE_RANKS = {
    RoleName.NONE: 0,
    RoleName.USER: 1,
    RoleName.ADMIN: 2,
    RoleName.SUPER_ADMIN: 3,
}


class PermissionKey:
    """Well-known permission names seeded into the permissions table."""

    MANAGE_CHANNELS = "MANAGE_CHANNELS"
    ADMIN_PANEL_ACCESS = "ADMIN_PANEL_ACCESS"
    USER_ROLE_MANAGE = "USER_ROLE_MANAGE"
    POST_MANAGE_ALL = "POST_MANAGE_ALL"
    GAME_POST_CREATE = "GAME_POST_CREATE"
    NOTICE_MANAGE = "NOTICE_MANAGE"
    NOTIFICATION_SEND = "NOTIFICATION_SEND"
    SYSTEM_SETTINGS = "SYSTEM_SETTINGS"


@dataclass(frozen=True)
class RoleSnapshot:
    """Detached copy of a role and its permission names."""

    id: Optional[int]
    name: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_role(cls, role) -> "RoleSnapshot":
        return cls(id=role.id, name=role.name, permissions=frozenset(permission_names(role)))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "permissions": sorted(self.permissions)}

    @classmethod
    def from_dict(cls, data: dict) -> "RoleSnapshot":
        return cls(id=data.get("id"), name=data["name"], permissions=frozenset(data.get("permissions", [])))


@dataclass
class AuthContext:
    """Everything an authorization decision needs about the caller."""

    identity: Any
    profile: Any = None
    role: Any = None

    @property
    def user_id(self) -> str:
        return self.identity.id


def _role_name(role) -> Optional[str]:
    name = getattr(role, "name", None)
    if isinstance(name, enum.Enum):
        return name.value
    return name


def permission_names(role) -> Iterable[str]:
    for permission in getattr(role, "permissions", None) or ():
        yield permission if isinstance(permission, str) else permission.name


def role_rank(role_or_name) -> Optional[int]:
    """Rank of a role (or role name); None for unknown names."""
    name = role_or_name if isinstance(role_or_name, str) else _role_name(role_or_name)
    try:
        return ROLE_RANKS[RoleName(name)]
    except (ValueError, TypeError):
        return None


def is_super_admin(role) -> bool:
    if role is None:
        return False
    return _role_name(role) == RoleName.SUPER_ADMIN.value


def is_admin(role) -> bool:
    if role is None:
        return False
    return _role_name(role) in (RoleName.ADMIN.value, RoleName.SUPER_ADMIN.value)


def has_permission(role, permission_key: str) -> bool:
    """SUPER_ADMIN passes every check; other roles need an exact name match."""
    if role is None:
        return False
    if is_super_admin(role):
        return True
    return permission_key in set(permission_names(role))


def has_minimum_role(role, required: Union[RoleName, str]) -> bool:
    if role is None:
        return False
    rank = role_rank(role)
    required_rank = role_rank(required.value if isinstance(required, RoleName) else required)
    if rank is None or required_rank is None:
        return False
    return rank >= required_rank


def can_manage_channels(role) -> bool:
    if role is None:
        return False
    return is_super_admin(role) or PermissionKey.MANAGE_CHANNELS in set(permission_names(role))


def can_access_admin_panel(role) -> bool:
    return is_admin(role) or has_permission(role, PermissionKey.ADMIN_PANEL_ACCESS)


def capabilities(role) -> dict:
    """Capability flags for presentation clients."""
    return {
        "is_admin": is_admin(role),
        "is_super_admin": is_super_admin(role),
        "can_manage_channels": can_manage_channels(role),
        "can_access_admin_panel": can_access_admin_panel(role),
        "is_member": has_minimum_role(role, RoleName.USER),
    }
