from types import SimpleNamespace

import pytest

from gclub.core.permissions import (
    PermissionKey, RoleName, RoleSnapshot, can_access_admin_panel, can_manage_channels,
    capabilities, has_minimum_role, has_permission, is_admin, is_super_admin, role_rank,
)


def role(name, *permissions):
    """Duck-typed role as loaded from the database."""
    return SimpleNamespace(
        id=1,
        name=name,
        permissions=[SimpleNamespace(name=p) for p in permissions],
    )


ALL_ROLES = ["NONE", "USER", "ADMIN", "SUPER_ADMIN"]


@pytest.mark.parametrize("name,rank", [("NONE", 0), ("USER", 1), ("ADMIN", 2), ("SUPER_ADMIN", 3)])
def test_role_rank(name, rank):
    assert role_rank(name) == rank
    assert role_rank(role(name)) == rank


def test_unknown_role_has_no_rank():
    assert role_rank("MODERATOR") is None
    assert role_rank(role("MODERATOR")) is None
    assert not has_minimum_role(role("MODERATOR"), RoleName.NONE)


@pytest.mark.parametrize("held", ALL_ROLES)
@pytest.mark.parametrize("required", ALL_ROLES)
def test_minimum_role_follows_rank_order(held, required):
    expected = ALL_ROLES.index(held) >= ALL_ROLES.index(required)
    assert has_minimum_role(role(held), required) is expected
    assert has_minimum_role(role(held), RoleName(required)) is expected


@pytest.mark.parametrize("check", [
    is_admin, is_super_admin, can_manage_channels, can_access_admin_panel,
    lambda r: has_permission(r, PermissionKey.MANAGE_CHANNELS),
    lambda r: has_minimum_role(r, RoleName.NONE),
])
def test_missing_role_fails_closed(check):
    assert check(None) is False


def test_super_admin_passes_every_permission():
    super_admin = role("SUPER_ADMIN")
    assert has_permission(super_admin, PermissionKey.SYSTEM_SETTINGS)
    assert has_permission(super_admin, "ANYTHING_AT_ALL")


def test_permission_requires_exact_name():
    admin = role("ADMIN", PermissionKey.MANAGE_CHANNELS)
    assert has_permission(admin, "MANAGE_CHANNELS")
    assert not has_permission(admin, "manage_channels")
    assert not has_permission(admin, "MANAGE")
    assert not has_permission(admin, PermissionKey.NOTICE_MANAGE)


def test_admin_flags():
    assert is_admin(role("ADMIN")) and not is_super_admin(role("ADMIN"))
    assert is_admin(role("SUPER_ADMIN")) and is_super_admin(role("SUPER_ADMIN"))
    assert not is_admin(role("USER"))


def test_channel_management_needs_permission_or_super_admin():
    assert can_manage_channels(role("SUPER_ADMIN"))
    assert can_manage_channels(role("USER", PermissionKey.MANAGE_CHANNELS))
    assert not can_manage_channels(role("ADMIN"))


def test_admin_panel_access():
    assert can_access_admin_panel(role("ADMIN"))
    assert can_access_admin_panel(role("USER", PermissionKey.ADMIN_PANEL_ACCESS))
    assert not can_access_admin_panel(role("USER"))


def test_snapshot_round_trip_keeps_decisions():
    original = role("ADMIN", PermissionKey.MANAGE_CHANNELS, PermissionKey.NOTICE_MANAGE)
    snapshot = RoleSnapshot.from_dict(RoleSnapshot.from_role(original).to_dict())
    assert snapshot.permissions == {"MANAGE_CHANNELS", "NOTICE_MANAGE"}
    assert has_permission(snapshot, PermissionKey.NOTICE_MANAGE)
    assert can_manage_channels(snapshot)
    assert is_admin(snapshot)


def test_capabilities_for_member_and_visitor():
    assert capabilities(role("USER")) == {
        "is_admin": False,
        "is_super_admin": False,
        "can_manage_channels": False,
        "can_access_admin_panel": False,
        "is_member": True,
    }
    assert not any(capabilities(None).values())
    assert capabilities(role("NONE"))["is_member"] is False
