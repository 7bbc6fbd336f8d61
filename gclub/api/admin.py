"""Admin API router — role/permission management and audit."""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gclub.db.session import get_db
from gclub.schemas.schemas import (
    AuditLogOut, PermissionOut, ProfileOut, RoleOut, RolePermissionsUpdate,
    UserRoleUpdate, MessageResponse,
)
from gclub.services.audit_service import audit_service
from gclub.services.profile_service import profile_service
from gclub.services.role_service import role_service
from gclub.core.exceptions import AuthorizationError
from gclub.core.permissions import AuthContext, PermissionKey, can_access_admin_panel, has_permission
from gclub.core.security import get_auth_context, require_admin, require_super_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/roles")
async def list_roles(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    """All roles, lowest rank first."""
    return [RoleOut.model_validate(r) for r in role_service.list_roles(db)]


@router.get("/permissions")
async def list_permissions(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return [PermissionOut.model_validate(p) for p in role_service.list_permissions(db)]


@router.put("/roles/{role_id}/permissions", response_model=RoleOut)
async def update_role_permissions(
    role_id: int,
    body: RolePermissionsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_super_admin),
):
    """Replace a role's permission set (super admin only)."""
    before = sorted(p.name for p in role_service.get_role(db, role_id).permissions)
    role = role_service.set_role_permissions(db, role_id, body.permission_ids)
    audit_service.log_from_request(
        db, request,
        actor_id=ctx.user_id,
        action="role.permissions_updated",
        resource_type="role",
        resource_id=role.id,
        old_value=before,
        new_value=sorted(p.name for p in role.permissions),
    )
    db.commit()
    role_service.invalidate_role(role.id)
    db.refresh(role)
    return role


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    """List user profiles (admin only)."""
    result = profile_service.list_profiles(db, page, page_size, q)
    return {
        "users": [ProfileOut.model_validate(p) for p in result["profiles"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.put("/users/{user_id}/role", response_model=ProfileOut)
async def update_user_role(
    user_id: str,
    body: UserRoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Assign a role to a user (super admin or USER_ROLE_MANAGE)."""
    if not has_permission(ctx.role, PermissionKey.USER_ROLE_MANAGE):
        raise AuthorizationError("Permission 'USER_ROLE_MANAGE' required.")

    target = profile_service.get_profile(db, user_id)
    old_role = target.role.name if target.role else None
    profile = role_service.assign_user_role(db, ctx, user_id, body.role_id)
    audit_service.log_from_request(
        db, request,
        actor_id=ctx.user_id,
        action="user.role_changed",
        resource_type="user",
        resource_id=user_id,
        old_value=old_role,
        new_value=profile.role.name,
    )
    db.commit()
    db.refresh(profile)
    return profile


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    actor_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Query audit logs (admins or admin-panel access)."""
    if not can_access_admin_panel(ctx.role):
        raise AuthorizationError("Admin panel access required.")
    result = audit_service.query_logs(db, actor_id, action, resource_type, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }
