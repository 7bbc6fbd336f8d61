"""Auth-provider token verification and RBAC request guards."""

from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from gclub.core.config import settings
from gclub.core.exceptions import forbidden, unauthorized
from gclub.core.permissions import AuthContext, RoleName, has_minimum_role, has_permission
from gclub.db.session import get_db

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


@dataclass
class Identity:
    """Authenticated subject as reported by the auth provider."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None


def decode_token(token: str) -> dict:
    """Decode and validate an access token issued by the auth provider."""
    options = {"verify_aud": settings.AUTH_JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        raise unauthorized("Invalid or expired token")


def identity_from_claims(payload: dict) -> Identity:
    user_id = payload.get("sub")
    if not user_id:
        raise unauthorized("Invalid token payload")
    metadata = payload.get("user_metadata") or {}
    return Identity(
        id=str(user_id),
        email=payload.get("email"),
        name=metadata.get("name") or metadata.get("full_name"),
        image=metadata.get("avatar_url"),
    )


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Optional[Identity]:
    """Identity of the caller, or None for anonymous requests."""
    if credentials is None:
        return None
    return identity_from_claims(decode_token(credentials.credentials))


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """Identity of the caller; 401 when unauthenticated."""
    if identity is None:
        raise unauthorized()
    return identity


async def get_auth_context(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Load the caller's profile, role and permissions."""
    from gclub.services.profile_service import profile_service

    profile = profile_service.get_user_profile(db, identity.id)
    return AuthContext(
        identity=identity,
        profile=profile,
        role=profile.role if profile else None,
    )


class RequirePermission:
    """Dependency that checks the caller's role for a permission."""

    def __init__(self, permission_key: str):
        self.permission_key = permission_key

    async def __call__(self, ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not has_permission(ctx.role, self.permission_key):
            raise forbidden(f"Permission '{self.permission_key}' required.")
        return ctx


class RequireRole:
    """Dependency that checks if the user has a required minimum role."""

    def __init__(self, min_role: Union[RoleName, str]):
        self.min_role = RoleName(min_role)

    async def __call__(self, ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not has_minimum_role(ctx.role, self.min_role):
            role_name = ctx.role.name if ctx.role else None
            raise forbidden(f"Role '{role_name}' insufficient. Requires {self.min_role.value}+.")
        return ctx


# Convenience dependency factories
require_member = RequireRole(RoleName.USER)
require_admin = RequireRole(RoleName.ADMIN)
require_super_admin = RequireRole(RoleName.SUPER_ADMIN)
