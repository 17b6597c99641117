# Overview: Admin-side user management inside one organization.

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..validation import ValidationError
from ..views import ROLE_ADMIN, ROLES
from .permission_service import log_security_event
from .session_service import revoke_all_user_sessions
from .tenant_service import TenantScope


USER_MUTABLE_FIELDS = {"name", "role", "is_active"}


def list_users(scope: TenantScope) -> list[User]:
    return scope.query(User).order_by(User.name.asc(), User.id.asc()).all()


def _active_admin_count(scope: TenantScope) -> int:
    return scope.query(User).filter(
        User.role == ROLE_ADMIN,
        User.is_active.is_(True),
    ).count()


def update_user(scope: TenantScope, user_id: int, patch: dict, *, actor: User | None = None) -> User:
    """
    Change a user's name, role or active flag.

    Deactivating a user revokes all of their sessions immediately. The last
    active ADMIN of an organization cannot be deactivated or demoted.
    """
    unknown = set(patch) - USER_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    user = scope.get(User, user_id)

    if "name" in patch and (not isinstance(patch["name"], str) or not patch["name"].strip()):
        raise ValidationError("name cannot be blank")

    if "role" in patch and patch["role"] not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    if "is_active" in patch and not isinstance(patch["is_active"], bool):
        raise ValidationError("is_active must be a boolean")

    loses_admin = user.role == ROLE_ADMIN and user.is_active and (
        patch.get("role", ROLE_ADMIN) != ROLE_ADMIN or patch.get("is_active", True) is False
    )
    if loses_admin and _active_admin_count(scope) <= 1:
        raise ValidationError("The organization must keep at least one active ADMIN.")

    if "name" in patch:
        user.name = patch["name"].strip()

    if "role" in patch:
        user.role = patch["role"]

    deactivated = False
    if "is_active" in patch:
        deactivated = user.is_active and not patch["is_active"]
        user.is_active = patch["is_active"]

    db.session.commit()

    if deactivated:
        revoke_all_user_sessions(user.id, reason="User deactivated")
        log_security_event(
            user_id=actor.id if actor else None,
            org_id=scope.org_id,
            event_type="USER_DEACTIVATED",
            resource=f"/api/users/{user.id}",
            action="PATCH",
            success=True,
            reason=f"Deactivated {user.email}",
        )

    return user
