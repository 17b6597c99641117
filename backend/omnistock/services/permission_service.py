# Overview: Role checks and security event logging.

"""
Role Checking and Security Event Logging with Multi-Tenant Support

OmniStock has two roles: ADMIN manages the catalog, stock, users and the
dashboard; EMPLOYEE browses products and registers sales.

DESIGN PRINCIPLES:
- Fail closed: unknown roles have no access
- Log denials only: granted checks are not logged
- Tenant isolation: events carry the caller's org_id
"""

from __future__ import annotations

from ..extensions import db
from ..models import SecurityEvent, User
from ..time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when the user's role does not allow the action."""


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    org_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - LOGIN_FAILED / LOGIN_SUCCESS
    - PERMISSION_DENIED
    - CROSS_TENANT_ACCESS_DENIED
    - USER_DEACTIVATED
    """
    event = SecurityEvent(
        user_id=user_id,
        org_id=org_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_role(
    user: User,
    roles: tuple[str, ...],
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Raise PermissionDeniedError (and log it) unless the user holds one of the roles."""
    if user.role in roles:
        return

    log_security_event(
        user_id=user.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        reason=f"Role {user.role} not in {', '.join(roles)}",
        ip_address=ip_address,
        user_agent=user_agent,
        org_id=user.org_id,
    )
    raise PermissionDeniedError(f"Requires role: {' or '.join(roles)}")
