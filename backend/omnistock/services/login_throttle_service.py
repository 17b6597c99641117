"""
Login Throttling Service

WHY: Prevent brute-force password attacks by limiting failed login attempts.
After too many failures, the account is temporarily locked.

- Failed attempts are tracked per normalized email
- Lockout after MAX_FAILED_ATTEMPTS failures within LOCKOUT_WINDOW
- Lockout lasts LOCKOUT_DURATION from the most recent failure
- A successful login starts a fresh count
- Backed by the security_events table (LOGIN_FAILED / LOGIN_SUCCESS rows,
  identifier stored in `action`)
"""

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent, User
from ..time_utils import utcnow
from .auth_service import normalize_email
from .permission_service import log_security_event


MAX_FAILED_ATTEMPTS = 10
LOCKOUT_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=15)

LOGIN_RESOURCE = "/api/auth/login"


def _last_success_at(identifier: str):
    event = db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_SUCCESS",
        SecurityEvent.action == identifier,
    ).order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).first()
    return event.occurred_at if event else None


def _recent_failures_query(identifier: str):
    cutoff = utcnow() - LOCKOUT_WINDOW
    last_success = _last_success_at(identifier)
    if last_success is not None and last_success > cutoff:
        cutoff = last_success

    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == identifier,
        SecurityEvent.occurred_at >= cutoff,
    )


def get_recent_failed_attempts(email: str) -> int:
    """Count failed logins for an email within LOCKOUT_WINDOW (since the last success)."""
    return _recent_failures_query(normalize_email(email)).count()


def is_account_locked(email: str) -> tuple[bool, int | None]:
    """
    Check if an account is currently locked due to too many failed attempts.

    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    query = _recent_failures_query(normalize_email(email))
    if query.count() < MAX_FAILED_ATTEMPTS:
        return False, None

    most_recent = query.order_by(SecurityEvent.occurred_at.desc()).first()
    lockout_end = most_recent.occurred_at + LOCKOUT_DURATION
    now = utcnow()
    if now < lockout_end:
        return True, max(1, int((lockout_end - now).total_seconds()))

    return False, None


def record_failed_attempt(
    email: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
) -> int:
    """
    Record a failed login attempt.

    Returns the number of recent failed attempts, this one included.
    """
    identifier = normalize_email(email)
    user = db.session.query(User).filter(User.email == identifier).first() if identifier else None

    log_security_event(
        user_id=user.id if user else None,
        org_id=user.org_id if user else None,
        event_type="LOGIN_FAILED",
        resource=LOGIN_RESOURCE,
        action=identifier,
        success=False,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    return get_recent_failed_attempts(identifier)


def record_successful_login(
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    log_security_event(
        user_id=user.id,
        org_id=user.org_id,
        event_type="LOGIN_SUCCESS",
        resource=LOGIN_RESOURCE,
        action=user.email,
        success=True,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def get_lockout_status(email: str) -> dict:
    """
    Get detailed lockout status for an account.

    Returns dict with:
    - locked: bool
    - failed_attempts: int
    - max_attempts: int
    - seconds_until_unlock: int | None
    """
    is_locked, seconds_remaining = is_account_locked(email)

    return {
        "locked": is_locked,
        "failed_attempts": get_recent_failed_attempts(email),
        "max_attempts": MAX_FAILED_ATTEMPTS,
        "seconds_until_unlock": seconds_remaining,
    }
