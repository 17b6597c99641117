# Overview: Service-layer operations for sessions and the current view.

"""
Session Token Management with Tenant and View Context

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

MULTI-TENANT: Sessions capture org_id at creation time. This establishes
the tenant context for every authenticated request.

VIEW STATE: the session also carries the client's current view. A new
session always starts at the role's landing view, and a view can only be
switched to one the role is allowed to open.

SECURITY FEATURES:
- 32-byte random tokens, stored as SHA-256 hashes
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout or when the user is deactivated
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow
from ..views import can_open, landing_view
from .tenant_service import TenantScope


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


class ViewAccessError(Exception):
    """Raised when a role tries to open a view it has no access to."""


@dataclass
class SessionContext:
    """
    Everything a request needs after authentication.

    scope is the TenantScope bound to the session's org_id; services take
    it instead of a raw org_id.
    """
    user: User
    session: SessionToken
    org_id: int
    scope: TenantScope

    @property
    def current_view(self) -> str:
        return self.session.current_view


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated user.

    Returns (session_record, plaintext_token). The client receives the
    plaintext token; the database stores only its hash. The session starts
    at the landing view of the user's role.
    """
    if not user.is_active:
        raise ValueError("User is inactive")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        org_id=user.org_id,
        token_hash=hash_token(plaintext_token),
        current_view=landing_view(user.role),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Validate a session token and return its SessionContext.

    Returns None if the token is unknown, expired, idle too long or revoked,
    or if the user or organization has been deactivated since login (those
    sessions are revoked on the spot). Updates last_used_at otherwise.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        db.session.commit()
        return None

    org = session.organization
    if not org or not org.is_active:
        _revoke(session, "Organization deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        org_id=session.org_id,
        scope=TenantScope(session.org_id),
    )


def set_current_view(context: SessionContext, view: str) -> SessionToken:
    """Switch the session's current view. Raises ViewAccessError if the role may not open it."""
    if not can_open(context.user.role, view):
        raise ViewAccessError(f"View '{view}' is not available for role {context.user.role}")

    context.session.current_view = view
    db.session.commit()
    return context.session


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke a session token. Returns False if no active session matched."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """
    Revoke all active sessions for a user.

    Returns count of sessions revoked.
    """
    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        _revoke(session, reason)

    db.session.commit()
    return len(sessions)
