# Overview: Service-layer operations for auth; credential checks and tenant onboarding.

"""
Authentication Service with Multi-Tenant Onboarding

WHY: Every action must be attributable to a user of one organization.
Uses bcrypt for password hashing and validates password strength.

MULTI-TENANT: Users belong to exactly one organization (org_id). Sign-up
is where tenants are born: an ADMIN signing up without an organization
code creates a new organization with a freshly minted code; an EMPLOYEE
must name an existing one.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters with upper-case, lower-case and a digit
- Emails compared case-insensitively (stored lower-cased)
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import re
import secrets
import string

import bcrypt

from ..extensions import db
from ..models import Organization, User
from ..time_utils import utcnow
from ..views import ROLE_EMPLOYEE, ROLES
from .tenant_service import TenantScope, get_org_by_code


ORG_CODE_PREFIX = "ORG-"
ORG_CODE_LENGTH = 6
ORG_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_ORG_CODE_ATTEMPTS = 20


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthError(Exception):
    """Login failure. `code` tells the caller which message to show."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class SignUpError(Exception):
    """Sign-up rejected (missing fields, unknown organization, ...)."""


class UserExistsError(SignUpError):
    pass


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt (validated for strength first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Accounts without a hash (imported from a state blob) never verify.
    """
    if not password_hash or not isinstance(password, str):
        return False

    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def generate_org_code() -> str:
    """Mint an unused organization code: ORG- plus 6 upper-case alphanumerics."""
    for _ in range(MAX_ORG_CODE_ATTEMPTS):
        suffix = "".join(secrets.choice(ORG_CODE_ALPHABET) for _ in range(ORG_CODE_LENGTH))
        code = f"{ORG_CODE_PREFIX}{suffix}"
        if get_org_by_code(code) is None:
            return code
    raise SignUpError("Could not allocate an organization code.")


def create_organization(code: str, name: str | None = None) -> Organization:
    """Create a tenant. Caller commits."""
    org = Organization(code=code, name=name or code, is_active=True)
    db.session.add(org)
    db.session.flush()
    return org


def authenticate(email: str, password: str) -> User:
    """
    Authenticate a user by email and password.

    Lookup is case-insensitive and spans all organizations (the tenant is
    derived from the user). Raises AuthError with:
    - USER_NOT_FOUND: no account with that email
    - USER_INACTIVE: account exists but was deactivated
    - INVALID_CREDENTIALS: wrong password, no password set, or inactive org

    Updates last_login_at on success. Nothing is written on failure.
    """
    normalized = normalize_email(email)
    user = db.session.query(User).filter(User.email == normalized).first() if normalized else None

    if user is None:
        raise AuthError("USER_NOT_FOUND", "User not found.")

    if not user.is_active:
        raise AuthError("USER_INACTIVE", "User is inactive.")

    org = user.organization
    if org is None or not org.is_active:
        raise AuthError("INVALID_CREDENTIALS", "Invalid credentials.")

    if not verify_password(password, user.password_hash):
        raise AuthError("INVALID_CREDENTIALS", "Invalid credentials.")

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def sign_up(
    *,
    email: str,
    name: str,
    role: str,
    password: str,
    org_code: str | None = "",
) -> User:
    """
    Register a new user, creating the organization when an ADMIN asks for it.

    Rules:
    - email and name are required; the email must not exist yet
    - role must be ADMIN or EMPLOYEE
    - ADMIN + empty code: a new organization with a minted ORG-XXXXXX code
    - ADMIN + code: join that organization, or create it under that code
    - EMPLOYEE + empty code: rejected
    - EMPLOYEE + unknown code: rejected

    Raises SignUpError, UserExistsError or PasswordValidationError; the
    database is left unchanged on any of them.
    """
    email = normalize_email(email)
    name = (name or "").strip()
    code = (org_code or "").strip().upper()

    if not email or not name:
        raise SignUpError("Email and name are required.")

    if role not in ROLES:
        raise SignUpError(f"Role must be one of: {', '.join(ROLES)}")

    if db.session.query(User).filter(User.email == email).first() is not None:
        raise UserExistsError("Email already registered.")

    password_hash = hash_password(password)

    try:
        if role == ROLE_EMPLOYEE:
            if not code:
                raise SignUpError("Organization code is required.")
            org = get_org_by_code(code)
            if org is None:
                raise SignUpError("Organization not found.")
        elif code:
            org = get_org_by_code(code) or create_organization(code)
        else:
            org = create_organization(generate_org_code(), name=f"{name}'s organization")

        if not org.is_active:
            raise SignUpError("Organization is not active.")

        user = User(
            email=email,
            name=name,
            role=role,
            password_hash=password_hash,
            is_active=True,
        )
        TenantScope(org.id).add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return user


def create_user(
    scope: TenantScope,
    *,
    email: str,
    name: str,
    role: str = ROLE_EMPLOYEE,
    password: str | None = None,
    is_active: bool = True,
) -> User:
    """
    Create a user inside an existing tenant (operator tooling, demo seed).

    password may be None for accounts that get a credential later.
    """
    email = normalize_email(email)
    name = (name or "").strip()
    if not email or not name:
        raise ValueError("Email and name are required.")
    if role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
    if db.session.query(User).filter(User.email == email).first() is not None:
        raise UserExistsError("Email already registered.")

    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password) if password is not None else None,
        is_active=is_active,
    )
    scope.add(user)
    db.session.commit()
    return user


def set_password(user: User, password: str) -> User:
    """Replace a user's credential."""
    user.password_hash = hash_password(password)
    db.session.commit()
    return user
