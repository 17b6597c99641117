# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/omnistock/routes/auth.py
"""
Authentication API routes

- Login by email (case-insensitive) with throttling and lockout
- Self sign-up: ADMINs create or join an organization, EMPLOYEEs join one
  by its code
- Session tokens carry the current view; PUT /view switches it
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..services import auth_service, login_throttle_service, session_service
from ..services.auth_service import (
    AuthError,
    PasswordValidationError,
    SignUpError,
    UserExistsError,
)
from ..services.session_service import ViewAccessError
from ..views import allowed_views


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

AUTH_ERROR_STATUS = {
    "USER_NOT_FOUND": 401,
    "USER_INACTIVE": 403,
    "INVALID_CREDENTIALS": 401,
}


def _non_string_field(data: dict, *names: str) -> str | None:
    """First field present in the body with a non-string value."""
    for name in names:
        if data.get(name) is not None and not isinstance(data[name], str):
            return name
    return None


def _session_payload(user, session, token: str | None = None) -> dict:
    payload = {
        "user": user.to_dict(),
        "session": session.to_dict(),
        "org_id": session.org_id,
        "org_code": user.organization.code,
        "current_view": session.current_view,
        "allowed_views": allowed_views(user.role),
    }
    if token is not None:
        payload["token"] = token
    return payload


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    The new session starts at the landing view of the user's role
    (ADMIN -> dashboard, EMPLOYEE -> products).

    SECURITY:
    - Checks for account lockout before attempting authentication
    - Records failed attempts for throttling
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict) or _non_string_field(data, "email", "password"):
            return jsonify({"error": "email and password must be strings"}), 400
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(email)
        if is_locked:
            return jsonify({
                "error": "Account temporarily locked due to too many failed login attempts",
                "locked": True,
                "retry_after_seconds": seconds_remaining,
                "retry_after_minutes": (seconds_remaining // 60) + 1,
            }), 429

        try:
            user = auth_service.authenticate(email, password)
        except AuthError as e:
            failed_count = login_throttle_service.record_failed_attempt(
                email,
                ip_address=ip_address,
                user_agent=user_agent,
                reason=e.code,
            )
            remaining = login_throttle_service.MAX_FAILED_ATTEMPTS - failed_count

            if remaining <= 0:
                return jsonify({
                    "error": "Account locked due to too many failed login attempts",
                    "locked": True,
                    "retry_after_minutes": 15,
                }), 429

            body = {"error": e.message, "code": e.code}
            if remaining <= 3:
                body["warning"] = f"{remaining} attempts remaining before account lockout"
            return jsonify(body), AUTH_ERROR_STATUS.get(e.code, 401)

        login_throttle_service.record_successful_login(
            user,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        session, token = session_service.create_session(
            user,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        return jsonify({**_session_payload(user, session, token), "message": "Login successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/signup")
def signup_route():
    """
    Register a user and sign them in.

    Body: {email, name, role, password, org_code?}

    An ADMIN without org_code gets a new organization with a generated
    code (returned as org_code). An EMPLOYEE must give the code of an
    existing organization.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    bad_field = _non_string_field(data, "email", "name", "role", "password", "org_code", "orgCode")
    if bad_field:
        return jsonify({"error": f"{bad_field} must be a string"}), 400

    try:
        user = auth_service.sign_up(
            email=data.get("email"),
            name=data.get("name"),
            role=data.get("role"),
            password=data.get("password"),
            org_code=data.get("org_code") or data.get("orgCode"),
        )
    except UserExistsError as e:
        return jsonify({"error": str(e)}), 409
    except (SignUpError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500

    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    return jsonify({**_session_payload(user, session, token), "message": "Sign-up successful"}), 201


@auth_bp.get("/lockout-status/<email>")
def lockout_status_route(email: str):
    """Public: lets a client tell a locked account from a wrong password."""
    return jsonify(login_throttle_service.get_lockout_status(email))


@auth_bp.post("/logout")
def logout_route():
    """Revoke the session token sent in the Authorization header."""
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful", "current_view": "login"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, tenant and view of the session."""
    context = g.session_context
    return jsonify(_session_payload(context.user, context.session))


@auth_bp.put("/view")
@require_auth
def set_view_route():
    """Switch the session's current view. Body: {view}"""
    data = request.get_json(silent=True) or {}
    view = data.get("view")
    if not isinstance(view, str) or not view:
        return jsonify({"error": "view is required"}), 400

    try:
        session = session_service.set_current_view(g.session_context, view)
    except ViewAccessError as e:
        return jsonify({"error": str(e)}), 403

    return jsonify({"current_view": session.current_view})
