# Overview: Flask API routes for user management inside the caller's organization.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_role
from ..services import users_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError
from ..views import ROLE_ADMIN

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    users = users_service.list_users(g.tenant)
    return {"items": [u.to_dict() for u in users], "count": len(users)}


@users_bp.patch("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    """
    Body: any of {name, role, is_active}.

    Deactivation revokes the user's sessions at once.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        return {"error": "Invalid JSON payload"}, 400

    try:
        user = users_service.update_user(g.tenant, user_id, payload, actor=g.current_user)
    except TenantAccessError:
        return {"error": "User not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return user.to_dict()
