# Overview: Flask API route exposing the tenant's state blob.

from flask import Blueprint, g

from ..decorators import require_auth, require_role
from ..services import state_service
from ..views import ROLE_ADMIN

state_bp = Blueprint("state", __name__, url_prefix="/api/state")


@state_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def export_state_route():
    """Products, sales and users of the caller's organization, in the blob format."""
    return state_service.export_state(g.tenant)
