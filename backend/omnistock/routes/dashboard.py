# Overview: Flask API route for the admin dashboard.

from flask import Blueprint, g

from ..decorators import require_auth, require_role
from ..services import reporting_service
from ..views import ROLE_ADMIN

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def dashboard_route():
    """
    Aggregates for the tenant: revenue, sales count, units in stock, user
    count, low-stock products, top 5 products by revenue and revenue per day.
    """
    return reporting_service.dashboard(g.tenant)
