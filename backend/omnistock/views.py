# Overview: View identifiers of the OmniStock front end and which roles may open them.

"""
View access map.

The navigation exposes one view per area. Access is role-based:

    dashboard  ADMIN
    products   ADMIN, EMPLOYEE
    sales      ADMIN, EMPLOYEE
    stock      ADMIN
    users      ADMIN

`login` is the view of an unauthenticated client and never stored on a session.
"""

from __future__ import annotations

ROLE_ADMIN = "ADMIN"
ROLE_EMPLOYEE = "EMPLOYEE"
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)

VIEW_LOGIN = "login"
VIEW_DASHBOARD = "dashboard"
VIEW_PRODUCTS = "products"
VIEW_SALES = "sales"
VIEW_STOCK = "stock"
VIEW_USERS = "users"

VIEW_ACCESS: dict[str, frozenset[str]] = {
    VIEW_DASHBOARD: frozenset({ROLE_ADMIN}),
    VIEW_PRODUCTS: frozenset({ROLE_ADMIN, ROLE_EMPLOYEE}),
    VIEW_SALES: frozenset({ROLE_ADMIN, ROLE_EMPLOYEE}),
    VIEW_STOCK: frozenset({ROLE_ADMIN}),
    VIEW_USERS: frozenset({ROLE_ADMIN}),
}


def landing_view(role: str) -> str:
    """First view shown after login or sign-up."""
    return VIEW_DASHBOARD if role == ROLE_ADMIN else VIEW_PRODUCTS


def allowed_views(role: str) -> list[str]:
    return [view for view, roles in VIEW_ACCESS.items() if role in roles]


def can_open(role: str, view: str) -> bool:
    return role in VIEW_ACCESS.get(view, frozenset())
