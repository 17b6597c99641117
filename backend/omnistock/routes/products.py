# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/omnistock/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: every route works through g.tenant (set by @require_auth).
Products of other organizations answer 404.

SECURITY:
- Reading the catalog is open to ADMIN and EMPLOYEE
- Creating, editing, deleting, adjusting stock and pricing advice are ADMIN only
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import Product
from ..services import advisor_service, inventory_service, products_service
from ..services.tenant_service import TenantAccessError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    enforce_rules_product,
    validate_payload,
)
from ..views import ROLE_ADMIN

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create=frozenset({"name", "barcode"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@products_bp.get("")
@require_auth
def list_products():
    """
    List the tenant's products.

    Query params:
    - q: search text (name, case-insensitive, or barcode)
    - stock: all | low | out | normal
    """
    try:
        products = products_service.list_products(
            g.tenant,
            search=request.args.get("q", ""),
            stock_filter=request.args.get("stock", "all"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"items": products_service.get_categories()}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        return products_service.get_product(g.tenant, product_id).to_dict()
    except TenantAccessError:
        return {"error": "Product not found"}, 404


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_product_route():
    """Create a product. Selling price defaults to the suggested price."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.save_product(g.tenant, patch)
    except ValidationError as e:
        db.session.rollback()
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product_route(product_id: int):
    """Partial update; cost or margin changes recompute the suggested price."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.save_product(g.tenant, patch, product_id=product_id)
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        db.session.rollback()
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    """
    Delete a product. Requires ?confirm=true.

    Sales of the product are kept.
    """
    try:
        products_service.delete_product(
            g.tenant,
            product_id,
            confirm=_truthy(request.args.get("confirm")),
        )
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/stock")
@require_auth
@require_role(ROLE_ADMIN)
def adjust_stock_route(product_id: int):
    """Body: {delta}. Stock never goes below zero."""
    payload = request.get_json(silent=True) or {}
    if "delta" not in payload:
        return {"error": "delta is required"}, 400

    try:
        delta = coerce_int("delta", payload["delta"])
        product = inventory_service.adjust_stock(g.tenant, product_id, delta)
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to adjust stock")
        return {"error": "Internal server error"}, 500

    return product.to_dict()


@products_bp.post("/pricing-advice")
@require_auth
@require_role(ROLE_ADMIN)
def pricing_advice_route():
    """
    Ask the AI advisor about a product's price.

    Body: {name, category, cost_price_cents, margin_bps}. Always 200: when
    the advisor is unavailable the advice is a fixed fallback message.
    """
    payload = request.get_json(silent=True) or {}

    try:
        for key in ("cost_price_cents", "margin_bps"):
            if payload.get(key) is not None:
                coerce_int(key, payload[key])
    except ValidationError as e:
        return {"error": str(e)}, 400

    snapshot = advisor_service.PricingSnapshot.from_payload(payload)
    return {"advice": advisor_service.get_pricing_advice(snapshot)}
