# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..extensions import db
from ..services import sales_service
from ..services.sales_service import SaleError
from ..time_utils import parse_iso_datetime, parse_iso_range_end
from ..validation import ValidationError, coerce_int

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales history of the tenant, newest first.

    Query params: product_id, start, end (ISO-8601, inclusive; a date-only
    end covers that whole day), limit
    """
    try:
        product_id = request.args.get("product_id")
        limit = request.args.get("limit")
        sales = sales_service.list_sales(
            g.tenant,
            product_id=coerce_int("product_id", product_id) if product_id else None,
            start=parse_iso_datetime(request.args.get("start")),
            end=parse_iso_range_end(request.args.get("end")),
            limit=coerce_int("limit", limit) if limit else None,
        )
    except ValueError as e:
        # ValidationError and malformed dates
        return {"error": str(e)}, 400

    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.post("")
@require_auth
def register_sale_route():
    """
    Register a sale: records it and decrements stock atomically.

    Body: {product_id, quantity, unit_price_cents?}
    """
    payload = request.get_json(silent=True) or {}

    missing = [k for k in ("product_id", "quantity") if payload.get(k) in (None, "")]
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}, 400

    try:
        product_id = coerce_int("product_id", payload["product_id"])
        quantity = coerce_int("quantity", payload["quantity"])
        unit_price = payload.get("unit_price_cents")
        unit_price = coerce_int("unit_price_cents", unit_price) if unit_price not in (None, "") else None
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        sale = sales_service.register_sale(
            g.tenant,
            g.current_user,
            product_id,
            quantity,
            unit_price_cents=unit_price,
        )
    except SaleError as e:
        db.session.rollback()
        status = 404 if str(e) == "Product not found" else 400
        return {"error": str(e), "details": e.details}, status
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register sale")
        return {"error": "Internal server error"}, 500

    return sale.to_dict(), 201
