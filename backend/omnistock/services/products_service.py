# backend/omnistock/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: every operation takes the caller's TenantScope; products of
other organizations are invisible here.

PRICING:
- suggested_price_cents = cost_price_cents * (1 + margin_bps / 10000),
  rounded half-up to the cent, recomputed whenever cost or margin changes
- selling_price_cents is independent: recomputing the suggestion never
  overwrites it. Absent on create, or sent as null/0, it takes the
  suggested price.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError
from .tenant_service import TenantScope

PRODUCT_MUTABLE_FIELDS = {
    "name", "category", "barcode",
    "cost_price_cents", "margin_bps", "selling_price_cents",
    "stock_quantity", "min_stock", "notes",
}

STOCK_FILTERS = ("all", "low", "out", "normal")


def calculate_suggested_price_cents(cost_price_cents: int | None, margin_bps: int | None) -> int:
    """
    Cost plus markup, rounded half-up to the cent.

    Missing values count as 0. Integer arithmetic keeps the result exact:
    (cost * (10000 + bps) + 5000) // 10000.
    """
    cost = cost_price_cents or 0
    margin = margin_bps or 0
    return (cost * (10000 + margin) + 5000) // 10000


def get_categories() -> list[str]:
    return list(current_app.config["PRODUCT_CATEGORIES"])


def classify_stock(product: Product) -> str:
    """'out' at zero stock, 'low' at or below min_stock, otherwise 'normal'."""
    return product.stock_status


def _check_category(category: str) -> None:
    categories = get_categories()
    if category not in categories:
        raise ValidationError(f"category must be one of: {', '.join(categories)}")


def _check_barcode_free(scope: TenantScope, barcode: str, exclude_id: int | None = None) -> None:
    query = scope.query(Product).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Barcode already exists in this organization.")


def _require_text(patch: dict, field: str) -> None:
    value = patch.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")


def _commit_or_conflict() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Barcode already exists in this organization.")


def create_product(scope: TenantScope, patch: dict) -> Product:
    _require_text(patch, "name")
    _require_text(patch, "barcode")

    category = patch.get("category") or get_categories()[0]
    _check_category(category)
    _check_barcode_free(scope, patch["barcode"])

    cost = patch.get("cost_price_cents") or 0
    margin = patch.get("margin_bps") or 0
    suggested = calculate_suggested_price_cents(cost, margin)

    p = Product(
        name=patch["name"],
        category=category,
        barcode=patch["barcode"],
        cost_price_cents=cost,
        margin_bps=margin,
        suggested_price_cents=suggested,
        selling_price_cents=patch.get("selling_price_cents") or suggested,
        stock_quantity=patch.get("stock_quantity") or 0,
        min_stock=patch.get("min_stock") or 0,
        notes=patch.get("notes") or "",
    )
    scope.add(p)
    _commit_or_conflict()
    return p


def update_product(scope: TenantScope, product_id: int, patch: dict) -> Product:
    """
    Partial update. Only supplied fields change; the suggestion is
    recomputed if cost or margin was supplied.
    """
    p = scope.get(Product, product_id)

    for field in ("name", "barcode"):
        if field in patch:
            _require_text(patch, field)
    if "category" in patch:
        _check_category(patch["category"])
    if "barcode" in patch and patch["barcode"] != p.barcode:
        _check_barcode_free(scope, patch["barcode"], exclude_id=p.id)

    for field in ("cost_price_cents", "margin_bps", "stock_quantity", "min_stock"):
        if field in patch and patch[field] is None:
            raise ValidationError(f"{field} cannot be null")

    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS or k == "selling_price_cents":
            continue
        if k == "notes" and v is None:
            v = ""
        setattr(p, k, v)

    if "cost_price_cents" in patch or "margin_bps" in patch:
        p.suggested_price_cents = calculate_suggested_price_cents(p.cost_price_cents, p.margin_bps)

    if "selling_price_cents" in patch:
        p.selling_price_cents = patch["selling_price_cents"] or p.suggested_price_cents

    _commit_or_conflict()
    return p


def save_product(scope: TenantScope, patch: dict, product_id: int | None = None) -> Product:
    """Create when product_id is None, otherwise update that product of the tenant."""
    unknown = set(patch) - PRODUCT_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    if product_id is None:
        return create_product(scope, patch)
    return update_product(scope, product_id, patch)


def get_product(scope: TenantScope, product_id: int) -> Product:
    return scope.get(Product, product_id)


def delete_product(scope: TenantScope, product_id: int, *, confirm: bool = False) -> None:
    """
    Hard-delete a product after explicit confirmation.

    Sales keep their product_id and product_name snapshot.
    """
    if confirm is not True:
        raise ValidationError("Deletion must be confirmed.")

    p = scope.get(Product, product_id)
    db.session.delete(p)
    db.session.commit()


def list_products(scope: TenantScope, search: str = "", stock_filter: str = "all") -> list[Product]:
    """
    Products of the tenant ordered by name.

    search matches a case-insensitive substring of the name or a substring
    of the barcode; it is AND-combined with stock_filter
    ('all' | 'low' | 'out' | 'normal').
    """
    stock_filter = (stock_filter or "all").lower()
    if stock_filter not in STOCK_FILTERS:
        raise ValidationError(f"stock filter must be one of: {', '.join(STOCK_FILTERS)}")

    query = scope.query(Product)
    if stock_filter == "out":
        query = query.filter(Product.stock_quantity <= 0)
    elif stock_filter == "low":
        query = query.filter(Product.stock_quantity > 0, Product.stock_quantity <= Product.min_stock)
    elif stock_filter == "normal":
        query = query.filter(Product.stock_quantity > 0, Product.stock_quantity > Product.min_stock)

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()

    # SQLite's lower() only folds ASCII, so the text match runs in Python
    search = search or ""
    if search:
        needle = search.lower()
        products = [p for p in products if needle in p.name.lower() or search in p.barcode]

    return products
