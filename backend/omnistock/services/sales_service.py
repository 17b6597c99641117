"""
Sales Service - one-step sale registration

A sale is recorded and the product's stock is decremented in ONE database
transaction: either both changes are committed or neither is. Sales are
create-only; there is no edit or delete path.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Product, Sale, User
from ..validation import ValidationError
from .concurrency import run_with_retry
from .tenant_service import TenantAccessError, TenantScope


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SaleError(f"{name} must be an integer")
    if value <= 0:
        raise SaleError(f"{name} must be greater than zero")
    return value


def register_sale(
    scope: TenantScope,
    seller: User,
    product_id: int,
    quantity: int,
    unit_price_cents: int | None = None,
) -> Sale:
    """
    Register a sale of `quantity` units of a product.

    - the product must belong to the tenant
    - quantity must be a positive integer not above current stock
    - unit price defaults to the product's selling price (a 0 or missing
      override uses the selling price too)

    Raises SaleError; nothing is written when it does.
    """
    quantity = _positive_int("quantity", quantity)
    if unit_price_cents is not None:
        if isinstance(unit_price_cents, bool) or not isinstance(unit_price_cents, int) or unit_price_cents < 0:
            raise SaleError("unit_price_cents must be a non-negative integer")

    def _op():
        try:
            product = scope.get(Product, product_id, lock=True)
        except TenantAccessError:
            raise SaleError("Product not found", details={"product_id": product_id})

        if quantity > product.stock_quantity:
            raise SaleError(
                "Insufficient stock",
                details={
                    "product_id": product.id,
                    "requested_quantity": quantity,
                    "on_hand": product.stock_quantity,
                },
            )

        unit_price = unit_price_cents or product.selling_price_cents

        sale = Sale(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price_cents=unit_price,
            total_cents=quantity * unit_price,
            seller_user_id=seller.id,
            seller_email=seller.email,
        )
        scope.add(sale)
        product.stock_quantity -= quantity

        try:
            db.session.flush()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return sale

    return run_with_retry(_op)


def list_sales(
    scope: TenantScope,
    product_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = None,
) -> list[Sale]:
    """Sales history of the tenant, newest first. start/end are inclusive."""
    query = scope.query(Sale)
    if product_id is not None:
        query = query.filter(Sale.product_id == product_id)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end)

    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())

    if limit is not None:
        if limit <= 0:
            raise ValidationError("limit must be positive")
        query = query.limit(limit)

    return query.all()
