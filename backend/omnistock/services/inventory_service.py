# Overview: Manual stock adjustments.

# backend/omnistock/services/inventory_service.py
"""
Inventory invariants:
- stock_quantity is a stored counter on Product and never goes below zero
- manual adjustments clamp at zero: stock = max(0, stock + delta)
- sales decrement stock in the same transaction that records the sale
  (see sales_service.register_sale)
"""

from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..validation import ValidationError
from .concurrency import run_with_retry
from .tenant_service import TenantScope


def adjust_stock(scope: TenantScope, product_id: int, delta: int) -> Product:
    """Add delta (may be negative) to a product's stock, clamped at zero."""
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")

    def _op():
        product = scope.get(Product, product_id, lock=True)
        product.stock_quantity = max(0, product.stock_quantity + delta)
        db.session.commit()
        return product

    return run_with_retry(_op)
