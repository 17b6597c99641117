# Overview: Dashboard aggregates derived from a tenant's products, sales and users.

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from ..models import Product, Sale, User
from ..time_utils import day_key, utcnow, to_utc_z
from .tenant_service import TenantScope


TOP_PRODUCTS_LIMIT = 5


def total_revenue_cents(sales: Iterable[Sale]) -> int:
    return sum(s.total_cents for s in sales)


def low_stock_products(products: Iterable[Product]) -> list[Product]:
    """Products at or below their minimum (out-of-stock included)."""
    return [p for p in products if p.stock_quantity <= p.min_stock]


def top_products(sales: Iterable[Sale], limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    """
    Revenue per product name, highest first.

    Grouped by the name snapshot on the sale, so a deleted product still
    shows up. Ties keep first-seen order.
    """
    totals: dict[str, int] = {}
    for s in sales:
        totals[s.product_name] = totals.get(s.product_name, 0) + s.total_cents

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "total_cents": total} for name, total in ranked[:limit]]


def sales_over_time(sales: Iterable[Sale]) -> list[dict]:
    """Revenue per UTC calendar day, oldest day first."""
    totals: dict[str, int] = defaultdict(int)
    for s in sales:
        totals[day_key(s.created_at)] += s.total_cents

    return [{"date": day, "total_cents": totals[day]} for day in sorted(totals)]


def units_in_stock(products: Iterable[Product]) -> int:
    return sum(p.stock_quantity for p in products)


def dashboard(scope: TenantScope) -> dict:
    products = scope.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    sales = scope.query(Sale).order_by(Sale.created_at.asc(), Sale.id.asc()).all()
    users_count = scope.query(User).count()

    low = low_stock_products(products)

    return {
        "total_revenue_cents": total_revenue_cents(sales),
        "sales_count": len(sales),
        "units_in_stock": units_in_stock(products),
        "users_count": users_count,
        "low_stock_count": len(low),
        "low_stock_products": [p.to_dict() for p in low],
        "top_products": top_products(sales),
        "sales_over_time": sales_over_time(sales),
        "generated_at": to_utc_z(utcnow()),
    }
