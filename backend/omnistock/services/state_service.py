# Overview: Export and import of the serialized state blob (products, sales, users).

"""
State blob

The browser build keeps everything in one JSON object:

    {"products": [...], "sales": [...], "users": [...]}

with camelCase keys, prices in currency units (not cents), margins in
percent and an `orgCode` on every entry. export_state() produces that shape
for one organization; import_state() loads such a blob into the database.

Session data (current user, current view) and credentials are never part
of the blob.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..extensions import db
from ..models import Product, Sale, User
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from ..validation import ValidationError
from ..views import ROLE_EMPLOYEE, ROLES
from .auth_service import create_organization, normalize_email
from .products_service import calculate_suggested_price_cents
from .tenant_service import TenantScope, get_org_by_code

# Product ids of sales whose product is not part of the blob
UNKNOWN_PRODUCT_ID = 0


def _units(cents: int) -> float:
    return float(Decimal(cents) / 100)


def _hundredths(key: str, value) -> int:
    """Currency units to cents, or percent to basis points (half-up)."""
    if value is None or value == "":
        return 0
    try:
        cents = (Decimal(str(value)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if cents < 0:
        raise ValidationError(f"{key} must be >= 0")
    return int(cents)


def _to_count(key: str, value) -> int:
    if value is None or value == "":
        return 0
    try:
        count = int(Decimal(str(value)))
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    return max(0, count)


def product_to_blob(p: Product, org_code: str) -> dict:
    return {
        "id": str(p.id),
        "name": p.name,
        "category": p.category,
        "barcode": p.barcode,
        "costPrice": _units(p.cost_price_cents),
        "margin": float(Decimal(p.margin_bps) / 100),
        "suggestedPrice": _units(p.suggested_price_cents),
        "sellingPrice": _units(p.selling_price_cents),
        "stockQuantity": p.stock_quantity,
        "minStock": p.min_stock,
        "dateAdded": to_utc_z(p.created_at),
        "notes": p.notes,
        "orgCode": org_code,
    }


def sale_to_blob(s: Sale, org_code: str) -> dict:
    return {
        "id": str(s.id),
        "productId": str(s.product_id),
        "productName": s.product_name,
        "quantity": s.quantity,
        "unitPrice": _units(s.unit_price_cents),
        "total": _units(s.total_cents),
        "timestamp": to_utc_z(s.created_at),
        "sellerEmail": s.seller_email,
        "orgCode": org_code,
    }


def user_to_blob(u: User, org_code: str) -> dict:
    return {
        "id": str(u.id),
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "active": u.is_active,
        "orgCode": org_code,
    }


def export_state(scope: TenantScope) -> dict:
    """The state blob of one organization."""
    org_code = scope.organization.code

    products = scope.query(Product).order_by(Product.id.asc()).all()
    sales = scope.query(Sale).order_by(Sale.created_at.asc(), Sale.id.asc()).all()
    users = scope.query(User).order_by(User.id.asc()).all()

    return {
        "products": [product_to_blob(p, org_code) for p in products],
        "sales": [sale_to_blob(s, org_code) for s in sales],
        "users": [user_to_blob(u, org_code) for u in users],
    }


class _OrgResolver:
    """Maps orgCode values to TenantScopes, creating organizations on first use."""

    def __init__(self, default_org_code: str | None):
        self.default_org_code = default_org_code
        self.scopes: dict[str, TenantScope] = {}
        self.created = 0

    def scope_for(self, entry: dict) -> TenantScope:
        code = (entry.get("orgCode") or self.default_org_code or "").strip().upper()
        if not code:
            raise ValidationError("Entry has no orgCode and no default organization was given")

        if code not in self.scopes:
            org = get_org_by_code(code)
            if org is None:
                org = create_organization(code)
                self.created += 1
            self.scopes[code] = TenantScope(org.id)
        return self.scopes[code]


def import_state(blob: dict, default_org_code: str | None = None) -> dict:
    """
    Load a state blob into the database in one transaction.

    - organizations are created by orgCode when missing
    - users whose email already exists are skipped; imported users have no
      password until an operator sets one
    - products whose barcode already exists in the organization are skipped
      (their sales are linked to the existing product)
    - a sale identical to one already stored (same organization, timestamp,
      product name, quantity and total) is skipped

    Returns counts of created and skipped rows.
    """
    if not isinstance(blob, dict):
        raise ValidationError("State blob must be a JSON object")

    for key in ("products", "sales", "users"):
        if not isinstance(blob.get(key, []), list):
            raise ValidationError(f"{key} must be a list")

    resolver = _OrgResolver(default_org_code)
    counts = {
        "users_created": 0, "users_skipped": 0,
        "products_created": 0, "products_skipped": 0,
        "sales_created": 0, "sales_skipped": 0,
    }
    product_ids: dict[tuple[int, str], int] = {}

    try:
        for entry in blob.get("users", []):
            email = normalize_email(entry.get("email"))
            if not email:
                raise ValidationError("User entry without email")
            scope = resolver.scope_for(entry)
            if db.session.query(User).filter(User.email == email).first() is not None:
                counts["users_skipped"] += 1
                continue
            role = entry.get("role") if entry.get("role") in ROLES else ROLE_EMPLOYEE
            scope.add(User(
                email=email,
                name=(entry.get("name") or email).strip(),
                role=role,
                is_active=bool(entry.get("active", True)),
                password_hash=None,
            ))
            db.session.flush()
            counts["users_created"] += 1

        for entry in blob.get("products", []):
            scope = resolver.scope_for(entry)
            barcode = str(entry.get("barcode") or "").strip()
            name = str(entry.get("name") or "").strip()
            if not barcode or not name:
                raise ValidationError("Product entry without name or barcode")

            existing = scope.query(Product).filter(Product.barcode == barcode).first()
            if existing is not None:
                product_ids[(scope.org_id, str(entry.get("id")))] = existing.id
                counts["products_skipped"] += 1
                continue

            cost = _hundredths("costPrice", entry.get("costPrice"))
            margin_bps = _hundredths("margin", entry.get("margin"))
            suggested = calculate_suggested_price_cents(cost, margin_bps)
            p = Product(
                name=name,
                category=str(entry.get("category") or ""),
                barcode=barcode,
                cost_price_cents=cost,
                margin_bps=margin_bps,
                suggested_price_cents=suggested,
                selling_price_cents=_hundredths("sellingPrice", entry.get("sellingPrice")) or suggested,
                stock_quantity=_to_count("stockQuantity", entry.get("stockQuantity")),
                min_stock=_to_count("minStock", entry.get("minStock")),
                notes=str(entry.get("notes") or ""),
                created_at=parse_iso_datetime(entry.get("dateAdded")) or utcnow(),
            )
            scope.add(p)
            db.session.flush()
            product_ids[(scope.org_id, str(entry.get("id")))] = p.id
            counts["products_created"] += 1

        for entry in blob.get("sales", []):
            scope = resolver.scope_for(entry)
            quantity = _to_count("quantity", entry.get("quantity"))
            if quantity <= 0:
                raise ValidationError("Sale entry with non-positive quantity")
            unit_price = _hundredths("unitPrice", entry.get("unitPrice"))
            total = _hundredths("total", entry.get("total")) or quantity * unit_price
            created_at = parse_iso_datetime(entry.get("timestamp")) or utcnow()
            product_name = str(entry.get("productName") or "")
            # exported timestamps carry whole seconds only
            second = created_at.replace(microsecond=0)

            duplicate = scope.query(Sale).filter(
                Sale.created_at >= second,
                Sale.created_at < second + timedelta(seconds=1),
                Sale.product_name == product_name,
                Sale.quantity == quantity,
                Sale.total_cents == total,
            ).first()
            if duplicate is not None:
                counts["sales_skipped"] += 1
                continue

            raw_product_id = str(entry.get("productId"))
            product_id = product_ids.get((scope.org_id, raw_product_id))
            if product_id is None:
                product_id = int(raw_product_id) if raw_product_id.isdigit() else UNKNOWN_PRODUCT_ID

            seller_email = normalize_email(entry.get("sellerEmail"))
            seller = scope.query(User).filter(User.email == seller_email).first() if seller_email else None

            scope.add(Sale(
                product_id=product_id,
                product_name=product_name,
                quantity=quantity,
                unit_price_cents=unit_price,
                total_cents=total,
                seller_user_id=seller.id if seller else None,
                seller_email=seller_email,
                created_at=created_at,
            ))
            db.session.flush()
            counts["sales_created"] += 1

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    counts["organizations_created"] = resolver.created
    return counts
