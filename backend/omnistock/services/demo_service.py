# Overview: Idempotent seeding of the demo organization.

from __future__ import annotations

from ..extensions import db
from ..models import Product, User
from ..constants import DEMO_PASSWORD, DEMO_PRODUCTS, DEMO_USERS
from .auth_service import create_organization, hash_password
from .products_service import calculate_suggested_price_cents
from .tenant_service import TenantScope, get_org_by_code


def seed_demo(org_code: str) -> dict:
    """
    Create the demo organization with its users and products.

    Existing rows (matched by email / barcode) are left alone, so running
    it twice changes nothing. All demo users share DEMO_PASSWORD.
    """
    created = {"organization": False, "users": [], "products": []}

    org = get_org_by_code(org_code)
    if org is None:
        org = create_organization(org_code.strip().upper(), name="OmniStock Demo")
        created["organization"] = True
    scope = TenantScope(org.id)

    password_hash = hash_password(DEMO_PASSWORD)
    for email, name, role, is_active in DEMO_USERS:
        if db.session.query(User).filter(User.email == email).first() is not None:
            continue
        scope.add(User(
            email=email,
            name=name,
            role=role,
            is_active=is_active,
            password_hash=password_hash,
        ))
        created["users"].append(email)

    for data in DEMO_PRODUCTS:
        if scope.query(Product).filter(Product.barcode == data["barcode"]).first() is not None:
            continue
        scope.add(Product(
            suggested_price_cents=calculate_suggested_price_cents(
                data["cost_price_cents"], data["margin_bps"]
            ),
            **data,
        ))
        created["products"].append(data["name"])

    db.session.commit()
    created["org_code"] = org.code
    return created
