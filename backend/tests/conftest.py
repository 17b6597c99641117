"""
Pytest fixtures for OmniStock backend tests.

Provides test database setup, tenant fixtures, and test client.
"""

import pytest

from omnistock import create_app
from omnistock.extensions import db
from omnistock.models import Organization, Product, User
from omnistock.services.auth_service import hash_password
from omnistock.services.tenant_service import TenantScope

PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'GEMINI_API_KEY': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Corp", code="ACME", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Inc", code="BETA", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def scope_a(org_a):
    return TenantScope(org_a.id)


@pytest.fixture(scope='function')
def scope_b(org_b):
    return TenantScope(org_b.id)


def make_user(db_session, org, email, role="ADMIN", password_hash=None, is_active=True, name=None):
    user = User(
        org_id=org.id,
        email=email,
        name=name or email.split("@")[0],
        role=role,
        password_hash=password_hash,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def make_product(db_session, org, barcode, name=None, stock=10, min_stock=2,
                 cost=1000, margin_bps=5000, selling=None, category="Periféricos"):
    suggested = (cost * (10000 + margin_bps) + 5000) // 10000
    product = Product(
        org_id=org.id,
        name=name or f"Product {barcode}",
        category=category,
        barcode=barcode,
        cost_price_cents=cost,
        margin_bps=margin_bps,
        suggested_price_cents=suggested,
        selling_price_cents=selling if selling is not None else suggested,
        stock_quantity=stock,
        min_stock=min_stock,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def admin_a(db_session, org_a, password_hash):
    """ADMIN of Organization A."""
    return make_user(db_session, org_a, "admin@acme.com", "ADMIN", password_hash, name="Ana Admin")


@pytest.fixture(scope='function')
def employee_a(db_session, org_a, password_hash):
    """EMPLOYEE of Organization A."""
    return make_user(db_session, org_a, "seller@acme.com", "EMPLOYEE", password_hash, name="Sam Seller")


@pytest.fixture(scope='function')
def admin_b(db_session, org_b, password_hash):
    """ADMIN of Organization B."""
    return make_user(db_session, org_b, "admin@beta.com", "ADMIN", password_hash, name="Bea Admin")


@pytest.fixture(scope='function')
def product_a(db_session, org_a):
    """Product in Organization A: 10 in stock, sells for 15.00."""
    return make_product(db_session, org_a, "A-001", name="Keyboard", stock=10, selling=1500)


@pytest.fixture(scope='function')
def product_b(db_session, org_b):
    """Product in Organization B."""
    return make_product(db_session, org_b, "B-001", name="Monitor", stock=5, selling=90000)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_a_headers(client, admin_a):
    return auth_headers(get_auth_token(client, admin_a.email))


@pytest.fixture(scope='function')
def employee_a_headers(client, employee_a):
    return auth_headers(get_auth_token(client, employee_a.email))


@pytest.fixture(scope='function')
def admin_b_headers(client, admin_b):
    return auth_headers(get_auth_token(client, admin_b.email))
