# Overview: Pytest coverage for sale registration, stock adjustment and sales history.

"""
Sales and Stock Tests

A sale records one row and decrements stock in the same transaction.
Manual stock adjustments clamp at zero.
"""

from datetime import datetime

import pytest

from omnistock.extensions import db
from omnistock.models import Product, Sale
from omnistock.services import inventory_service, sales_service
from omnistock.services.sales_service import SaleError
from omnistock.services.tenant_service import TenantAccessError
from omnistock.validation import ValidationError


class TestRegisterSale:

    def test_sale_decrements_stock(self, db_session, scope_a, product_a, employee_a):
        sale = sales_service.register_sale(scope_a, employee_a, product_a.id, 3)

        assert sale.quantity == 3
        assert sale.unit_price_cents == 1500
        assert sale.total_cents == 4500
        assert sale.product_name == "Keyboard"
        assert sale.seller_email == employee_a.email
        assert sale.org_id == scope_a.org_id
        assert db_session.get(Product, product_a.id).stock_quantity == 7

    def test_sell_entire_stock(self, db_session, scope_a, product_a, employee_a):
        sales_service.register_sale(scope_a, employee_a, product_a.id, 10)
        assert db_session.get(Product, product_a.id).stock_quantity == 0

    def test_price_override(self, db_session, scope_a, product_a, employee_a):
        sale = sales_service.register_sale(scope_a, employee_a, product_a.id, 2, unit_price_cents=1200)
        assert sale.total_cents == 2400

    def test_zero_price_override_uses_selling_price(self, db_session, scope_a, product_a, employee_a):
        sale = sales_service.register_sale(scope_a, employee_a, product_a.id, 1, unit_price_cents=0)
        assert sale.unit_price_cents == 1500

    def test_quantity_above_stock_changes_nothing(self, db_session, scope_a, product_a, employee_a):
        with pytest.raises(SaleError) as exc:
            sales_service.register_sale(scope_a, employee_a, product_a.id, 11)

        assert exc.value.details["requested_quantity"] == 11
        assert exc.value.details["on_hand"] == 10
        db_session.rollback()
        assert db_session.get(Product, product_a.id).stock_quantity == 10
        assert db_session.query(Sale).count() == 0

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
    def test_quantity_must_be_positive_integer(self, db_session, scope_a, product_a, employee_a, quantity):
        with pytest.raises(SaleError):
            sales_service.register_sale(scope_a, employee_a, product_a.id, quantity)
        assert db_session.query(Sale).count() == 0

    def test_unknown_product(self, db_session, scope_a, employee_a):
        with pytest.raises(SaleError, match="Product not found"):
            sales_service.register_sale(scope_a, employee_a, 9999, 1)

    def test_failed_commit_leaves_no_trace(self, db_session, scope_a, product_a, employee_a, monkeypatch):
        def failing_commit():
            raise RuntimeError("disk full")

        monkeypatch.setattr(db.session, "commit", failing_commit)
        with pytest.raises(RuntimeError):
            sales_service.register_sale(scope_a, employee_a, product_a.id, 2)
        monkeypatch.undo()

        assert db_session.get(Product, product_a.id).stock_quantity == 10
        assert db_session.query(Sale).count() == 0


class TestListSales:

    def test_newest_first_and_filters(self, db_session, scope_a, org_a, product_a, employee_a):
        first = sales_service.register_sale(scope_a, employee_a, product_a.id, 1)
        second = sales_service.register_sale(scope_a, employee_a, product_a.id, 2)
        first.created_at = datetime(2025, 1, 1, 12, 0)
        second.created_at = datetime(2025, 1, 2, 12, 0)
        db_session.commit()

        assert [s.id for s in sales_service.list_sales(scope_a)] == [second.id, first.id]
        assert [s.id for s in sales_service.list_sales(scope_a, limit=1)] == [second.id]
        assert [s.id for s in sales_service.list_sales(scope_a, end=datetime(2025, 1, 1, 23, 59))] == [first.id]
        assert sales_service.list_sales(scope_a, product_id=9999) == []

    def test_invalid_limit(self, db_session, scope_a):
        with pytest.raises(ValidationError):
            sales_service.list_sales(scope_a, limit=0)


class TestAdjustStock:

    def test_positive_and_negative_deltas(self, db_session, scope_a, product_a):
        assert inventory_service.adjust_stock(scope_a, product_a.id, 5).stock_quantity == 15
        assert inventory_service.adjust_stock(scope_a, product_a.id, -3).stock_quantity == 12

    def test_clamps_at_zero(self, db_session, scope_a, product_a):
        assert inventory_service.adjust_stock(scope_a, product_a.id, -50).stock_quantity == 0

    @pytest.mark.parametrize("delta", [1.5, "3", None, True])
    def test_delta_must_be_integer(self, db_session, scope_a, product_a, delta):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(scope_a, product_a.id, delta)

    def test_foreign_product(self, db_session, scope_a, product_b):
        with pytest.raises(TenantAccessError):
            inventory_service.adjust_stock(scope_a, product_b.id, 1)
        db_session.rollback()
        assert db_session.get(Product, product_b.id).stock_quantity == 5


class TestSalesRoutes:

    def test_employee_registers_sale(self, client, employee_a_headers, product_a):
        response = client.post('/api/sales', json={"product_id": product_a.id, "quantity": 4},
                               headers=employee_a_headers)
        assert response.status_code == 201
        assert response.json['total_cents'] == 6000

        listing = client.get('/api/sales', headers=employee_a_headers).json
        assert listing['count'] == 1

        product = client.get(f'/api/products/{product_a.id}', headers=employee_a_headers).json
        assert product['stock_quantity'] == 6

    def test_insufficient_stock(self, client, employee_a_headers, product_a):
        response = client.post('/api/sales', json={"product_id": product_a.id, "quantity": 99},
                               headers=employee_a_headers)
        assert response.status_code == 400
        assert response.json['details']['on_hand'] == 10

    def test_missing_fields(self, client, employee_a_headers):
        response = client.post('/api/sales', json={"quantity": 1}, headers=employee_a_headers)
        assert response.status_code == 400

    def test_date_only_end_covers_the_day(self, client, db_session, scope_a, employee_a, employee_a_headers,
                                          product_a):
        first = sales_service.register_sale(scope_a, employee_a, product_a.id, 1)
        second = sales_service.register_sale(scope_a, employee_a, product_a.id, 1)
        first.created_at = datetime(2025, 1, 1, 15, 30)
        second.created_at = datetime(2025, 1, 2, 9, 0)
        db_session.commit()

        listing = client.get('/api/sales?start=2025-01-01&end=2025-01-01', headers=employee_a_headers).json
        assert [s['id'] for s in listing['items']] == [first.id]

        listing = client.get('/api/sales?end=2025-01-01T12:00:00Z', headers=employee_a_headers).json
        assert listing['count'] == 0

    def test_bad_date_filter(self, client, employee_a_headers):
        response = client.get('/api/sales?start=yesterday', headers=employee_a_headers)
        assert response.status_code == 400

    def test_adjust_stock_route(self, client, admin_a_headers, employee_a_headers, product_a):
        response = client.post(f'/api/products/{product_a.id}/stock', json={"delta": -15},
                               headers=admin_a_headers)
        assert response.status_code == 200
        assert response.json['stock_quantity'] == 0
        assert response.json['stock_status'] == 'out'

        response = client.post(f'/api/products/{product_a.id}/stock', json={"delta": 1},
                               headers=employee_a_headers)
        assert response.status_code == 403

        response = client.post(f'/api/products/{product_a.id}/stock', json={"delta": "1.5"},
                               headers=admin_a_headers)
        assert response.status_code == 400
