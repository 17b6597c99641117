# Overview: Pytest coverage for view access, session view state and user management.

from datetime import timedelta

import pytest

from omnistock.models import SecurityEvent, SessionToken
from omnistock.services import session_service, users_service
from omnistock.services.session_service import SESSION_IDLE_TIMEOUT, ViewAccessError
from omnistock.validation import ValidationError
from omnistock.views import allowed_views, can_open, landing_view
from conftest import get_auth_token


class TestViewAccess:

    def test_landing_views(self):
        assert landing_view("ADMIN") == "dashboard"
        assert landing_view("EMPLOYEE") == "products"

    @pytest.mark.parametrize("view,admin,employee", [
        ("dashboard", True, False),
        ("products", True, True),
        ("sales", True, True),
        ("stock", True, False),
        ("users", True, False),
        ("login", False, False),
        ("reports", False, False),
    ])
    def test_access_map(self, view, admin, employee):
        assert can_open("ADMIN", view) is admin
        assert can_open("EMPLOYEE", view) is employee

    def test_allowed_views(self):
        assert allowed_views("EMPLOYEE") == ["products", "sales"]
        assert allowed_views("OWNER") == []


class TestSessionView:

    def test_set_allowed_view(self, db_session, employee_a):
        _, token = session_service.create_session(employee_a)
        context = session_service.validate_session(token)

        session_service.set_current_view(context, "sales")
        assert session_service.validate_session(token).current_view == "sales"

    def test_set_forbidden_view(self, db_session, employee_a):
        _, token = session_service.create_session(employee_a)
        context = session_service.validate_session(token)

        with pytest.raises(ViewAccessError):
            session_service.set_current_view(context, "dashboard")
        assert context.current_view == "products"

    def test_view_route(self, client, employee_a_headers):
        assert client.put('/api/auth/view', json={"view": "sales"},
                          headers=employee_a_headers).json["current_view"] == "sales"
        assert client.put('/api/auth/view', json={"view": "users"},
                          headers=employee_a_headers).status_code == 403
        assert client.put('/api/auth/view', json={}, headers=employee_a_headers).status_code == 400
        assert client.get('/api/auth/me', headers=employee_a_headers).json["current_view"] == "sales"

    def test_idle_session_revoked(self, db_session, admin_a):
        session, token = session_service.create_session(admin_a)
        session.last_used_at = session.last_used_at - SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"


class TestUpdateUser:

    def test_deactivate_revokes_sessions(self, client, db_session, scope_a, admin_a, employee_a):
        token = get_auth_token(client, employee_a.email)

        users_service.update_user(scope_a, employee_a.id, {"is_active": False}, actor=admin_a)

        assert client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'}).status_code == 401
        assert db_session.query(SessionToken).filter_by(user_id=employee_a.id, is_revoked=False).count() == 0
        assert db_session.query(SecurityEvent).filter_by(event_type="USER_DEACTIVATED").count() == 1

    def test_change_role_and_name(self, db_session, scope_a, admin_a, employee_a):
        user = users_service.update_user(scope_a, employee_a.id, {"role": "ADMIN", "name": " Promoted "})
        assert user.role == "ADMIN"
        assert user.name == "Promoted"

    def test_last_admin_is_kept(self, db_session, scope_a, admin_a):
        with pytest.raises(ValidationError):
            users_service.update_user(scope_a, admin_a.id, {"is_active": False})
        with pytest.raises(ValidationError):
            users_service.update_user(scope_a, admin_a.id, {"role": "EMPLOYEE"})
        db_session.refresh(admin_a)
        assert admin_a.is_active is True
        assert admin_a.role == "ADMIN"

    @pytest.mark.parametrize("patch", [
        {"role": "OWNER"},
        {"is_active": "no"},
        {"name": ""},
        {"email": "new@acme.com"},
    ])
    def test_invalid_patches(self, db_session, scope_a, admin_a, employee_a, patch):
        with pytest.raises(ValidationError):
            users_service.update_user(scope_a, employee_a.id, patch)

    def test_routes(self, client, admin_a_headers, employee_a_headers, employee_a):
        listing = client.get('/api/users', headers=admin_a_headers).json
        assert listing['count'] == 2

        response = client.patch(f'/api/users/{employee_a.id}', json={"is_active": False}, headers=admin_a_headers)
        assert response.status_code == 200
        assert response.json['is_active'] is False

        assert client.get('/api/users', headers=employee_a_headers).status_code == 401

    def test_employee_cannot_manage_users(self, client, employee_a_headers, admin_a):
        assert client.get('/api/users', headers=employee_a_headers).status_code == 403
        response = client.patch(f'/api/users/{admin_a.id}', json={"is_active": False}, headers=employee_a_headers)
        assert response.status_code == 403
