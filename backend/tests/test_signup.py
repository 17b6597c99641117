# Overview: Pytest coverage for sign-up and organization onboarding.

import re

import pytest

from omnistock.models import Organization, User
from omnistock.services import auth_service
from omnistock.services.auth_service import PasswordValidationError, SignUpError, UserExistsError
from conftest import PASSWORD

ORG_CODE_RE = re.compile(r"^ORG-[A-Z0-9]{6}$")


def _signup(client, **overrides):
    body = {
        "email": "new@example.com",
        "name": "New Person",
        "role": "ADMIN",
        "password": PASSWORD,
        "org_code": "",
    }
    body.update(overrides)
    return client.post('/api/auth/signup', json=body)


class TestSignUpService:

    def test_admin_without_code_mints_organization(self, db_session, org_a):
        user = auth_service.sign_up(email="boss@new.com", name="Boss", role="ADMIN", password=PASSWORD)

        org = user.organization
        assert ORG_CODE_RE.match(org.code)
        assert org.code != org_a.code
        assert org.id != org_a.id

    def test_minted_code_skips_existing_codes(self, db_session, monkeypatch):
        taken = Organization(name="Taken", code="ORG-AAAAAA")
        db_session.add(taken)
        db_session.commit()

        picks = iter("AAAAAA" + "BBBBBB")
        monkeypatch.setattr(auth_service.secrets, "choice", lambda alphabet: next(picks))

        assert auth_service.generate_org_code() == "ORG-BBBBBB"

    def test_admin_with_existing_code_joins(self, db_session, org_a):
        user = auth_service.sign_up(
            email="second@acme.com", name="Second", role="ADMIN", password=PASSWORD, org_code=" acme ",
        )
        assert user.org_id == org_a.id

    def test_admin_with_new_code_creates_it(self, db_session):
        user = auth_service.sign_up(
            email="x@fresh.com", name="X", role="ADMIN", password=PASSWORD, org_code="fresh-1",
        )
        assert user.organization.code == "FRESH-1"

    def test_employee_without_code_rejected(self, db_session):
        with pytest.raises(SignUpError, match="Organization code is required"):
            auth_service.sign_up(email="e@x.com", name="E", role="EMPLOYEE", password=PASSWORD)
        assert db_session.query(User).count() == 0

    def test_employee_with_unknown_code_rejected(self, db_session, org_a):
        with pytest.raises(SignUpError, match="Organization not found"):
            auth_service.sign_up(
                email="e@x.com", name="E", role="EMPLOYEE", password=PASSWORD, org_code="NOPE",
            )
        assert db_session.query(Organization).count() == 1

    def test_employee_joins_by_code(self, db_session, org_a):
        user = auth_service.sign_up(
            email="E@Acme.com", name="E", role="EMPLOYEE", password=PASSWORD, org_code="acme",
        )
        assert user.org_id == org_a.id
        assert user.email == "e@acme.com"
        assert user.role == "EMPLOYEE"

    def test_inactive_organization_cannot_be_joined(self, db_session, org_a):
        org_a.is_active = False
        db_session.commit()

        for role in ("ADMIN", "EMPLOYEE"):
            with pytest.raises(SignUpError, match="Organization is not active"):
                auth_service.sign_up(
                    email=f"{role.lower()}@acme.com", name="Late", role=role, password=PASSWORD, org_code="ACME",
                )
        assert db_session.query(User).count() == 0

    def test_duplicate_email(self, db_session, admin_a):
        with pytest.raises(UserExistsError):
            auth_service.sign_up(email="ADMIN@acme.com", name="Dup", role="ADMIN", password=PASSWORD)

    def test_required_fields(self, db_session):
        with pytest.raises(SignUpError):
            auth_service.sign_up(email="", name="No Email", role="ADMIN", password=PASSWORD)
        with pytest.raises(SignUpError):
            auth_service.sign_up(email="a@b.com", name="  ", role="ADMIN", password=PASSWORD)

    def test_unknown_role(self, db_session):
        with pytest.raises(SignUpError):
            auth_service.sign_up(email="a@b.com", name="A", role="OWNER", password=PASSWORD)

    def test_weak_password_creates_nothing(self, db_session):
        with pytest.raises(PasswordValidationError):
            auth_service.sign_up(email="a@b.com", name="A", role="ADMIN", password="weak")
        assert db_session.query(Organization).count() == 0


class TestSignUpRoute:

    def test_admin_signup_signs_in(self, client, db_session):
        response = _signup(client)
        assert response.status_code == 201
        body = response.json
        assert body['token']
        assert body['current_view'] == 'dashboard'
        assert ORG_CODE_RE.match(body['org_code'])

        me = client.get('/api/auth/me', headers={'Authorization': f"Bearer {body['token']}"})
        assert me.status_code == 200

    def test_employee_signup_lands_on_products(self, client, org_a):
        response = _signup(client, role="EMPLOYEE", org_code="ACME")
        assert response.status_code == 201
        assert response.json['current_view'] == 'products'
        assert response.json['org_code'] == 'ACME'

    def test_employee_signup_without_code(self, client, db_session):
        response = _signup(client, role="EMPLOYEE")
        assert response.status_code == 400
        assert response.json['error'] == "Organization code is required."

    def test_duplicate_email_conflict(self, client, admin_a):
        response = _signup(client, email=admin_a.email)
        assert response.status_code == 409

    def test_weak_password(self, client, db_session):
        response = _signup(client, password="short")
        assert response.status_code == 400

    @pytest.mark.parametrize("field,value", [
        ("email", 5),
        ("name", {"first": "New"}),
        ("password", 12345678),
        ("org_code", 42),
    ])
    def test_non_string_fields(self, client, db_session, field, value):
        response = _signup(client, **{field: value})
        assert response.status_code == 400
        assert response.json['error'] == f"{field} must be a string"
        assert db_session.query(User).count() == 0
