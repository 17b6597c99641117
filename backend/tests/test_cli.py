# Overview: Pytest coverage for the Flask CLI command groups.

import json

from omnistock.models import Organization, Product, User
from omnistock.services.auth_service import verify_password


class TestSystemCommands:

    def test_seed_demo_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "seed-demo"])
        assert result.exit_code == 0, result.output
        assert "PASS Created organization OMNI-DEMO" in result.output

        result = runner.invoke(args=["system", "seed-demo"])
        assert result.exit_code == 0
        assert "already exists" in result.output

        org = db_session.query(Organization).filter_by(code="OMNI-DEMO").one()
        assert db_session.query(User).filter_by(org_id=org.id).count() == 3
        assert db_session.query(User).filter_by(email="inativo@omnistock.com").one().is_active is False

        keyboard = db_session.query(Product).filter_by(barcode="789123456001").one()
        assert keyboard.suggested_price_cents == 21000
        assert keyboard.selling_price_cents == 22000


class TestOrgAndUserCommands:

    def test_create_org_with_generated_code(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["orgs", "create", "--name", "Shop"])
        assert result.exit_code == 0
        org = db_session.query(Organization).one()
        assert org.code.startswith("ORG-")

    def test_create_org_duplicate_code(self, app, org_a):
        result = app.test_cli_runner().invoke(args=["orgs", "create", "--name", "Again", "--code", "acme"])
        assert "FAIL" in result.output

    def test_create_user_and_set_password(self, app, db_session, org_a):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--org-code", "ACME", "--email", "Cli@Acme.com",
            "--name", "Cli", "--role", "EMPLOYEE", "--password", "Password123",
        ])
        assert result.exit_code == 0
        assert "PASS" in result.output

        result = runner.invoke(args=["users", "set-password", "--email", "cli@acme.com", "--password", "Another456"])
        assert "PASS" in result.output
        user = db_session.query(User).filter_by(email="cli@acme.com").one()
        db_session.refresh(user)
        assert verify_password("Another456", user.password_hash)

    def test_weak_password(self, app, db_session, org_a):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--org-code", "ACME", "--email", "w@acme.com",
            "--name", "W", "--role", "ADMIN", "--password", "weak",
        ])
        assert "FAIL Password validation failed" in result.output
        assert db_session.query(User).count() == 0


class TestStateCommands:

    def test_export_then_import_elsewhere(self, app, db_session, product_a, admin_a, tmp_path):
        runner = app.test_cli_runner()
        path = tmp_path / "state.json"

        result = runner.invoke(args=["state", "export", "--org-code", "ACME", "--output", str(path)])
        assert result.exit_code == 0, result.output

        blob = json.loads(path.read_text(encoding="utf-8"))
        assert blob["products"][0]["barcode"] == product_a.barcode

        result = runner.invoke(args=["state", "import", str(path)])
        assert result.exit_code == 0, result.output
        assert "products_skipped" in result.output

    def test_export_unknown_org(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["state", "export", "--org-code", "NOPE"])
        assert result.exit_code != 0
