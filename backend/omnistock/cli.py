# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/omnistock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system seed-demo [--org-code OMNI-DEMO]
#   Create the demo organization, its three users and two products.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
# - python -m flask orgs create --name "Acme Corp" [--code ACME]
#   Without --code a fresh ORG-XXXXXX code is generated.
#
# Users:
# - python -m flask users list [--org-code OMNI-DEMO]
# - python -m flask users create --org-code OMNI-DEMO --email a@b.com --name "Ana" --role ADMIN --password "Password123"
# - python -m flask users set-password --email a@b.com --password "Password123"
#   Also the way to give imported accounts their first password.
#
# State blob:
# - python -m flask state export --org-code OMNI-DEMO [--output state.json]
# - python -m flask state import state.json [--default-org-code OMNI-DEMO]

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Organization, Product, User
from .services import state_service
from .services.auth_service import (
    PasswordValidationError,
    UserExistsError,
    create_organization,
    create_user,
    generate_org_code,
    normalize_email,
    set_password,
)
from .services.demo_service import seed_demo
from .services.tenant_service import TenantScope, get_org_by_code
from .validation import ValidationError
from .views import ROLES
from .constants import DEMO_PASSWORD


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready")


@system_group.command('seed-demo')
@click.option('--org-code', default=None, help='Demo organization code (defaults to DEMO_ORG_CODE)')
@with_appcontext
def seed_demo_cli(org_code):
    """Seed the demo organization. Safe to run more than once."""
    db.create_all()
    result = seed_demo(org_code or current_app.config["DEMO_ORG_CODE"])

    if result["organization"]:
        click.echo(f"PASS Created organization {result['org_code']}")
    else:
        click.echo(f"WARN  Organization {result['org_code']} already exists, adding missing rows only")

    for email in result["users"]:
        click.echo(f"PASS Created user: {email}")
    for name in result["products"]:
        click.echo(f"PASS Created product: {name}")

    click.echo(f"\nDemo password for all users: {DEMO_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete")


# =============================================================================
# ORGANIZATION MANAGEMENT
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    orgs = db.session.query(Organization).order_by(Organization.id).all()
    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Users':<7} {'Products'}")
    for org in orgs:
        scope = TenantScope(org.id)
        click.echo(
            f"{org.id:<5} {org.name:<30} {org.code:<15} {'yes' if org.is_active else 'no':<8} "
            f"{scope.query(User).count():<7} {scope.query(Product).count()}"
        )


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', default=None, help='Short code (unique); generated when omitted')
@with_appcontext
def create_org_cli(name, code):
    code = (code or "").strip().upper() or generate_org_code()
    if get_org_by_code(code) is not None:
        click.echo(f"FAIL Organization with code '{code}' already exists")
        return

    org = create_organization(code, name=name)
    db.session.commit()
    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Code: {org.code})")


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('list')
@click.option('--org-code', default=None, help='Filter by organization code')
@with_appcontext
def list_users(org_code):
    query = db.session.query(User)
    if org_code:
        org = get_org_by_code(org_code)
        if org is None:
            click.echo(f"FAIL Organization '{org_code}' not found")
            return
        query = TenantScope(org.id).query(User)

    users = query.order_by(User.org_id, User.email).all()
    if not users:
        click.echo("No users found.")
        return

    for user in users:
        status = "active" if user.is_active else "inactive"
        password = "" if user.password_hash else "  (no password)"
        click.echo(f"{user.id:<5} {user.organization.code:<12} {user.email:<35} {user.role:<9} {status}{password}")


@users_group.command('create')
@click.option('--org-code', required=True, help='Organization code')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice(ROLES), prompt=True, help='Role')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(org_code, email, name, role, password):
    org = get_org_by_code(org_code)
    if org is None:
        click.echo(f"FAIL Organization '{org_code}' not found")
        return

    try:
        user = create_user(TenantScope(org.id), email=email, name=name, role=role, password=password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit")
        return
    except (UserExistsError, ValueError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} ({user.role}) in {org.code}")


@users_group.command('set-password')
@click.option('--email', required=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def set_password_cli(email, password):
    user = db.session.query(User).filter(User.email == normalize_email(email)).first()
    if user is None:
        click.echo(f"FAIL User '{email}' not found")
        return

    try:
        set_password(user, password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return

    click.echo(f"PASS Password updated for {user.email}")


# =============================================================================
# STATE BLOB
# =============================================================================

@click.group('state')
def state_group():
    """Export and import of the state blob."""


@state_group.command('export')
@click.option('--org-code', required=True, help='Organization code')
@click.option('--output', type=click.Path(dir_okay=False, writable=True), default=None,
              help='Write to a file instead of stdout')
@with_appcontext
def export_state_cli(org_code, output):
    org = get_org_by_code(org_code)
    if org is None:
        raise click.ClickException(f"Organization '{org_code}' not found")

    blob = json.dumps(state_service.export_state(TenantScope(org.id)), ensure_ascii=False, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(blob)
        click.echo(f"PASS Wrote state of {org.code} to {output}")
    else:
        click.echo(blob)


@state_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--default-org-code', default=None, help='Organization for entries without orgCode')
@with_appcontext
def import_state_cli(path, default_org_code):
    with open(path, encoding="utf-8") as fh:
        try:
            blob = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON: {e}")

    try:
        counts = state_service.import_state(blob, default_org_code=default_org_code)
    except ValidationError as e:
        raise click.ClickException(str(e))

    for key, value in counts.items():
        click.echo(f"{key:<24} {value}")
    if counts["users_created"]:
        click.echo("WARN  Imported users have no password; use 'flask users set-password'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)
    app.cli.add_command(users_group)
    app.cli.add_command(state_group)
