# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/crm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--main-email owner@example.com --main-password "Password123!"]
#   Idempotent bootstrap: creates roles (main, doctor, general) and optionally the first main user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --full-name "Owner" --email owner@example.com --password "Password123!" --role main
#   Create a user (prompts if options are omitted).
#
# Inventory repair:
# - python -m flask inventory recompute-costs [--product-id 3]
#   Recompute average purchase price from active batches.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import CRMError
from .extensions import db
from .models import User
from .services import inventory_service, session_service, user_service
from .services.auth_service import DEFAULT_ROLES, ROLE_MAIN, create_default_roles


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--main-email', default=None, help='Email of the first main user')
@click.option('--main-password', default=None, help='Password of the first main user')
@click.option('--main-name', default='Owner', show_default=True, help='Full name of the first main user')
@with_appcontext
def init_system(main_email, main_password, main_name):
    """
    Initialize roles and, optionally, the first main user.

    Safe to run repeatedly: existing roles and users are left untouched.
    """
    click.echo("START Initializing CRM...")

    create_default_roles()
    db.session.commit()
    click.echo(f"PASS Roles ready: {', '.join(DEFAULT_ROLES)}")

    if not main_email:
        click.echo("INFO No --main-email given, skipping main user.")
        return

    existing = db.session.query(User).filter_by(email=main_email.strip().lower()).first()
    if existing:
        click.echo(f"WARN User '{existing.email}' already exists, skipping...")
        return

    if not main_password:
        main_password = click.prompt('Main user password', hide_input=True, confirmation_prompt=True)

    try:
        user = user_service.create_user(
            full_name=main_name,
            email=main_email,
            password=main_password,
            role=ROLE_MAIN,
        )
    except CRMError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created main user: {user.email} (ID: {user.id})")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Active':<8} {'Roles'}")
    click.echo("="*90)

    for user in users:
        roles_str = ", ".join(user.role_names) or "none"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.full_name:<25} {user.email:<35} {active_str:<8} {roles_str}")

    click.echo("="*90 + "\n")


@users_group.command('create')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='Email (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(DEFAULT_ROLES)), default='general', show_default=True)
@with_appcontext
def create_user_cli(full_name, email, password, role):
    """Create a user with a single role."""
    create_default_roles()
    try:
        user = user_service.create_user(full_name=full_name, email=email, password=password, role=role)
    except CRMError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.email} (ID: {user.id}) with role '{role}'")


@click.group('inventory')
def inventory_group():
    """Inventory ledger repair commands."""


@inventory_group.command('recompute-costs')
@click.option('--product-id', type=int, default=None, help='Only this product')
@with_appcontext
def recompute_costs_cli(product_id):
    """Recompute avg_purchase_price from the product's non-voided batches."""
    touched = inventory_service.recompute_all_costs(product_id)
    click.echo(f"PASS Recomputed average purchase price for {touched} product(s).")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """
    Cleanup old sessions.

    Default retention: 30 days.
    """
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(maintenance_group)
