# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/warehub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the admin from ADMIN_EMAIL/ADMIN_PASSWORD.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
# - python -m flask users create --email a@b.c --name "Ann" --password "secret123" [--admin]
#   Prompts if options are omitted.
#
# Inventory repair:
# - python -m flask warehouses rebuild-inventory --id 3 [--apply]
#   Replay the flow ledger and report differences from the stored inventory.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.auth_service import create_user, ensure_admin_user, PasswordValidationError
from .services.warehouse_service import WarehouseNotFoundError, rebuild_warehouse_inventory
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and seed the admin account.

    Safe to re-run. The admin is taken from ADMIN_EMAIL / ADMIN_PASSWORD /
    ADMIN_NAME; without ADMIN_PASSWORD the admin step is skipped.
    """
    click.echo("START Initializing Warehub...")

    db.create_all()
    click.echo("PASS Tables created")

    email = current_app.config.get("ADMIN_EMAIL")
    password = current_app.config.get("ADMIN_PASSWORD")
    name = current_app.config.get("ADMIN_NAME") or "Admin"

    if not password:
        click.echo("SKIP ADMIN_PASSWORD not set; no admin account seeded")
        return

    try:
        user, created = ensure_admin_user(email, password, name)
    except ValidationError as e:
        click.echo(f"FAIL Could not seed admin: {e}")
        raise SystemExit(1)

    if created:
        click.echo(f"PASS Created admin user: {user.email}")
    else:
        click.echo(f"PASS Admin user already exists: {user.email}")


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


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Grant admin access')
@with_appcontext
def create_user_cli(email, name, password, is_admin):
    """
    Create a new user.

    Password must be at least 8 characters with a letter and a digit.
    """
    try:
        user = create_user(email, password, name, is_admin=is_admin)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        click.echo("Requirements: 8+ chars, at least one letter and one digit")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        return

    role = "admin" if user.is_admin else "user"
    click.echo(f"PASS Created {role}: {user.email} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Admin'}")
    click.echo("=" * 80)
    for user in users:
        click.echo(f"{user.id:<5} {user.email:<35} {user.name:<25} {'yes' if user.is_admin else 'no'}")
    click.echo("=" * 80 + "\n")


@click.group('warehouses')
def warehouses_group():
    """Warehouse maintenance commands."""


@warehouses_group.command('rebuild-inventory')
@click.option('--id', 'warehouse_id', type=int, required=True, help='Warehouse ID')
@click.option('--apply', is_flag=True, help='Write the rebuilt inventory')
@with_appcontext
def rebuild_inventory_cli(warehouse_id, apply):
    """
    Replay the flow ledger and compare with the stored inventory.

    CSV imports and direct inventory edits are not in the ledger, so a
    difference is expected after either. Without --apply nothing is written.
    """
    try:
        result = rebuild_warehouse_inventory(warehouse_id, apply=apply)
    except WarehouseNotFoundError:
        click.echo(f"FAIL Warehouse {warehouse_id} not found")
        raise SystemExit(1)

    if not result["differences"]:
        click.echo(f"PASS Warehouse {warehouse_id}: inventory matches ledger")
        return

    click.echo(f"DIFF Warehouse {warehouse_id}: {len(result['differences'])} type(s) differ")
    click.echo(f"{'Type':<30} {'Stored':>10} {'Rebuilt':>10}")
    for d in result["differences"]:
        click.echo(f"{d['typeName']:<30} {d['stored']:>10} {d['rebuilt']:>10}")

    if result["applied"]:
        click.echo("PASS Rebuilt inventory written")
    else:
        click.echo("INFO Dry run; use --apply to write the rebuilt inventory")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(warehouses_group)
