# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/voucherdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py and DATABASE_URL to a file or server database
#   (the in-memory default vanishes when the command exits).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and the demo owner/employee/customer accounts (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role employee]
# - python -m flask users create --username jane --full-name "Jane Doe" --role employee
#   Prompts for the password.
#
# Voucher inspection:
# - python -m flask vouchers list

import click
from flask.cli import with_appcontext

from .errors import VoucherDeskError
from .extensions import db
from .models import ROLES
from .services.auth_service import DEMO_PASSWORD, create_user, ensure_demo_users
from .storage import get_storage


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and the demo accounts.

    Users: owner, employee, customer - all with password "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing voucher system...")
    db.create_all()
    click.echo("PASS Tables ready")

    storage = get_storage()
    with storage.transaction():
        created = ensure_demo_users(storage)

    for user in created:
        click.echo(f"PASS Created user: {user.username} (role '{user.role}', id {user.id})")
    if not created:
        click.echo("WARN  Demo users already exist, skipping...")

    click.echo(f"\nDefault password for demo users: {DEMO_PASSWORD} (CHANGE IN PRODUCTION!)")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES), default=None, help='Only users with this role')
@with_appcontext
def list_users(role):
    """List users with their roles."""
    storage = get_storage()
    users = storage.users.list(role=role) if role else storage.users.list()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        click.echo(f"{user.id:>4}  {user.username:<20} {user.role:<9} {user.full_name}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--full-name', prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='customer', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(username, full_name, role, password):
    """Create a user of any role (including owner)."""
    storage = get_storage()
    try:
        with storage.transaction():
            user = create_user(
                storage,
                username=username,
                password=password,
                full_name=full_name,
                role=role,
            )
    except VoucherDeskError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} (role '{user.role}', id {user.id})")


@click.group('vouchers')
def vouchers_group():
    """Voucher inspection commands."""


@vouchers_group.command('list')
@with_appcontext
def list_vouchers():
    """List voucher batches with remaining owner stock."""
    vouchers = get_storage().vouchers.list()
    if not vouchers:
        click.echo("No vouchers found.")
        return
    for v in vouchers:
        click.echo(
            f"{v.id:>4}  {v.code:<16} {v.type:<12} value={v.value} "
            f"stock={v.current_stock}/{v.initial_stock} expires={v.expiry_date:%Y-%m-%d}"
        )


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(vouchers_group)
