# Overview: Flask CLI command groups for bootstrap and user maintenance.

# backend/visionx/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the admin seed account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User maintenance:
# - python -m flask users list
# - python -m flask users create --name "Dr Rao" --email rao@visionx.com --password "Password123" --role doctor
# - python -m flask users set-role rao@visionx.com staff
# - python -m flask users set-password rao@visionx.com

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import VALID_ROLES
from .services import auth_service
from .services.auth_service import PasswordValidationError
from .validation import ValidationError


def _fail(message: str) -> None:
    click.echo(f"FAIL {message}")
    raise SystemExit(1)


def _user_by_email(email: str) -> User:
    user = db.session.query(User).filter_by(email=email.strip()).first()
    if not user:
        _fail(f"No user with email {email}")
    return user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize VisionX: create tables and guarantee one admin account.

    The admin seed uses ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD from
    config. Nothing is created when an admin already exists.

    SECURITY: Change the seed password immediately in production!
    """
    click.echo("START Initializing VisionX...")

    db.create_all()
    click.echo("PASS Tables ready")

    cfg = current_app.config
    try:
        admin, created = auth_service.ensure_admin_user(
            cfg["ADMIN_NAME"], cfg["ADMIN_EMAIL"], cfg["ADMIN_PASSWORD"]
        )
    except PasswordValidationError as e:
        _fail(f"Admin password rejected: {e}")

    if created:
        click.echo(f"PASS Created admin: {admin.email}")
    else:
        click.echo(f"PASS Admin already present: {admin.email}, skipping...")

    click.echo("DONE VisionX initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if current_app.config.get("APP_ENV") == "production":
        _fail("reset-db is disabled when APP_ENV=production")
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and maintenance commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = auth_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<32} {'Role'}")
    for user in users:
        click.echo(f"{user.id:<5} {user.name:<24} {user.email:<32} {user.role}")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(VALID_ROLES), default='staff', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a user.

    Password must be 8+ characters with at least one letter and one digit.
    """
    try:
        user = auth_service.create_user(name, email, password, role)
    except PasswordValidationError as e:
        _fail(f"Password validation failed: {e}")
    except ValueError as e:
        _fail(f"Failed to create user: {e}")

    click.echo(f"PASS Created user: {user.email} with role '{user.role}'")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(VALID_ROLES))
@with_appcontext
def set_role_cli(email, role):
    user = _user_by_email(email)
    try:
        auth_service.set_user_role(user.id, role)
    except ValidationError as e:
        _fail(str(e))
    click.echo(f"PASS {user.email} is now '{role}'")


@users_group.command('set-password')
@click.argument('email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def set_password_cli(email, password):
    user = _user_by_email(email)
    try:
        auth_service.set_user_password(user.id, password)
    except PasswordValidationError as e:
        _fail(f"Password validation failed: {e}")
    click.echo(f"PASS Password updated for {user.email}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
