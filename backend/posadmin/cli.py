# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/posadmin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Database:
# - python -m flask db upgrade
#   Apply migrations (Flask-Migrate).
#
# System bootstrap:
# - python -m flask system init-roles
#   Create the listing rows for the system roles (admin, manager, cashier). Idempotent.
#
# User inspection/bootstrap:
# - python -m flask users list [--all]
#   List users with role and active status.
# - python -m flask users create --username admin --display-name "Admin" --password "Password123!" --role admin
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms check manager canManageSettings
#   Evaluate one permission for a role name exactly as the API does.
#
# Maintenance:
# - python -m flask tokens purge
#   Delete expired refresh tokens.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import User
from .permissions import get_all_permission_codes, validate_permission_code
from .services import permission_service, role_service, token_service, user_service


# =============================================================================
# SYSTEM COMMANDS
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-roles')
@with_appcontext
def init_roles_cli():
    """
    Seed the roles table with the three system roles.

    The rows exist so role listings show them; permission evaluation for
    system roles never reads them.
    """
    created = role_service.seed_system_roles()
    if created:
        click.echo(f"PASS Created system roles: {', '.join(created)}")
    else:
        click.echo("PASS System roles already present")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--display-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', default='cashier', show_default=True, help='System or custom role name')
@click.option('--email', default=None, help='Email address')
@click.option('--store-id', type=int, default=None, help='Home store ID')
@with_appcontext
def create_user_cli(username, display_name, password, role, email, store_id):
    """
    Create a user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    payload = {
        "username": username,
        "displayName": display_name,
        "password": password,
        "role": role,
        "email": email,
        "storeId": store_id,
    }
    try:
        user = user_service.create_user(payload)
    except ApiError as e:
        db.session.rollback()
        raise click.ClickException(f"Failed to create user: {e.message}")

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated users')
@with_appcontext
def list_users_cli(include_inactive):
    """List users with their roles."""
    users = user_service.list_users(include_inactive=include_inactive)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Display name':<25} {'Role':<15} {'Active'}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.display_name:<25} {user.role:<15} {active_str}")
    click.echo("=" * 80)
    click.echo(f"Total: {len(users)} users\n")


# =============================================================================
# PERMISSION COMMANDS
# =============================================================================

@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('check')
@click.argument('subject')
@click.argument('permission_code')
@click.option('--user', 'by_user', is_flag=True, help='Treat SUBJECT as a username instead of a role name')
@with_appcontext
def check_permission_cli(subject, permission_code, by_user):
    """Check whether a role (or a user's role) holds a permission."""
    if not validate_permission_code(permission_code):
        raise click.ClickException(
            f"Unknown permission '{permission_code}'. Known: {', '.join(get_all_permission_codes())}"
        )

    role_name = subject
    if by_user:
        user = db.session.query(User).filter_by(username=subject).first()
        if user is None:
            raise click.ClickException(f"User '{subject}' not found")
        role_name = user.role

    if permission_service.evaluate(role_name, permission_code):
        click.echo(f"PASS Role '{role_name}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL Role '{role_name}' DOES NOT HAVE permission '{permission_code}'")

    granted = [k for k, v in permission_service.resolve_permissions(role_name).items() if v]
    click.echo(f"\nGranted: {', '.join(granted) if granted else 'none'}")


# =============================================================================
# MAINTENANCE COMMANDS
# =============================================================================

@click.group('tokens')
def tokens_group():
    """Refresh token maintenance."""


@tokens_group.command('purge')
@with_appcontext
def purge_tokens_cli():
    """Delete expired refresh tokens (used and revoked ones go once they expire)."""
    deleted = token_service.purge_expired()
    click.echo(f"Deleted {deleted} expired refresh tokens.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(tokens_group)
