# Overview: Flask CLI command groups for bootstrap, reporting and push-token registration.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to storefront (PowerShell: $env:FLASK_APP="storefront").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stores:
# - python -m flask stores create --owner-id u1 --name "Loja" --subdomain loja --plan Starter
# - python -m flask stores list
#
# Reports:
# - python -m flask reports monthly-summary --store-id <id> --year 2025
# - python -m flask reports dashboard --owner-id u1 [--from 2025-01-01 --to 2025-01-31]
#
# Plans:
# - python -m flask plans usage --store-id <id>
#
# Push:
# - python -m flask push register --owner-id u1 --token ExponentPushToken[x] --provider expo

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import OrderCoreError
from .models import Store
from .models.notifications import PUSH_PROVIDERS
from . import plans
from .services import analytics_service, plan_limits_service, push_service
from .services.store_service import get_store_by_owner


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete.")


# =============================================================================
# STORE COMMANDS
# =============================================================================

@click.group('stores')
def stores_group():
    """Store bootstrap commands."""


@stores_group.command('create')
@click.option('--owner-id', required=True, help='Owning user id')
@click.option('--name', required=True, help='Store display name')
@click.option('--subdomain', required=True, help='Public subdomain slug (unique)')
@click.option('--plan', type=click.Choice(plans.PLANS), default=plans.PLAN_FREE, show_default=True)
@with_appcontext
def create_store_cli(owner_id, name, subdomain, plan):
    """Create a store for an owner (one store per owner)."""
    subdomain = subdomain.strip().lower()
    if db.session.query(Store).filter_by(owner_user_id=owner_id).first():
        click.echo(f"FAIL Owner '{owner_id}' already has a store")
        return
    if db.session.query(Store).filter_by(subdomain=subdomain).first():
        click.echo(f"FAIL Subdomain '{subdomain}' is taken")
        return

    store = Store(owner_user_id=owner_id, name=name, subdomain=subdomain, plan=plan)
    db.session.add(store)
    db.session.commit()

    click.echo(f"PASS Created store: {store.name} (ID: {store.id}, plan: {store.plan})")


@stores_group.command('list')
@with_appcontext
def list_stores_cli():
    """List all stores."""
    stores = db.session.query(Store).order_by(Store.created_at).all()
    if not stores:
        click.echo("No stores found.")
        return
    for store in stores:
        click.echo(f"{store.id}  {store.subdomain:<20} {store.plan:<10} owner={store.owner_user_id}  {store.name}")


# =============================================================================
# REPORT COMMANDS
# =============================================================================

@click.group('reports')
def reports_group():
    """Sales analytics reports."""


@reports_group.command('monthly-summary')
@click.option('--store-id', required=True, help='Store ID')
@click.option('--year', type=int, required=True, help='Calendar year')
@with_appcontext
def monthly_summary_cli(store_id, year):
    """Approved revenue per month with brand split (major units)."""
    try:
        _echo_json(analytics_service.get_monthly_summary(store_id, year))
    except OrderCoreError as exc:
        raise click.ClickException(exc.message) from exc


@reports_group.command('dashboard')
@click.option('--owner-id', required=True, help='Owning user id')
@click.option('--from', 'date_from', help='First day (YYYY-MM-DD)')
@click.option('--to', 'date_to', help='Last day (YYYY-MM-DD)')
@click.option('--with-orders', is_flag=True, help='Include the order list')
@with_appcontext
def dashboard_cli(owner_id, date_from, date_to, with_orders):
    """Order count, approved revenue and estimated profit."""
    try:
        data = analytics_service.get_dashboard(owner_id, date_from, date_to)
    except OrderCoreError as exc:
        raise click.ClickException(exc.message) from exc
    if not with_orders:
        data.pop("orders")
    _echo_json(data)


# =============================================================================
# PLAN COMMANDS
# =============================================================================

@click.group('plans')
def plans_group():
    """Plan quota inspection."""


@plans_group.command('usage')
@click.option('--store-id', required=True, help='Store ID')
@with_appcontext
def plan_usage_cli(store_id):
    """Show limits, usage and remaining allowance for a store."""
    try:
        _echo_json(plan_limits_service.get_usage_info(store_id))
    except OrderCoreError as exc:
        raise click.ClickException(exc.message) from exc


# =============================================================================
# PUSH COMMANDS
# =============================================================================

@click.group('push')
def push_group():
    """Push token management."""


@push_group.command('register')
@click.option('--owner-id', required=True, help='Owning user id')
@click.option('--token', required=True, help='Device push token')
@click.option('--provider', type=click.Choice(PUSH_PROVIDERS), required=True)
@click.option('--device-id', help='Device identifier')
@click.option('--device-name', help='Device display name')
@with_appcontext
def register_push_cli(owner_id, token, provider, device_id, device_name):
    """Register (or reactivate) a device token for the owner's store."""
    try:
        store = get_store_by_owner(owner_id)
        push_token = push_service.register_push_token(
            user_id=owner_id,
            store_id=store.id,
            token=token,
            provider=provider,
            device_id=device_id,
            device_name=device_name,
        )
    except OrderCoreError as exc:
        raise click.ClickException(exc.message) from exc

    click.echo(f"PASS Registered {push_token.provider} token for store {store.id}")


@push_group.command('deactivate')
@click.option('--token', required=True, help='Device push token')
@with_appcontext
def deactivate_push_cli(token):
    """Stop sending pushes to a device token."""
    if push_service.deactivate_push_token(token):
        click.echo("PASS Token deactivated")
    else:
        click.echo("FAIL Token not found")


@push_group.command('delete')
@click.option('--token', required=True, help='Device push token')
@with_appcontext
def delete_push_cli(token):
    """Remove a device token entirely."""
    if push_service.delete_push_token(token):
        click.echo("PASS Token deleted")
    else:
        click.echo("FAIL Token not found")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(plans_group)
    app.cli.add_command(push_group)
