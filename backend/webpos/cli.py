# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/webpos/cli.py
# Commands Legend:
# - flask --app webpos.wsgi system init
#   Create tables and the default administrator (idempotent).
# - flask --app webpos.wsgi system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app webpos.wsgi users create --username alice --password "..." --role cashier
# - flask --app webpos.wsgi users list
# - flask --app webpos.wsgi products add --sku SKU-1 --name "Controller" --price 1000 --cost 600 --stock 10
# - flask --app webpos.wsgi products list

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import User
from .services.container import get_services


def bootstrap(app) -> None:
    """Create tables and the default admin. Must run inside an app context."""
    db.create_all()
    user, created = get_services().credentials.ensure_default_admin(
        app.config["ADMIN_USERNAME"],
        app.config.get("ADMIN_PASSWORD"),
    )
    if created:
        app.logger.warning(
            "Default administrator %r created; change its password after first login",
            user.username,
        )


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables and the default administrator account."""
    try:
        bootstrap(current_app)
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Schema ready; administrator is '{current_app.config['ADMIN_USERNAME']}'")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including the sales history.
    """
    if current_app.config.get("ENV_NAME") == "production":
        raise click.ClickException("reset-db is disabled in the production profile")
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete. Run 'flask system init' to create the administrator.")


@click.group('users')
def users_group():
    """User inspection and creation."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'cashier']), default='cashier', show_default=True)
@with_appcontext
def create_user_cli(username, password, role):
    """Create a staff account."""
    try:
        user = get_services().credentials.create_user(username, password, role=role)
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users. Run 'flask system init' first.")
        return
    for user in users:
        click.echo(f"{user.id:>4}  {user.username:<24} {user.role}")


@click.group('products')
def products_group():
    """Product provisioning."""


@products_group.command('add')
@click.option('--sku', default='', help='SKU')
@click.option('--name', required=True, help='Display name')
@click.option('--price', type=int, default=0, show_default=True, help='Price in minor units')
@click.option('--cost', type=int, default=0, show_default=True, help='Cost in minor units')
@click.option('--stock', type=int, default=0, show_default=True, help='Initial stock')
@with_appcontext
def add_product(sku, name, price, cost, stock):
    """Create a product with its opening stock."""
    try:
        product = get_services().ledger.create_product({
            "sku": sku,
            "name": name,
            "price": price,
            "cost": cost,
            "stock": stock,
        })
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created product {product.name} (ID: {product.id}, stock: {product.stock})")


@products_group.command('list')
@with_appcontext
def list_products():
    """List products with stock on hand."""
    for product in get_services().ledger.list_products():
        click.echo(f"{product.id:>4}  {product.sku:<16} {product.name:<32} price={product.price} stock={product.stock}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
