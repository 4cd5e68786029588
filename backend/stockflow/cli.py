# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockflow/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "stockflow:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed [--stock 50]
#   Create the sample products (skips SKUs that exist) and restock each.
#
# Inventory inspection:
# - python -m flask inventory list
#   Consolidated stock per product with value and margin figures.
#
# Sales inspection/repair:
# - python -m flask sales show 12
#   Print a sale with its line items.
# - python -m flask sales redeliver 12
#   Publish the sale-completed event again (duplicates are skipped).
#
# Maintenance:
# - python -m flask maintenance purge-sale-events
#   Delete idempotency records whose retention window has passed.

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import maintenance_service
from .services.sales_service import SaleError
from .validation import ConflictError, NotFoundError
from .wiring import get_services


SEED_PRODUCTS = [
    {"sku": "PROD001", "name": "Product A", "description": "Sample product A", "cost_price": Decimal("10.00"), "sale_price": Decimal("15.00")},
    {"sku": "PROD002", "name": "Product B", "description": "Sample product B", "cost_price": Decimal("20.00"), "sale_price": Decimal("30.00")},
    {"sku": "PROD003", "name": "Product C", "description": "Sample product C", "cost_price": Decimal("15.00"), "sale_price": Decimal("25.00")},
    {"sku": "PROD004", "name": "Product D", "description": "Sample product D", "cost_price": Decimal("12.50"), "sale_price": Decimal("18.00")},
    {"sku": "PROD005", "name": "Product E", "description": "Sample product E", "cost_price": Decimal("8.00"), "sale_price": Decimal("12.00")},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


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


@system_group.command('seed')
@click.option('--stock', default=50, show_default=True, type=click.IntRange(min=0), help='Units to add per created product (0 to skip)')
@with_appcontext
def seed(stock):
    """Create sample products and opening stock."""
    services = get_services()
    created = 0
    for data in SEED_PRODUCTS:
        try:
            product = services.catalog.create_product(**data)
        except ConflictError:
            click.echo(f"WARN  SKU '{data['sku']}' already exists, skipping...")
            continue
        created += 1
        if stock:
            services.ledger.add_stock(product.id, stock)
        click.echo(f"PASS Created product: {product.sku} ({product.name}) with {stock} units")
    click.echo(f"DONE {created} product(s) seeded")


@click.group('inventory')
def inventory_group():
    """Stock inspection commands."""


@inventory_group.command('list')
@with_appcontext
def list_inventory():
    """Print consolidated stock."""
    summaries = get_services().ledger.get_consolidated_stock()
    if not summaries:
        click.echo("No stock found.")
        return

    click.echo("\n" + "="*96)
    click.echo(f"{'ID':<5} {'SKU':<12} {'Name':<24} {'Qty':>6} {'Cost value':>12} {'Sale value':>12} {'Profit':>12} {'Margin %':>8}")
    click.echo("="*96)
    for s in summaries:
        click.echo(
            f"{s.product_id:<5} {s.product.sku:<12} {s.product.name[:24]:<24} {s.quantity:>6} "
            f"{s.total_cost_value:>12} {s.total_sale_value:>12} {s.projected_profit:>12} "
            f"{s.profit_margin_percentage:>8}"
        )
    click.echo("="*96 + "\n")


@click.group('sales')
def sales_group():
    """Sale inspection and repair commands."""


@sales_group.command('show')
@click.argument('sale_id', type=int)
@with_appcontext
def show_sale(sale_id):
    """Print a sale with its line items."""
    try:
        sale = get_services().sales.get_sale_details(sale_id)
    except NotFoundError:
        click.echo(f"FAIL Sale ID {sale_id} not found")
        raise SystemExit(1)

    click.echo(f"Sale {sale.id} [{sale.status}]")
    click.echo(f"  amount={sale.total_amount} cost={sale.total_cost} profit={sale.total_profit} margin={sale.profit_margin}%")
    for item in sale.items:
        sku = item.product.sku if item.product else item.product_id
        click.echo(f"  - {sku} x{item.quantity} @ {item.unit_price} (cost {item.unit_cost})")


@sales_group.command('redeliver')
@click.argument('sale_id', type=int)
@with_appcontext
def redeliver_sale(sale_id):
    """Publish the sale-completed event for a sale again."""
    try:
        get_services().sales.redeliver(sale_id)
    except NotFoundError:
        click.echo(f"FAIL Sale ID {sale_id} not found")
        raise SystemExit(1)
    except SaleError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Sale {sale_id} redelivered")


@click.group('maintenance')
def maintenance_group():
    """Data retention commands."""


@maintenance_group.command('purge-sale-events')
@with_appcontext
def purge_sale_events():
    """Delete expired sale-event idempotency records."""
    deleted = maintenance_service.purge_sale_events(get_services().idempotency)
    click.echo(f"PASS Deleted {deleted} expired sale event record(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(maintenance_group)
