# Overview: Flask CLI command group for bootstrap and store-side reports.

# backend/pocketpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask pos <command> [options]
#
# - python -m flask pos init-db
#   Create tables (sql backend) or the data directory (json backend) and default settings.
# - python -m flask pos seed [--reset]
#   Load the demo catalog; existing SKUs are skipped unless --reset is given.
# - python -m flask pos low-stock [--threshold 5]
#   List products at or below their low-stock threshold.
# - python -m flask pos daily-report [--date 2026-10-17]
#   Gross/net/VAT and hourly velocity for one shop-local day.

import uuid
from decimal import Decimal
from pathlib import Path

import click
from flask.cli import with_appcontext

from .domain import Category, Product
from .extensions import current_pos, db
from .services import metrics_service
from .time_utils import parse_iso_date
from .validation import slugify

DEMO_CATEGORIES = [
    ("Drinks", "🥤", "#3B82F6"),
    ("Snacks", "🍟", "#F59E0B"),
    ("Pantry", "🥫", "#10B981"),
    ("Household", "🧼", "#8B5CF6"),
]

# sku, name, price, cost, stock, category, emoji
DEMO_PRODUCTS = [
    ("DRK-001", "Iced Coffee 250ml", "45.00", "28.00", 40, "Drinks", "🧋"),
    ("DRK-002", "Mineral Water 500ml", "20.00", "11.00", 60, "Drinks", "💧"),
    ("DRK-003", "Softdrink 1.5L", "75.00", "58.00", 24, "Drinks", "🥤"),
    ("SNK-001", "Banana Chips", "35.00", "20.00", 30, "Snacks", "🍌"),
    ("SNK-002", "Chicharon", "50.00", "32.00", 8, "Snacks", "🥓"),
    ("SNK-003", "Pandesal (10 pcs)", "40.00", "25.00", 15, "Snacks", "🍞"),
    ("PAN-001", "Instant Pancit Canton", "18.00", "12.50", 100, "Pantry", "🍜"),
    ("PAN-002", "Corned Beef 150g", "48.00", "36.00", 5, "Pantry", "🥫"),
    ("PAN-003", "Rice 1kg", "55.00", "44.00", 50, "Pantry", "🍚"),
    ("HSE-001", "Bar Soap", "32.00", "22.00", 25, "Household", "🧼"),
]


@click.group("pos")
def pos_group():
    """PocketPOS bootstrap and report commands."""


@pos_group.command("init-db")
@with_appcontext
def init_db():
    """Create storage for the configured backend and default shop settings."""
    pos = current_pos()
    if pos.storage.name == "sql":
        db.create_all()
        click.echo("PASS Created database tables")
    else:
        Path(pos.storage.data_dir).mkdir(parents=True, exist_ok=True)
        click.echo(f"PASS Using data directory {pos.storage.data_dir}")

    settings = pos.settings.get_settings()
    click.echo(f"PASS Shop settings ready: {settings.shop_name}")


@pos_group.command("seed")
@click.option("--reset", is_flag=True, help="Overwrite products whose SKU already exists")
@with_appcontext
def seed(reset):
    """Load the demo catalog."""
    pos = current_pos()
    catalog = pos.catalog

    existing_slugs = {c.slug for c in catalog.list_categories()}
    for name, emoji, color in DEMO_CATEGORIES:
        if slugify(name) in existing_slugs:
            continue
        catalog.upsert_category(Category(id=str(uuid.uuid4()), name=name, slug=slugify(name), emoji=emoji, color=color))
        click.echo(f"PASS Category {name}")

    by_sku = {p.sku: p for p in catalog.list_products()}
    created = updated = skipped = 0
    with pos.storage.unit_of_work():
        for sku, name, price, cost, stock, category, emoji in DEMO_PRODUCTS:
            current = by_sku.get(sku)
            if current and not reset:
                skipped += 1
                continue
            product = Product(
                id=current.id if current else str(uuid.uuid4()),
                sku=sku,
                name=name,
                price=Decimal(price),
                cost=Decimal(cost),
                stock=stock,
                category=category,
                emoji=emoji,
                created_at=current.created_at if current else None,
            )
            catalog.upsert_product(product)
            if current:
                updated += 1
            else:
                created += 1

    click.echo(f"PASS Products: {created} created, {updated} updated, {skipped} skipped")


@pos_group.command("low-stock")
@click.option("--threshold", type=int, default=None, help="Apply one threshold to every product")
@with_appcontext
def low_stock_command(threshold):
    """List products at or below their low-stock threshold."""
    pos = current_pos()
    report = metrics_service.low_stock(
        pos.catalog.list_products(),
        threshold=threshold,
        default_threshold=pos.low_stock_threshold,
    )
    if not report.count:
        click.echo("No low-stock products.")
        return
    click.echo(f"WARN  {report.count} low-stock product(s):")
    for product in report.products:
        click.echo(f"  {product.sku:<10} {product.name:<28} stock={product.stock}")


@pos_group.command("daily-report")
@click.option("--date", "day", default=None, help="Shop-local date (YYYY-MM-DD); defaults to today")
@with_appcontext
def daily_report(day):
    """Gross/net/VAT and hourly velocity for one day."""
    pos = current_pos()
    try:
        as_of = parse_iso_date(day)
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date")

    sales = pos.ledger.all()
    totals = metrics_service.daily_totals(sales, as_of, pos.tz)
    click.echo(f"Daily report for {totals.day.isoformat()}")
    click.echo(f"  Orders : {totals.order_count}")
    click.echo(f"  Gross  : {totals.gross:,.2f}")
    click.echo(f"  Net    : {totals.net:,.2f}")
    click.echo(f"  VAT    : {totals.vat:,.2f}")

    velocity = metrics_service.hourly_velocity(metrics_service.sales_on(sales, totals.day, pos.tz), pos.tz)
    for hour, amount in velocity.items():
        click.echo(f"  {hour:02d}:00  {amount:,.2f}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(pos_group)
