# Overview: Flask CLI command groups for database bootstrap and backup files.

# backend/posbackend/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "posbackend:create_app" (PowerShell: $env:FLASK_APP="posbackend:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for migration-managed databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Add a demo category, products, staff, tax and discount to an empty database.
#
# Backups:
# - python -m flask backup export [--output backups/pos-backup.json]
#   Write a full snapshot as JSON (default: BACKUP_DIR/pos-backup-<timestamp>.json).
# - python -m flask backup restore backups/pos-backup.json --yes
#   Replace ALL data with the snapshot in the file.

import os

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import Category
from .services import backup_service, catalog_service, pricing_service, staff_service
from .time_utils import utcnow


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Seed a small demo catalog. Does nothing if categories already exist."""
    if db.session.query(Category.id).first():
        click.echo("WARN  Catalog is not empty, skipping demo seed.")
        return

    category = catalog_service.create_category(db.session, {"name": "Beverages", "description": "Drinks"})
    for name, price, stock, sku in (
        ("Espresso", 2.50, 100, "BEV-001"),
        ("Latte", 3.75, 80, "BEV-002"),
        ("Bottled Water", 1.25, 200, "BEV-003"),
    ):
        catalog_service.create_product(db.session, {
            "name": name, "price": price, "category_id": category["id"],
            "stock_quantity": stock, "sku": sku,
        })
    staff_service.create_staff(db.session, {"name": "Demo Cashier", "email": "cashier@pos.local", "role": "cashier"})
    pricing_service.create_tax(db.session, {"name": "Sales Tax", "rate": 8.25})
    pricing_service.create_discount(db.session, {"name": "Five Off", "type": "fixed", "value": 5})
    click.echo("PASS Demo data created.")


@click.group('backup')
def backup_group():
    """Backup export/restore commands."""


@backup_group.command('export')
@click.option('--output', 'output_path', type=click.Path(dir_okay=False), help='Target JSON file')
@with_appcontext
def export_backup(output_path):
    """Write a full snapshot of every table to a JSON file."""
    if not output_path:
        stamp = utcnow().strftime("%Y%m%dT%H%M%SZ")
        output_path = os.path.join(current_app.config["BACKUP_DIR"], f"pos-backup-{stamp}.json")

    snapshot = backup_service.write_backup_file(db.session, output_path)
    total = sum(len(v) for k, v in snapshot.items() if k != "timestamp")
    click.echo(f"PASS Backup written to {output_path} ({total} records, {snapshot['timestamp']})")


@backup_group.command('restore')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def restore_backup(path, yes):
    """Replace ALL data with the snapshot stored in PATH."""
    if not yes:
        click.confirm("WARN This will REPLACE ALL DATA with the backup. Are you sure?", abort=True)

    try:
        snapshot = backup_service.read_backup_file(path)
        result = backup_service.restore_backup(db.session, snapshot)
    except PosError as e:
        raise click.ClickException(f"Restore failed ({e.kind}): {e.message}")

    click.echo(f"PASS {result['message']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(backup_group)
