"""
Backup/Restore Engine.

A snapshot is one JSON-ready document holding every row of every table:

    {timestamp, categories[], products[], staff[], printers[], taxes[],
     discounts[], sales[], sale_items[]}

Money/rate fields are plain numbers, timestamps ISO-8601 strings. Restoring
a snapshot replaces the whole dataset in one transaction: children are
deleted before parents, parents inserted before children, ids preserved.
"""
from __future__ import annotations

import json
from pathlib import Path

from sqlalchemy import Boolean, DateTime, Integer, String, Text, text
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import (
    Category, Discount, Printer, Product, Sale, SaleItem, Staff, Tax,
    DISCOUNT_TYPES, PAYMENT_METHODS, PRINTER_TYPES, SALE_STATUSES, STAFF_ROLES,
)
from ..money import FixedPointType, RateType, to_money, to_rate
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from ..validation import (
    enforce_rules_discount,
    enforce_rules_printer,
    enforce_rules_product,
    enforce_rules_staff,
    enforce_rules_tax,
)
from .transaction import scoped_transaction

SNAPSHOT_MODELS = {
    "categories": Category,
    "products": Product,
    "staff": Staff,
    "printers": Printer,
    "taxes": Tax,
    "discounts": Discount,
    "sales": Sale,
    "sale_items": SaleItem,
}

# Children before parents
DELETE_ORDER = ("sale_items", "sales", "products", "categories", "staff", "printers", "taxes", "discounts")

# Parents before children: independent tables, then products, sales, sale_items
INSERT_ORDER = ("categories", "staff", "printers", "taxes", "discounts", "products", "sales", "sale_items")

# Enumerated columns per table, same sets the create paths accept
SNAPSHOT_CHOICES = {
    "staff": {"role": STAFF_ROLES},
    "printers": {"printer_type": PRINTER_TYPES},
    "discounts": {"type": DISCOUNT_TYPES},
    "sales": {"payment_method": PAYMENT_METHODS, "status": SALE_STATUSES},
}

SNAPSHOT_RULES = {
    "products": enforce_rules_product,
    "staff": enforce_rules_staff,
    "printers": enforce_rules_printer,
    "taxes": enforce_rules_tax,
    "discounts": enforce_rules_discount,
}


def create_backup(session: Session) -> dict:
    """
    createBackup: read every table in full.

    All reads share one transaction so the snapshot is consistent across
    tables even if a sale commits while the backup is running.
    """
    snapshot: dict = {"timestamp": to_utc_z(utcnow())}
    with scoped_transaction(session):
        for key, model in SNAPSHOT_MODELS.items():
            rows = session.query(model).order_by(model.id.asc()).all()
            snapshot[key] = [row.to_dict() for row in rows]
    return snapshot


def _invalid_snapshot(message: str, **details) -> ValidationError:
    return ValidationError(message, kind="invalid snapshot", details=details)


def _snapshot_value(column, value, table: str, index: int):
    """Convert one snapshot field to what the column binds."""
    where = {"table": table, "index": index, "field": column.name}

    if value is None:
        if not column.nullable:
            raise _invalid_snapshot(f"{table}[{index}].{column.name} is required", **where)
        return None

    coltype = column.type
    if isinstance(coltype, FixedPointType):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be a number", **where)
        try:
            return to_rate(value, column.name) if isinstance(coltype, RateType) else to_money(value, column.name)
        except ValidationError:
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be a number", **where)

    if isinstance(coltype, Boolean):
        if not isinstance(value, bool):
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be a boolean", **where)
        return value

    if isinstance(coltype, Integer):
        if isinstance(value, bool) or not isinstance(value, int):
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be an integer", **where)
        return value

    if isinstance(coltype, DateTime):
        try:
            parsed = parse_iso_datetime(value)
        except (TypeError, ValueError):
            parsed = None
        if parsed is None:
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be an ISO-8601 datetime", **where)
        return parsed

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise _invalid_snapshot(f"{table}[{index}].{column.name} must be a string", **where)
        return value

    return value


def _check_row_rules(key: str, row: dict, index: int) -> None:
    """Enum and range rules a row must satisfy to be restorable."""
    for name, allowed in SNAPSHOT_CHOICES.get(key, {}).items():
        if row[name] not in allowed:
            raise _invalid_snapshot(
                f"{key}[{index}].{name} must be one of: {', '.join(allowed)}",
                table=key, index=index, field=name,
            )

    if key == "sale_items" and row["quantity"] <= 0:
        raise _invalid_snapshot(f"{key}[{index}].quantity must be > 0", table=key, index=index, field="quantity")

    rule = SNAPSHOT_RULES.get(key)
    if rule is None:
        return
    try:
        rule(row)
    except ValidationError as exc:
        field_name = exc.details.get("field")
        raise _invalid_snapshot(f"{key}[{index}]: {exc.message}", table=key, index=index, field=field_name)


def parse_snapshot(snapshot) -> dict[str, list[dict]]:
    """
    Validate a snapshot and convert it to insertable row dicts per table.

    Runs entirely before any storage access so a malformed snapshot never
    touches the current dataset.
    """
    if not isinstance(snapshot, dict):
        raise _invalid_snapshot("Backup snapshot must be an object")

    timestamp = snapshot.get("timestamp")
    if not isinstance(timestamp, str) or not timestamp.strip():
        raise _invalid_snapshot("Backup snapshot timestamp is required", field="timestamp")

    missing = [key for key in SNAPSHOT_MODELS if key not in snapshot]
    if missing:
        raise _invalid_snapshot(f"Backup snapshot is missing: {', '.join(missing)}", missing=missing)

    rows_by_table: dict[str, list[dict]] = {}
    for key, model in SNAPSHOT_MODELS.items():
        raw_rows = snapshot[key]
        if not isinstance(raw_rows, list):
            raise _invalid_snapshot(f"{key} must be a list", table=key)

        columns = list(model.__table__.columns)
        rows = []
        seen_ids = set()
        for index, raw in enumerate(raw_rows):
            if not isinstance(raw, dict):
                raise _invalid_snapshot(f"{key}[{index}] must be an object", table=key, index=index)
            row = {col.name: _snapshot_value(col, raw.get(col.name), key, index) for col in columns}
            _check_row_rules(key, row, index)
            if row["id"] in seen_ids:
                raise _invalid_snapshot(f"{key}[{index}] duplicates id {row['id']}", table=key, index=index)
            seen_ids.add(row["id"])
            rows.append(row)
        rows_by_table[key] = rows

    return rows_by_table


def _advance_sequences(session: Session) -> None:
    # Explicit ids bypass PostgreSQL serial sequences; move them past the max.
    # SQLite AUTOINCREMENT tracks explicit ids on its own.
    if session.get_bind().dialect.name != "postgresql":
        return
    for key in INSERT_ORDER:
        table = SNAPSHOT_MODELS[key].__table__.name
        session.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
            )
        )


def restore_backup(session: Session, snapshot) -> dict:
    """
    restoreBackup: replace every table with the snapshot's rows.

    Any failure (bad shape, FK violation, duplicate key, storage error)
    leaves the previous dataset intact.
    """
    rows_by_table = parse_snapshot(snapshot)

    with scoped_transaction(session):
        for key in DELETE_ORDER:
            session.execute(SNAPSHOT_MODELS[key].__table__.delete())

        for key in INSERT_ORDER:
            rows = rows_by_table[key]
            if rows:
                session.execute(SNAPSHOT_MODELS[key].__table__.insert(), rows)

        _advance_sequences(session)

    total_records = sum(len(rows) for rows in rows_by_table.values())
    return {
        "success": True,
        "message": (
            f"Backup restored successfully. {total_records} records imported "
            f"from {snapshot['timestamp']}"
        ),
    }


def write_backup_file(session: Session, path: str | Path) -> dict:
    """Create a snapshot and write it as JSON. Returns the snapshot."""
    snapshot = create_backup(session)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
    return snapshot


def read_backup_file(path: str | Path) -> dict:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise _invalid_snapshot(f"Backup file is not valid JSON: {exc.msg}", path=str(path))
