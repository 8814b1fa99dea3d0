# Overview: Printer registry. Peripheral records only; nothing here prints.

from __future__ import annotations

from sqlalchemy.orm import Session

from ..models import Printer, PRINTER_TYPES
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_printer
from .transaction import scoped_transaction

PRINTER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "ip_address", "port", "is_active", "printer_type"},
    required_on_create={"name", "ip_address", "port", "printer_type"},
    choices={"printer_type": PRINTER_TYPES},
)


def list_printers(session: Session, active_only: bool = False) -> list[dict]:
    query = session.query(Printer)
    if active_only:
        query = query.filter(Printer.is_active.is_(True))
    return [p.to_dict() for p in query.order_by(Printer.id.asc()).all()]


def create_printer(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Printer, payload=payload, policy=PRINTER_POLICY, partial=False)
    enforce_rules_printer(patch)
    with scoped_transaction(session):
        printer = Printer(**patch)
        session.add(printer)
        session.flush()
        result = printer.to_dict()
    return result
