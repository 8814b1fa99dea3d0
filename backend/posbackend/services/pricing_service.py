# Overview: Pricing modifiers (taxes and discounts) and the rules for applying them.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Discount, Tax, DISCOUNT_TYPES
from ..money import ZERO, percent_of, quantize
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_tax,
    enforce_rules_discount,
)
from .transaction import scoped_transaction

TAX_POLICY = ModelValidationPolicy(
    writable_fields={"name", "rate", "is_active"},
    required_on_create={"name", "rate"},
)

DISCOUNT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "type", "value", "is_active"},
    required_on_create={"name", "type", "value"},
    choices={"type": DISCOUNT_TYPES},
)


def find_active_tax_by_id(session: Session, tax_id: int) -> Tax | None:
    return session.query(Tax).filter(Tax.id == tax_id, Tax.is_active.is_(True)).first()


def find_active_discount_by_id(session: Session, discount_id: int) -> Discount | None:
    return (
        session.query(Discount)
        .filter(Discount.id == discount_id, Discount.is_active.is_(True))
        .first()
    )


def compute_tax_amount(subtotal: Decimal, tax: Tax | None) -> Decimal:
    """subtotal * rate / 100, or zero without a tax."""
    if tax is None:
        return ZERO
    return percent_of(subtotal, tax.rate)


def compute_discount_amount(subtotal: Decimal, discount: Discount | None) -> Decimal:
    """
    percentage: subtotal * value / 100
    fixed: value as-is. Not capped at the subtotal, so the sale total can go
    negative; kept that way until the business rule is confirmed.
    """
    if discount is None:
        return ZERO
    if discount.type == "percentage":
        return percent_of(subtotal, discount.value)
    return quantize(discount.value)


# ---------------------------------------------------------------------------
# Taxes
# ---------------------------------------------------------------------------

def list_taxes(session: Session, active_only: bool = False) -> list[dict]:
    query = session.query(Tax)
    if active_only:
        query = query.filter(Tax.is_active.is_(True))
    return [t.to_dict() for t in query.order_by(Tax.id.asc()).all()]


def create_tax(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Tax, payload=payload, policy=TAX_POLICY, partial=False)
    enforce_rules_tax(patch)
    with scoped_transaction(session):
        tax = Tax(**patch)
        session.add(tax)
        session.flush()
        result = tax.to_dict()
    return result


def update_tax(session: Session, tax_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Tax, payload=payload, policy=TAX_POLICY, partial=True)
    enforce_rules_tax(patch)
    with scoped_transaction(session):
        tax = session.get(Tax, tax_id)
        if tax is None:
            raise NotFoundError(f"Tax with id {tax_id} not found", kind="tax not found",
                                details={"tax_id": tax_id})
        for k, v in patch.items():
            setattr(tax, k, v)
        tax.updated_at = utcnow()
        session.flush()
        result = tax.to_dict()
    return result


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------

def list_discounts(session: Session, active_only: bool = False) -> list[dict]:
    query = session.query(Discount)
    if active_only:
        query = query.filter(Discount.is_active.is_(True))
    return [d.to_dict() for d in query.order_by(Discount.id.asc()).all()]


def create_discount(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=False)
    enforce_rules_discount(patch)
    with scoped_transaction(session):
        discount = Discount(**patch)
        session.add(discount)
        session.flush()
        result = discount.to_dict()
    return result


def update_discount(session: Session, discount_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=True)
    with scoped_transaction(session):
        discount = session.get(Discount, discount_id)
        if discount is None:
            raise NotFoundError(f"Discount with id {discount_id} not found", kind="discount not found",
                                details={"discount_id": discount_id})
        # Check against the stored value too: switching a fixed $150 discount
        # to percentage must fail.
        enforce_rules_discount({"value": discount.value, **patch}, discount.type)
        for k, v in patch.items():
            setattr(discount, k, v)
        discount.updated_at = utcnow()
        session.flush()
        result = discount.to_dict()
    return result
