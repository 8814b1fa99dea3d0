from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .money import MAX_MONEY, HUNDRED, ZERO, FixedPointType, to_decimal, quantize
from .models import PAYMENT_METHODS
from .time_utils import parse_iso_datetime

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _invalid(message: str, field_name: str) -> ValidationError:
    return ValidationError(message, kind="invalid field", details={"field": field_name})


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: enumerated string columns and their allowed values
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field_name: str) -> int:
    """Strict integer coercion: rejects bools, floats and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise _invalid(f"{field_name} must be an integer", field_name)
        if 'e' in stripped.lower():
            raise _invalid(f"{field_name} must be a plain integer (scientific notation not allowed)", field_name)
        if '.' in stripped:
            raise _invalid(f"{field_name} must be an integer (no decimals)", field_name)
        try:
            return int(stripped)
        except ValueError:
            raise _invalid(f"{field_name} must be an integer", field_name)
    if isinstance(value, float):
        raise _invalid(f"{field_name} must be an integer, not a decimal", field_name)
    raise _invalid(f"{field_name} must be an integer", field_name)


def coerce_column_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Money / rate columns: parse + round half-up to two places
    if isinstance(coltype, FixedPointType):
        return quantize(to_decimal(value, col.key))

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise _invalid(f"{col.key} must be a boolean", col.key)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        try:
            dt = parse_iso_datetime(value)
        except (TypeError, ValueError):
            raise _invalid(f"{col.key} must be an ISO-8601 datetime", col.key)
        if dt is None:
            raise _invalid(f"{col.key} must be an ISO-8601 datetime", col.key)
        return dt

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise _invalid(f"{col.key} must be a string", col.key)
        return value.strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields) and enumerated choices
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                kind="missing fields",
                details={"fields": missing},
            )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise _invalid(f"Field not allowed: {k}", k)
        if k not in cols:
            raise _invalid(f"Unknown field: {k}", k)

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise _invalid(f"{k} cannot be null", k)
            patch[k] = None
            continue

        val = coerce_column_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            raise _invalid(f"{k} cannot be blank", k)

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise _invalid(f"{k} exceeds max length {col.type.length}", k)

        allowed = policy.choices.get(k)
        if allowed is not None and val not in allowed:
            raise _invalid(f"{k} must be one of: {', '.join(allowed)}", k)

        patch[k] = val

    return patch


def _check_money_range(value: Decimal, field_name: str, *, allow_zero: bool = False) -> None:
    if value < ZERO or (value == ZERO and not allow_zero):
        raise _invalid(f"{field_name} must be {'>= 0' if allow_zero else '> 0'}", field_name)
    if value > MAX_MONEY:
        raise _invalid(f"{field_name} cannot exceed {MAX_MONEY}", field_name)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("price") is not None:
        _check_money_range(patch["price"], "price")
    if patch.get("stock_quantity") is not None and patch["stock_quantity"] < 0:
        raise _invalid("stock_quantity must be >= 0", "stock_quantity")


def enforce_rules_staff(patch: dict) -> None:
    email = patch.get("email")
    if email is not None and not EMAIL_RE.match(email):
        raise _invalid("email must be a valid email address", "email")


def enforce_rules_printer(patch: dict) -> None:
    port = patch.get("port")
    if port is not None and not (1 <= port <= 65535):
        raise _invalid("port must be between 1 and 65535", "port")


def enforce_rules_tax(patch: dict) -> None:
    rate = patch.get("rate")
    if rate is not None and not (ZERO <= rate <= HUNDRED):
        raise _invalid("rate must be between 0 and 100", "rate")


def enforce_rules_discount(patch: dict, discount_type: str | None = None) -> None:
    value = patch.get("value")
    if value is None:
        return
    _check_money_range(value, "value")
    if (patch.get("type") or discount_type) == "percentage" and value > HUNDRED:
        raise _invalid("Percentage discount value cannot exceed 100", "value")


# ---------------------------------------------------------------------------
# Sale request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SaleItemRequest:
    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class SaleRequest:
    staff_id: int
    items: list[SaleItemRequest]
    payment_method: str
    tax_id: int | None = None
    discount_id: int | None = None


def validate_sale_request(payload: Any) -> SaleRequest:
    """
    Shape check for createSale input:
    {staff_id, items: [{product_id, quantity, unit_price}], tax_id?, discount_id?, payment_method}
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = sorted(f for f in ("staff_id", "items", "payment_method") if payload.get(f) is None)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            kind="missing fields",
            details={"fields": missing},
        )

    unknown = sorted(set(payload) - {"staff_id", "items", "tax_id", "discount_id", "payment_method"})
    if unknown:
        raise _invalid(f"Field not allowed: {unknown[0]}", unknown[0])

    staff_id = coerce_int(payload["staff_id"], "staff_id")

    payment_method = payload["payment_method"]
    if payment_method not in PAYMENT_METHODS:
        raise _invalid(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}", "payment_method")

    raw_items = payload["items"]
    if not isinstance(raw_items, list) or not raw_items:
        raise _invalid("items must be a non-empty list", "items")

    items = []
    for index, raw in enumerate(raw_items):
        where = f"items[{index}]"
        if not isinstance(raw, dict):
            raise _invalid(f"{where} must be an object", where)
        for key in ("product_id", "quantity", "unit_price"):
            if raw.get(key) is None:
                raise _invalid(f"{where}.{key} is required", f"{where}.{key}")

        quantity = coerce_int(raw["quantity"], f"{where}.quantity")
        if quantity <= 0:
            raise _invalid(f"{where}.quantity must be > 0", f"{where}.quantity")

        unit_price = quantize(to_decimal(raw["unit_price"], f"{where}.unit_price"))
        _check_money_range(unit_price, f"{where}.unit_price")

        items.append(SaleItemRequest(
            product_id=coerce_int(raw["product_id"], f"{where}.product_id"),
            quantity=quantity,
            unit_price=unit_price,
        ))

    tax_id = payload.get("tax_id")
    discount_id = payload.get("discount_id")

    return SaleRequest(
        staff_id=staff_id,
        items=items,
        payment_method=payment_method,
        tax_id=coerce_int(tax_id, "tax_id") if tax_id is not None else None,
        discount_id=coerce_int(discount_id, "discount_id") if discount_id is not None else None,
    )
