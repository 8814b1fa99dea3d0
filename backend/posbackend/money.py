# Overview: Fixed-precision money and rate values plus their SQLAlchemy column types.
"""
Money and rate helpers.

All currency amounts and percentage rates are ``Decimal`` values with two
decimal places, rounded half-up. Intermediate arithmetic may carry more
places; anything persisted or returned goes through ``quantize``.

Storage columns use ``MoneyType`` (NUMERIC(10,2)) and ``RateType``
(NUMERIC(5,2)). Both parse incoming values and round on the way in and hand
back quantized ``Decimal`` on the way out, so no caller converts by hand.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy.types import Numeric, TypeDecorator

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Largest values representable by NUMERIC(10,2) and NUMERIC(5,2)
MAX_MONEY = Decimal("99999999.99")
MAX_RATE = Decimal("999.99")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str = "amount") -> Decimal:
    """Parse a JSON/storage value into an unrounded Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", kind="invalid field", details={"field": field})

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        # repr() gives the shortest round-tripping form: 0.1 -> "0.1"
        d = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", kind="invalid field", details={"field": field})
    else:
        raise ValidationError(f"{field} must be a number", kind="invalid field", details={"field": field})

    if not d.is_finite():
        raise ValidationError(f"{field} must be a finite number", kind="invalid field", details={"field": field})
    return d


def to_money(value, field: str = "amount") -> Decimal:
    return quantize(to_decimal(value, field))


def to_rate(value, field: str = "rate") -> Decimal:
    return quantize(to_decimal(value, field))


def to_number(value) -> float | None:
    """Storage value -> plain JSON number (two places)."""
    if value is None:
        return None
    return float(quantize(to_decimal(value)))


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return quantize(unit_price * quantity)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return quantize(amount * rate / HUNDRED)


class FixedPointType(TypeDecorator):
    """NUMERIC(p,2) column that always speaks quantized Decimal to Python."""

    impl = Numeric
    cache_ok = True
    precision = 10

    def __init__(self):
        # asdecimal=False keeps the driver from warning on SQLite; the
        # Decimal conversion happens in process_result_value instead.
        super().__init__(precision=self.precision, scale=2, asdecimal=False)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return quantize(to_decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return quantize(to_decimal(value))


class MoneyType(FixedPointType):
    cache_ok = True
    precision = 10


class RateType(FixedPointType):
    cache_ok = True
    precision = 5
