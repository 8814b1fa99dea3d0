"""
Sale Transaction Engine.

create_sale validates a multi-line purchase against live stock, prices it
(subtotal, tax, discount, total), then writes the sale, its items and the
stock decrements as one transaction. Nothing is written unless every check
passes; a failure after the first write rolls all of them back.

Stock is checked against the snapshot loaded at the start of the request.
There is no row lock or version check, so two concurrent sales on the same
product rely on the database's isolation level alone.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models import Sale, SaleItem, Staff
from ..money import ZERO, line_total, quantize
from ..time_utils import parse_iso_datetime
from ..validation import SaleRequest, validate_sale_request
from . import catalog_service, pricing_service
from .transaction import scoped_transaction


def _load_products(session: Session, request: SaleRequest) -> dict:
    """Batch-load every referenced product; fail listing the missing ids."""
    requested_ids = list(dict.fromkeys(item.product_id for item in request.items))
    products = catalog_service.find_products_by_ids(session, requested_ids)
    by_id = {p.id: p for p in products}

    missing = [pid for pid in requested_ids if pid not in by_id]
    if missing:
        raise NotFoundError(
            f"Products not found: {', '.join(str(pid) for pid in missing)}",
            kind="products not found",
            details={"missing_ids": missing},
        )
    return by_id


def _check_stock(request: SaleRequest, products: dict) -> None:
    """
    Walk items in request order against the snapshot stock.

    Lines for the same product accumulate, so the sum of a product's lines
    can never exceed what was on hand when the request started.
    """
    required: dict[int, int] = {}
    for item in request.items:
        product = products[item.product_id]
        required[item.product_id] = required.get(item.product_id, 0) + item.quantity
        if required[item.product_id] > product.stock_quantity:
            raise ValidationError(
                f'Insufficient stock for product "{product.name}". '
                f"Available: {product.stock_quantity}, Required: {required[item.product_id]}",
                kind="insufficient stock",
                details={
                    "product_id": product.id,
                    "product_name": product.name,
                    "available": product.stock_quantity,
                    "required": required[item.product_id],
                },
            )


def _resolve_tax(session: Session, tax_id: int | None):
    if tax_id is None:
        return None
    tax = pricing_service.find_active_tax_by_id(session, tax_id)
    if tax is None:
        raise NotFoundError(
            f"Active tax with ID {tax_id} not found",
            kind="tax not found or inactive",
            details={"tax_id": tax_id},
        )
    return tax


def _resolve_discount(session: Session, discount_id: int | None):
    if discount_id is None:
        return None
    discount = pricing_service.find_active_discount_by_id(session, discount_id)
    if discount is None:
        raise NotFoundError(
            f"Active discount with ID {discount_id} not found",
            kind="discount not found or inactive",
            details={"discount_id": discount_id},
        )
    return discount


def create_sale(session: Session, payload) -> dict:
    """
    createSale: validate, price, persist, decrement stock.

    Returns the persisted sale (numeric fields as numbers) with its items.
    Raises NotFoundError / ValidationError before any write, StorageError if
    persistence fails midway (after rolling everything back).
    """
    request = validate_sale_request(payload)

    with scoped_transaction(session):
        # 1. Existence + stock, against one snapshot
        products = _load_products(session, request)
        _check_stock(request, products)

        if session.get(Staff, request.staff_id) is None:
            raise NotFoundError(
                f"Staff member with ID {request.staff_id} not found",
                kind="staff not found",
                details={"staff_id": request.staff_id},
            )

        # 2. Subtotal from request prices (price at time of sale)
        line_totals = [line_total(item.unit_price, item.quantity) for item in request.items]
        subtotal = quantize(sum(line_totals, ZERO))

        # 3-4. Modifiers
        tax = _resolve_tax(session, request.tax_id)
        discount = _resolve_discount(session, request.discount_id)
        tax_amount = pricing_service.compute_tax_amount(subtotal, tax)
        discount_amount = pricing_service.compute_discount_amount(subtotal, discount)

        # 5. Total
        total_amount = quantize(subtotal + tax_amount - discount_amount)

        # 6. Persist header, lines, stock
        sale = Sale(
            staff_id=request.staff_id,
            subtotal=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total_amount,
            payment_method=request.payment_method,
            status="completed",
        )
        session.add(sale)
        session.flush()

        for item, total_price in zip(request.items, line_totals):
            session.add(SaleItem(
                sale_id=sale.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=total_price,
            ))

        for item in request.items:
            catalog_service.decrement_stock(session, item.product_id, item.quantity)

        session.flush()
        sale_id = sale.id

    # 7. Reload after commit so the response reflects what was stored
    return get_sale(session, sale_id)


def get_sale(session: Session, sale_id: int) -> dict:
    sale = session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError(f"Sale with ID {sale_id} not found", kind="sale not found",
                            details={"sale_id": sale_id})
    return sale.to_dict(include_items=True)


def list_sales(
    session: Session,
    *,
    staff_id: int | None = None,
    start_date: str | datetime | None = None,
    end_date: str | datetime | None = None,
) -> list[dict]:
    """Newest first. Optional staff filter and inclusive created_at range."""
    query = session.query(Sale)
    if staff_id is not None:
        query = query.filter(Sale.staff_id == staff_id)

    try:
        start_dt = parse_iso_datetime(start_date)
        end_dt = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("start_date and end_date must be ISO-8601 datetimes", kind="invalid field",
                              details={"field": "start_date/end_date"})
    if start_dt is not None:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt is not None:
        query = query.filter(Sale.created_at <= end_dt)

    return [s.to_dict() for s in query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()]
