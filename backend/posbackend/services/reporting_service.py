# Overview: Sales report aggregation over completed sales.

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Product, Sale, SaleItem
from ..money import ZERO, quantize, to_decimal, to_number
from ..time_utils import parse_iso_datetime

DEFAULT_TOP_PRODUCTS = 10


def _parse_range(start: str | None, end: str | None):
    try:
        start_dt = parse_iso_datetime(start)
        end_dt = parse_iso_datetime(end)
    except ValueError:
        start_dt = end_dt = None
    if start_dt is None or end_dt is None:
        raise ValidationError(
            "start_date and end_date must be ISO-8601 datetimes",
            kind="invalid field",
            details={"field": "start_date/end_date"},
        )
    if start_dt > end_dt:
        raise ValidationError("start_date must not be after end_date", kind="invalid field",
                              details={"field": "start_date"})
    return start_dt, end_dt


def generate_sales_report(
    session: Session,
    *,
    start_date: str,
    end_date: str,
    staff_id: int | None = None,
    category_id: int | None = None,
    top_limit: int = DEFAULT_TOP_PRODUCTS,
) -> dict:
    """
    Totals, top products by revenue and a per-day breakdown for completed
    sales created within [start_date, end_date].

    With category_id, only sales containing at least one product from that
    category are counted (each sale once), and top products are limited to
    the category.
    """
    start_dt, end_dt = _parse_range(start_date, end_date)

    sale_filters = [
        Sale.status == "completed",
        Sale.created_at >= start_dt,
        Sale.created_at <= end_dt,
    ]
    if staff_id is not None:
        sale_filters.append(Sale.staff_id == staff_id)
    if category_id is not None:
        in_category = (
            select(SaleItem.sale_id)
            .join(Product, Product.id == SaleItem.product_id)
            .where(Product.category_id == category_id)
        )
        sale_filters.append(Sale.id.in_(in_category))

    totals = session.query(
        func.sum(Sale.total_amount).label("total_sales"),
        func.count(Sale.id).label("total_transactions"),
    ).filter(*sale_filters).one()

    total_sales = quantize(to_decimal(totals.total_sales)) if totals.total_sales is not None else ZERO
    total_transactions = int(totals.total_transactions or 0)
    average = quantize(total_sales / total_transactions) if total_transactions else ZERO

    top_query = (
        session.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.sum(SaleItem.quantity).label("quantity_sold"),
            func.sum(SaleItem.total_price).label("total_revenue"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(*sale_filters)
    )
    if category_id is not None:
        top_query = top_query.filter(Product.category_id == category_id)
    top_rows = (
        top_query.group_by(Product.id, Product.name)
        .order_by(func.sum(SaleItem.total_price).desc(), Product.id.asc())
        .limit(top_limit)
        .all()
    )

    day = func.date(Sale.created_at)
    daily_rows = (
        session.query(
            day.label("date"),
            func.count(Sale.id).label("sales_count"),
            func.sum(Sale.total_amount).label("total_amount"),
        )
        .filter(*sale_filters)
        .group_by(day)
        .order_by(day)
        .all()
    )

    return {
        "total_sales": to_number(total_sales),
        "total_transactions": total_transactions,
        "average_transaction": to_number(average),
        "top_products": [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "quantity_sold": int(row.quantity_sold or 0),
                "total_revenue": to_number(row.total_revenue or ZERO),
            }
            for row in top_rows
        ],
        "daily_breakdown": [
            {
                "date": str(row.date),
                "sales_count": int(row.sales_count or 0),
                "total_amount": to_number(row.total_amount or ZERO),
            }
            for row in daily_rows
        ],
    }
