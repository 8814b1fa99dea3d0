# backend/posbackend/services/catalog_service.py
"""
Catalog Store: categories, products and on-hand stock.

Every function takes the SQLAlchemy session explicitly. Writers that stand
alone (CRUD) commit through scoped_transaction; the two collaborator
functions used by the sale engine (find_products_by_ids, decrement_stock)
never commit so they can run inside the caller's transaction.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from ..errors import DependencyError, NotFoundError, ValidationError
from ..models import Category, Product, SaleItem
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    coerce_int,
)
from .transaction import scoped_transaction

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "category_id", "stock_quantity", "sku"},
    required_on_create={"name", "price", "category_id", "stock_quantity"},
)

STOCK_OPERATIONS = ("add", "subtract", "set")


def _apply_patch(obj, patch: dict) -> None:
    for k, v in patch.items():
        setattr(obj, k, v)


# ---------------------------------------------------------------------------
# Collaborator interface for the sale engine
# ---------------------------------------------------------------------------

def find_products_by_ids(session: Session, ids) -> list[Product]:
    """One batch lookup; absent ids are simply missing from the result."""
    ids = list(ids)
    if not ids:
        return []
    return session.query(Product).filter(Product.id.in_(ids)).all()


def decrement_stock(session: Session, product_id: int, amount: int) -> Product:
    """
    Reduce on-hand stock by ``amount`` and refresh updated_at.

    Does not commit. Uses the identity map, so a product already loaded in
    this session (the sale engine's snapshot) is decremented in place.
    """
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product with id {product_id} not found", kind="product not found",
                            details={"product_id": product_id})
    if product.stock_quantity - amount < 0:
        raise ValidationError(
            f'Insufficient stock for product "{product.name}". '
            f"Available: {product.stock_quantity}, Required: {amount}",
            kind="insufficient stock",
            details={
                "product_id": product.id,
                "product_name": product.name,
                "available": product.stock_quantity,
                "required": amount,
            },
        )
    product.stock_quantity -= amount
    product.updated_at = utcnow()
    return product


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def _get_category_or_404(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise NotFoundError(f"Category with id {category_id} not found", kind="category not found",
                            details={"category_id": category_id})
    return category


def list_categories(session: Session) -> list[dict]:
    return [c.to_dict() for c in session.query(Category).order_by(Category.id.asc()).all()]


def get_category(session: Session, category_id: int) -> dict:
    return _get_category_or_404(session, category_id).to_dict()


def create_category(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    with scoped_transaction(session):
        category = Category()
        _apply_patch(category, patch)
        session.add(category)
        session.flush()
        result = category.to_dict()
    return result


def update_category(session: Session, category_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    with scoped_transaction(session):
        category = _get_category_or_404(session, category_id)
        _apply_patch(category, patch)
        category.updated_at = utcnow()
        session.flush()
        result = category.to_dict()
    return result


def delete_category(session: Session, category_id: int) -> dict:
    with scoped_transaction(session):
        category = _get_category_or_404(session, category_id)
        has_products = session.query(Product.id).filter(Product.category_id == category_id).first()
        if has_products:
            raise DependencyError(
                "Cannot delete category with associated products",
                kind="category has products",
                details={"category_id": category_id},
            )
        session.delete(category)
    return {"success": True}


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def _get_product_or_404(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product with id {product_id} not found", kind="product not found",
                            details={"product_id": product_id})
    return product


def list_products(session: Session, category_id: int | None = None) -> list[dict]:
    query = session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return [p.to_dict() for p in query.order_by(Product.name.asc(), Product.id.asc()).all()]


def get_product(session: Session, product_id: int) -> dict:
    return _get_product_or_404(session, product_id).to_dict()


def create_product(session: Session, payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    with scoped_transaction(session):
        _get_category_or_404(session, patch["category_id"])
        product = Product()
        _apply_patch(product, patch)
        session.add(product)
        session.flush()
        result = product.to_dict()
    return result


def update_product(session: Session, product_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    with scoped_transaction(session):
        product = _get_product_or_404(session, product_id)
        if patch.get("category_id") is not None:
            _get_category_or_404(session, patch["category_id"])
        _apply_patch(product, patch)
        product.updated_at = utcnow()
        session.flush()
        result = product.to_dict()
    return result


def update_stock(session: Session, product_id: int, payload: dict) -> dict:
    """
    Manual stock adjustment: {quantity_change, operation: add|subtract|set}.
    The resulting stock must stay >= 0.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    operation = payload.get("operation")
    if operation not in STOCK_OPERATIONS:
        raise ValidationError(
            f"operation must be one of: {', '.join(STOCK_OPERATIONS)}",
            kind="invalid field",
            details={"field": "operation"},
        )
    if payload.get("quantity_change") is None:
        raise ValidationError("quantity_change is required", kind="missing fields",
                              details={"fields": ["quantity_change"]})
    change = coerce_int(payload["quantity_change"], "quantity_change")

    with scoped_transaction(session):
        product = _get_product_or_404(session, product_id)
        if operation == "set":
            new_quantity = change
        elif operation == "add":
            new_quantity = product.stock_quantity + change
        else:
            new_quantity = product.stock_quantity - change

        if new_quantity < 0:
            raise ValidationError(
                "Stock quantity cannot be negative",
                kind="negative stock",
                details={"product_id": product_id, "available": product.stock_quantity,
                         "requested": new_quantity},
            )

        product.stock_quantity = new_quantity
        product.updated_at = utcnow()
        session.flush()
        result = product.to_dict()
    return result


def delete_product(session: Session, product_id: int) -> dict:
    with scoped_transaction(session):
        product = _get_product_or_404(session, product_id)
        referenced = session.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
        if referenced:
            raise DependencyError(
                f"Cannot delete product with id {product_id} as it is referenced in existing sales",
                kind="product has sales",
                details={"product_id": product_id},
            )
        session.delete(product)
    return {"success": True}
