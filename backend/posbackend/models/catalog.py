from __future__ import annotations

from ..extensions import db
from ..money import MoneyType, to_number
from ..time_utils import to_utc_z, utcnow


class Category(db.Model):
    """Product grouping. Cannot be deleted while any product points at it."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Catalog item with on-hand stock.

    INVARIANT: stock_quantity never goes negative. Sales decrement it inside
    the sale transaction; the CHECK constraint backs that up at storage level.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonnegative"),
        db.Index("ix_products_category_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Catalog price; sales capture their own unit_price per line
    price = db.Column(MoneyType(), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    sku = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": to_number(self.price),
            "category_id": self.category_id,
            "stock_quantity": self.stock_quantity,
            "sku": self.sku,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
