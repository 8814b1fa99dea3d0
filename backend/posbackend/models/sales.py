from __future__ import annotations

from ..extensions import db
from ..money import MoneyType, to_number
from ..time_utils import to_utc_z, utcnow

PAYMENT_METHODS = ("cash", "card", "digital_wallet")
SALE_STATUSES = ("pending", "completed", "cancelled", "refunded")


class Sale(db.Model):
    """
    Sale header.

    subtotal/tax_amount/discount_amount/total_amount are derived once when the
    sale is created (total = subtotal + tax - discount) and never recomputed.
    Lines are written in the same transaction as the header.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)

    subtotal = db.Column(MoneyType(), nullable=False)
    tax_amount = db.Column(MoneyType(), nullable=False, default=0)
    discount_amount = db.Column(MoneyType(), nullable=False, default=0)
    total_amount = db.Column(MoneyType(), nullable=False)

    # Recorded label only; no payment capture happens here
    payment_method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    staff = db.relationship("Staff", backref=db.backref("sales", lazy=True))

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "staff_id": self.staff_id,
            "subtotal": to_number(self.subtotal),
            "tax_amount": to_number(self.tax_amount),
            "discount_amount": to_number(self.discount_amount),
            "total_amount": to_number(self.total_amount),
            "payment_method": self.payment_method,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in sorted(self.items, key=lambda i: i.id)]
        return data


class SaleItem(db.Model):
    """One product line on a sale. unit_price is the price at time of sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(MoneyType(), nullable=False)
    total_price = db.Column(MoneyType(), nullable=False)

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": to_number(self.unit_price),
            "total_price": to_number(self.total_price),
            "created_at": to_utc_z(self.created_at),
        }
