from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

STAFF_ROLES = ("admin", "cashier", "manager")


class Staff(db.Model):
    """Store employee who rings up sales. Email is unique across staff."""
    __tablename__ = "staff"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_staff_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False)  # admin, cashier, manager
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
