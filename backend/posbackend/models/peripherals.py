from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

PRINTER_TYPES = ("thermal", "laser", "inkjet")


class Printer(db.Model):
    """Receipt/report printer registered on the network."""
    __tablename__ = "printers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    ip_address = db.Column(db.String(64), nullable=False)
    port = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    printer_type = db.Column(db.String(16), nullable=False)  # thermal, laser, inkjet

    created_at = db.Column(db.DateTime(), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "ip_address": self.ip_address,
            "port": self.port,
            "is_active": self.is_active,
            "printer_type": self.printer_type,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
