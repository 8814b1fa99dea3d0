# Overview: Flask API routes for taxes and discounts.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..services import pricing_service

pricing_bp = Blueprint("pricing", __name__, url_prefix="/api")


def _active_only() -> bool:
    return request.args.get("active_only", "false").lower() == "true"


@pricing_bp.get("/taxes")
def list_taxes():
    return jsonify(pricing_service.list_taxes(db.session, active_only=_active_only()))


@pricing_bp.post("/taxes")
def create_tax():
    payload = request.get_json(silent=True) or {}
    return jsonify(pricing_service.create_tax(db.session, payload)), 201


@pricing_bp.put("/taxes/<int:tax_id>")
def update_tax(tax_id: int):
    payload = request.get_json(silent=True) or {}
    return jsonify(pricing_service.update_tax(db.session, tax_id, payload))


@pricing_bp.get("/discounts")
def list_discounts():
    return jsonify(pricing_service.list_discounts(db.session, active_only=_active_only()))


@pricing_bp.post("/discounts")
def create_discount():
    payload = request.get_json(silent=True) or {}
    return jsonify(pricing_service.create_discount(db.session, payload)), 201


@pricing_bp.put("/discounts/<int:discount_id>")
def update_discount(discount_id: int):
    payload = request.get_json(silent=True) or {}
    return jsonify(pricing_service.update_discount(db.session, discount_id, payload))
