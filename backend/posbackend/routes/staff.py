# Overview: Flask API routes for staff accounts.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..services import staff_service

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
def list_staff():
    active_only = request.args.get("active_only", "false").lower() == "true"
    return jsonify(staff_service.list_staff(db.session, active_only=active_only))


@staff_bp.post("")
def create_staff():
    payload = request.get_json(silent=True) or {}
    return jsonify(staff_service.create_staff(db.session, payload)), 201


@staff_bp.get("/<int:staff_id>")
def get_staff(staff_id: int):
    return jsonify(staff_service.get_staff(db.session, staff_id))


@staff_bp.put("/<int:staff_id>")
def update_staff(staff_id: int):
    payload = request.get_json(silent=True) or {}
    return jsonify(staff_service.update_staff(db.session, staff_id, payload))
