# Overview: Flask API routes for the printer registry.

from flask import Blueprint, request, jsonify

from ..extensions import db
from ..services import printer_service

printers_bp = Blueprint("printers", __name__, url_prefix="/api/printers")


@printers_bp.get("")
def list_printers():
    active_only = request.args.get("active_only", "false").lower() == "true"
    return jsonify(printer_service.list_printers(db.session, active_only=active_only))


@printers_bp.post("")
def create_printer():
    payload = request.get_json(silent=True) or {}
    return jsonify(printer_service.create_printer(db.session, payload)), 201
