# Overview: Flask API routes for categories, products and stock; parses input and returns JSON responses.

# backend/posbackend/routes/catalog.py
"""
Catalog routes.

Domain errors (NotFoundError, DependencyError, ...) propagate to the
application error handler, which renders them as JSON with their status.
"""
from flask import Blueprint, request, jsonify

from ..extensions import db
from ..services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/categories")
def list_categories():
    return jsonify(catalog_service.list_categories(db.session))


@catalog_bp.post("/categories")
def create_category():
    payload = request.get_json(silent=True) or {}
    return jsonify(catalog_service.create_category(db.session, payload)), 201


@catalog_bp.get("/categories/<int:category_id>")
def get_category(category_id: int):
    return jsonify(catalog_service.get_category(db.session, category_id))


@catalog_bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    payload = request.get_json(silent=True) or {}
    return jsonify(catalog_service.update_category(db.session, category_id, payload))


@catalog_bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    return jsonify(catalog_service.delete_category(db.session, category_id))


@catalog_bp.get("/products")
def list_products():
    """
    List products ordered by name.

    Query params:
    - category_id: int (optional) - only products in this category
    """
    category_id = request.args.get("category_id", type=int)
    return jsonify(catalog_service.list_products(db.session, category_id=category_id))


@catalog_bp.post("/products")
def create_product():
    payload = request.get_json(silent=True) or {}
    return jsonify(catalog_service.create_product(db.session, payload)), 201


@catalog_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    return jsonify(catalog_service.get_product(db.session, product_id))


@catalog_bp.put("/products/<int:product_id>")
def update_product(product_id: int):
    payload = request.get_json(silent=True) or {}
    return jsonify(catalog_service.update_product(db.session, product_id, payload))


@catalog_bp.post("/products/<int:product_id>/stock")
def update_stock(product_id: int):
    """
    Adjust on-hand stock.

    Body: {"quantity_change": int, "operation": "add" | "subtract" | "set"}
    """
    payload = request.get_json(silent=True) or {}
    return jsonify(catalog_service.update_stock(db.session, product_id, payload))


@catalog_bp.delete("/products/<int:product_id>")
def delete_product(product_id: int):
    return jsonify(catalog_service.delete_product(db.session, product_id))
