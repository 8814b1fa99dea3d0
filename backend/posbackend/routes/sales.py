# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/posbackend/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..errors import PosError
from ..services import sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Create a completed sale.

    Body: {staff_id, items: [{product_id, quantity, unit_price}],
           tax_id?, discount_id?, payment_method}
    """
    payload = request.get_json(silent=True)
    try:
        sale = sales_service.create_sale(db.session, payload)
    except PosError as e:
        current_app.logger.warning("Sale rejected (%s): %s", e.kind, e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale %s completed: %d item(s), total %.2f",
        sale["id"], len(sale["items"]), sale["total_amount"],
    )
    return jsonify(sale), 201


@sales_bp.get("")
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - staff_id: int (optional)
    - start_date / end_date: ISO-8601 (optional, inclusive)
    """
    sales = sales_service.list_sales(
        db.session,
        staff_id=request.args.get("staff_id", type=int),
        start_date=request.args.get("start_date"),
        end_date=request.args.get("end_date"),
    )
    return jsonify(sales)


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Get sale with items."""
    return jsonify(sales_service.get_sale(db.session, sale_id))
