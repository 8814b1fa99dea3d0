# Overview: Flask API routes for reporting.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
def sales_report():
    """
    Sales report over completed sales.

    Query params:
    - start_date, end_date: ISO-8601 (required)
    - staff_id: int (optional)
    - category_id: int (optional)
    """
    report = reporting_service.generate_sales_report(
        db.session,
        start_date=request.args.get("start_date"),
        end_date=request.args.get("end_date"),
        staff_id=request.args.get("staff_id", type=int),
        category_id=request.args.get("category_id", type=int),
        top_limit=current_app.config.get("SALES_REPORT_TOP_PRODUCTS", reporting_service.DEFAULT_TOP_PRODUCTS),
    )
    return jsonify(report)
