# Overview: Flask API routes for full-dataset backup and restore.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..errors import PosError
from ..services import backup_service

backup_bp = Blueprint("backup", __name__, url_prefix="/api/backup")


@backup_bp.get("")
def create_backup_route():
    """Snapshot every table. Always succeeds barring storage failure."""
    try:
        snapshot = backup_service.create_backup(db.session)
    except Exception:
        current_app.logger.exception("Failed to create backup")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(snapshot)


@backup_bp.post("/restore")
def restore_backup_route():
    """
    Replace the whole dataset with a snapshot produced by GET /api/backup.

    The previous dataset is kept if anything about the restore fails.
    """
    snapshot = request.get_json(silent=True)
    try:
        result = backup_service.restore_backup(db.session, snapshot)
    except PosError as e:
        current_app.logger.warning("Backup restore rejected (%s): %s", e.kind, e.message)
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to restore backup")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(result["message"])
    return jsonify(result), 200
