# backend/pocketpos/routes/system.py
"""
System health endpoint.

Reports whether the configured storage backend can be read.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import current_pos
from ..repositories import StorageError
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_storage_health() -> dict:
    start_time = time.time()
    pos = current_pos()
    try:
        product_count = len(pos.storage.products.list_all())
        sale_count = len(pos.storage.sales.list_all())
    except (StorageError, SQLAlchemyError) as e:
        current_app.logger.exception("Storage health check failed")
        return {"status": "unhealthy", "backend": pos.storage.name, "error": str(e)}

    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "status": "healthy",
        "backend": pos.storage.name,
        "latency_ms": round(elapsed_ms, 2),
        "details": {"products": product_count, "transactions": sale_count},
    }


@system_bp.get("/health")
def health():
    storage = check_storage_health()
    healthy = storage["status"] == "healthy"
    body = {
        "status": "ok" if healthy else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "storage": storage,
    }
    return jsonify(body), 200 if healthy else 503


@system_bp.app_errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found"}), 404


@system_bp.app_errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@system_bp.app_errorhandler(413)
def payload_too_large(e):
    return jsonify({"error": "File too large"}), 413


@system_bp.app_errorhandler(500)
def internal_error(e):
    return jsonify({"error": "Internal server error"}), 500
