# Overview: Flask API routes for the shop profile settings.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import current_pos
from ..validation import ValidationError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings_route():
    try:
        settings = current_pos().settings.get_settings()
    except Exception:
        current_app.logger.exception("Failed to load settings")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(settings.to_dict())


@settings_bp.put("")
def update_settings_route():
    """Request body: any of {"shop_name", "shop_address", "tin"}."""
    payload = request.get_json(silent=True) or {}
    try:
        settings = current_pos().settings.update_settings(payload)
    except ValidationError as e:
        return jsonify({"error": str(e), "fields": e.fields}), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(settings.to_dict())
