# Overview: Flask API routes for product categories.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import current_pos
from ..validation import ConflictError, ValidationError

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    categories = current_pos().catalog.list_categories()
    return jsonify({"items": [c.to_dict() for c in categories], "count": len(categories)})


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        category = current_pos().catalog.create_category(payload)
    except ValidationError as e:
        return jsonify({"error": str(e), "fields": e.fields}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(category.to_dict()), 201


@categories_bp.delete("/<category_id>")
def delete_category_route(category_id: str):
    """Products that reference the category keep their reference."""
    if not current_pos().catalog.delete_category(category_id):
        return jsonify({"error": "Category not found"}), 404
    return jsonify({"deleted": True, "id": category_id})
