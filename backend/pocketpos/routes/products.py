# Overview: Flask API routes for catalog products; parses input and returns JSON responses.

# backend/pocketpos/routes/products.py
"""
Product management routes (inventory screen).

Form validation errors come back as 400 with a per-field `fields` map so the
inventory form can show them inline.
"""
from flask import Blueprint, current_app, jsonify, request

from ..extensions import current_pos
from ..services.catalog_service import CatalogNotFoundError
from ..services.metrics_service import low_stock
from ..validation import ConflictError, ValidationError, coerce_int, coerce_optional_threshold, coerce_text

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _validation_error(e: ValidationError):
    return jsonify({"error": str(e), "fields": e.fields}), 400


@products_bp.get("")
def list_products():
    """
    List products sorted by name.

    Query params:
    - search: str (optional) - name or SKU substring
    - category: str (optional) - category name, "ALL" for every category
    """
    products = current_pos().catalog.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
    )
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = current_pos().catalog.create_product(payload)
    except ValidationError as e:
        return _validation_error(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(product.to_dict()), 201


@products_bp.get("/low-stock")
def low_stock_route():
    """
    Products at or below their low-stock threshold.

    Query params:
    - threshold: int (optional) - applies one threshold to every product
    """
    pos = current_pos()
    try:
        threshold = coerce_optional_threshold("threshold", request.args.get("threshold"))
    except ValidationError as e:
        return _validation_error(e)
    report = low_stock(
        pos.catalog.list_products(),
        threshold=threshold,
        default_threshold=pos.low_stock_threshold,
    )
    return jsonify(report.to_dict())


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        product = current_pos().catalog.get_product(product_id)
    except CatalogNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict())


@products_bp.put("/<product_id>")
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        product = current_pos().catalog.update_product(product_id, payload)
    except CatalogNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return _validation_error(e)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(product.to_dict())


@products_bp.delete("/<product_id>")
def delete_product_route(product_id: str):
    try:
        deleted = current_pos().catalog.delete_product(product_id)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500
    if not deleted:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"deleted": True, "id": product_id})


@products_bp.post("/<product_id>/stock")
def adjust_stock_route(product_id: str):
    """
    Manual +/- stock action.

    Request body: {"delta": -2, "reason": "Damaged"}
    The resulting stock is clamped at zero.
    """
    payload = request.get_json(silent=True) or {}
    try:
        delta = coerce_int("delta", payload.get("delta"))
        reason = coerce_text("reason", payload.get("reason"))
        product = current_pos().catalog.adjust_stock(product_id, delta, reason)
    except CatalogNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return _validation_error(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(product.to_dict())


@products_bp.put("/<product_id>/image")
def set_image_route(product_id: str):
    """Link an uploaded image (a /uploads/ URL from POST /api/upload), or null to unlink."""
    payload = request.get_json(silent=True) or {}
    image = coerce_text("image", payload.get("image"))
    if image is not None and not image.startswith("/uploads/"):
        return jsonify({"error": "image must be an /uploads/ URL", "fields": {"image": "Invalid path"}}), 400
    try:
        product = current_pos().catalog.set_image(product_id, image)
    except CatalogNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict())
