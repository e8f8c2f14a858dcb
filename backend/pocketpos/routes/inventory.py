# Overview: Flask API routes for the inventory movement log.

from flask import Blueprint, jsonify, request

from ..extensions import current_pos

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/movements")
def list_movements():
    """
    Stock movements, newest first.

    Query params:
    - product_id: str (optional)
    - limit: int (optional, default 100, max 500)
    """
    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, 500))
    movements = current_pos().catalog.list_movements(
        product_id=request.args.get("product_id"),
        limit=limit,
    )
    return jsonify({"items": [m.to_dict() for m in movements], "count": len(movements)})
