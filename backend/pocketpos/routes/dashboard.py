# Overview: Flask API route for the dashboard statistics.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import current_pos
from ..services import metrics_service
from ..time_utils import parse_iso_date

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
def get_dashboard():
    """
    Today's gross/net/VAT, hourly velocity and low-stock list.

    Query params:
    - date: YYYY-MM-DD (optional) - shop-local calendar day, defaults to today
    """
    try:
        as_of = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD", "fields": {"date": "Invalid date"}}), 400

    pos = current_pos()
    try:
        result = metrics_service.dashboard(
            pos.ledger.all(),
            pos.catalog.list_products(),
            as_of=as_of,
            tz=pos.tz,
            default_threshold=pos.low_stock_threshold,
        )
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)
