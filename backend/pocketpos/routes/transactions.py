# Overview: Flask API routes for the transaction ledger and receipts.

from flask import Blueprint, Response, current_app, jsonify, request

from ..extensions import current_pos
from ..services.ledger_service import LedgerNotFoundError
from ..services.receipt_service import render_receipt, render_receipt_text
from ..validation import ValidationError, parse_payment_method

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _filters():
    """(search, method) from the query string; method "ALL" means no filter."""
    search = request.args.get("search") or None
    raw_method = request.args.get("method")
    method = None
    if raw_method and raw_method.upper() != "ALL":
        method = parse_payment_method(raw_method)
    return search, method


@transactions_bp.get("")
def list_transactions():
    """
    Completed sales, newest first.

    Query params:
    - search: str (optional) - order number substring
    - method: CASH | QR_PH | CARD | MAYA_TERMINAL | ALL (optional)
    """
    try:
        search, method = _filters()
    except ValidationError as e:
        return jsonify({"error": str(e), "fields": e.fields}), 400

    try:
        ledger = current_pos().ledger
        sales = ledger.query(search=search, method=method)
        summary = ledger.aggregate(search=search, method=method)
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "summary": summary.to_dict(),
    })


@transactions_bp.get("/summary")
def transactions_summary():
    try:
        search, method = _filters()
        summary = current_pos().ledger.aggregate(search=search, method=method)
    except ValidationError as e:
        return jsonify({"error": str(e), "fields": e.fields}), 400
    except Exception:
        current_app.logger.exception("Failed to summarize transactions")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(summary.to_dict())


@transactions_bp.get("/<sale_id>")
def get_transaction(sale_id: str):
    try:
        sale = current_pos().ledger.get(sale_id)
    except LedgerNotFoundError:
        return jsonify({"error": "Receipt not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to load transaction")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(sale.to_dict())


@transactions_bp.get("/<sale_id>/receipt")
def get_receipt(sale_id: str):
    """
    Receipt for a completed sale.

    Query params:
    - format: "json" (default) or "text" for the fixed-width print layout
    """
    pos = current_pos()
    try:
        sale = pos.ledger.get(sale_id)
        settings = pos.settings.get_settings()
    except LedgerNotFoundError:
        return jsonify({"error": "Receipt not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to load receipt")
        return jsonify({"error": "Internal server error"}), 500

    if request.args.get("format", "json").lower() == "text":
        return Response(render_receipt_text(sale, settings, pos.tz), mimetype="text/plain")
    return jsonify(render_receipt(sale, settings, pos.tz))
