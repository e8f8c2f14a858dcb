# Overview: Flask API routes for checkout sessions (cart editing, payment flows, finalization).

# backend/pocketpos/routes/checkout.py
"""
Checkout API Routes

One session per checkout terminal (browser tab). Every response carries the
full session snapshot: state, cart, totals and payment progress.

ERROR MAPPING:
- 400: bad input, empty cart, underpayment, unconfirmed payment
- 404: unknown session or product
- 409: illegal state transition, insufficient stock (details list the lines)
- 502: payment gateway handshake error
- 500: storage failure while finalizing (cart is kept; retry is safe)
"""

from typing import Callable

from flask import Blueprint, current_app, jsonify, request

from ..extensions import current_pos
from ..services.cart_service import CartError
from ..services.catalog_service import CatalogNotFoundError
from ..services.checkout_service import (
    CheckoutError,
    CheckoutSessionNotFoundError,
    CheckoutStateError,
    InsufficientStockError,
)
from ..services.payment_gateway import PaymentGatewayError
from ..validation import ValidationError, coerce_int, parse_payment_method

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


def _session_action(session_id: str, action: Callable, failure: str, status: int = 200):
    """Run action(session) and translate checkout errors into HTTP responses."""
    try:
        session = current_pos().sessions.get(session_id)
        action(session)
        return jsonify({"session": session.to_dict()}), status

    except CheckoutSessionNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except CatalogNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (CheckoutStateError, InsufficientStockError) as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except CheckoutError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except CartError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e), "fields": e.fields}), 400
    except PaymentGatewayError as e:
        current_app.logger.warning("Payment gateway error: %s", e)
        return jsonify({"error": str(e)}), 502
    except Exception:
        current_app.logger.exception(failure)
        return jsonify({"error": "Internal server error"}), 500


def _body() -> dict:
    return request.get_json(silent=True) or {}


# =============================================================================
# SESSIONS
# =============================================================================

@checkout_bp.post("/sessions")
def create_session_route():
    session = current_pos().sessions.create()
    return jsonify({"session": session.to_dict()}), 201


@checkout_bp.get("/sessions/<session_id>")
def get_session_route(session_id: str):
    return _session_action(session_id, lambda s: None, "Failed to load checkout session")


@checkout_bp.delete("/sessions/<session_id>")
def discard_session_route(session_id: str):
    if not current_pos().sessions.discard(session_id):
        return jsonify({"error": f"Checkout session {session_id} not found"}), 404
    return jsonify({"deleted": True, "id": session_id})


# =============================================================================
# CART
# =============================================================================

@checkout_bp.post("/sessions/<session_id>/cart/items")
def add_item_route(session_id: str):
    """
    Add a product to the cart.

    Request body: {"product_id": "...", "quantity": 1}
    quantity defaults to 1; the turbo-tap gesture sends 5.
    """
    data = _body()
    product_id = data.get("product_id")
    if not product_id:
        return jsonify({"error": "product_id required", "fields": {"product_id": "Required"}}), 400

    return _session_action(
        session_id,
        lambda s: s.add_item(str(product_id), data.get("quantity", 1)),
        "Failed to add cart item",
    )


@checkout_bp.patch("/sessions/<session_id>/cart/items/<product_id>")
def adjust_item_route(session_id: str, product_id: str):
    """Request body: {"delta": -1}. An entry reaching zero is removed."""
    data = _body()
    return _session_action(
        session_id,
        lambda s: s.adjust_item(product_id, coerce_int("delta", data.get("delta"))),
        "Failed to adjust cart item",
    )


@checkout_bp.delete("/sessions/<session_id>/cart/items/<product_id>")
def remove_item_route(session_id: str, product_id: str):
    return _session_action(session_id, lambda s: s.remove_item(product_id), "Failed to remove cart item")


@checkout_bp.delete("/sessions/<session_id>/cart")
def clear_cart_route(session_id: str):
    return _session_action(session_id, lambda s: s.clear_cart(), "Failed to clear cart")


# =============================================================================
# WORKFLOW
# =============================================================================

@checkout_bp.post("/sessions/<session_id>/begin")
def begin_route(session_id: str):
    return _session_action(session_id, lambda s: s.workflow.begin(), "Failed to begin checkout")


@checkout_bp.post("/sessions/<session_id>/method")
def select_method_route(session_id: str):
    """Request body: {"method": "CASH" | "QR_PH" | "CARD" | "MAYA_TERMINAL"}"""
    data = _body()
    return _session_action(
        session_id,
        lambda s: s.workflow.select_method(parse_payment_method(data.get("method"))),
        "Failed to select payment method",
    )


@checkout_bp.post("/sessions/<session_id>/tender")
def tender_route(session_id: str):
    """Request body: {"amount": 500}"""
    data = _body()
    if data.get("amount") in (None, ""):
        return jsonify({"error": "amount required", "fields": {"amount": "Required"}}), 400
    return _session_action(
        session_id,
        lambda s: s.workflow.tender(data["amount"]),
        "Failed to record tender",
    )


@checkout_bp.post("/sessions/<session_id>/payment-request")
def payment_request_route(session_id: str):
    return _session_action(session_id, lambda s: s.workflow.request_payment(), "Failed to request payment")


@checkout_bp.post("/sessions/<session_id>/confirm")
def confirm_route(session_id: str):
    return _session_action(session_id, lambda s: s.workflow.confirm_received(), "Failed to confirm payment")


@checkout_bp.post("/sessions/<session_id>/terminal-link")
def terminal_link_route(session_id: str):
    """Attempt to pair with the card terminal; a FAILURE status can be retried."""
    return _session_action(session_id, lambda s: s.workflow.link_terminal(), "Failed to link terminal")


@checkout_bp.post("/sessions/<session_id>/complete")
def complete_route(session_id: str):
    """Finalize the sale: decrement stock, append to the ledger, show the receipt."""
    return _session_action(session_id, lambda s: s.workflow.complete(), "Failed to complete sale", status=201)


@checkout_bp.post("/sessions/<session_id>/cancel")
def cancel_route(session_id: str):
    return _session_action(session_id, lambda s: s.workflow.cancel(), "Failed to cancel checkout")


@checkout_bp.post("/sessions/<session_id>/new-sale")
def new_sale_route(session_id: str):
    return _session_action(session_id, lambda s: s.workflow.new_sale(), "Failed to start new sale")
