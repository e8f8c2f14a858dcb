# Overview: Checkout workflow state machine and the per-terminal checkout session registry.

"""
Checkout Workflow

    IDLE -> PAYMENT_SELECT -> CASH_FLOW | QR_FLOW | CARD_FLOW | TERMINAL_LINK_FLOW
         -> RECEIPT -> IDLE

DESIGN PRINCIPLES:
- The cart is editable only while IDLE; begin() freezes it for payment.
- Cash completes only when tendered >= total. Digital methods complete only
  once their gateway intent is SUCCESS. The terminal link must pair first.
- Finalization never drives stock negative: every line is checked against
  on-hand stock and the whole sale is rejected if any line is short.
- Stock decrements, SALE movements and the ledger append share one unit of
  work. The cart is cleared and the state moves to RECEIPT only after that
  unit commits; on failure the cart and flow state are left as they were.
"""

from __future__ import annotations

import enum
import logging
import threading
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable

from ..domain import ZERO, PaymentMethod, Sale, SaleItem, SaleStatus, money_out, quantize, to_money
from ..time_utils import to_utc_z, utcnow
from .cart_service import Cart
from .catalog_service import CatalogStore
from .ledger_service import TransactionLedger
from .metrics_service import vat_breakdown
from .payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentIntent,
    PaymentStatus,
    TerminalLinkGateway,
)

logger = logging.getLogger(__name__)

DEFAULT_SESSION_IDLE_SECONDS = 8 * 60 * 60


class CheckoutError(Exception):
    """Raised for checkout operation errors."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []


class CheckoutStateError(CheckoutError):
    """Operation not allowed in the current workflow state."""
    pass


class InsufficientStockError(CheckoutError):
    pass


class CheckoutSessionNotFoundError(CheckoutError):
    pass


class CheckoutState(str, enum.Enum):
    IDLE = "IDLE"
    PAYMENT_SELECT = "PAYMENT_SELECT"
    CASH_FLOW = "CASH_FLOW"
    QR_FLOW = "QR_FLOW"
    CARD_FLOW = "CARD_FLOW"
    TERMINAL_LINK_FLOW = "TERMINAL_LINK_FLOW"
    RECEIPT = "RECEIPT"


FLOW_FOR_METHOD = {
    PaymentMethod.CASH: CheckoutState.CASH_FLOW,
    PaymentMethod.QR_PH: CheckoutState.QR_FLOW,
    PaymentMethod.CARD: CheckoutState.CARD_FLOW,
    PaymentMethod.MAYA_TERMINAL: CheckoutState.TERMINAL_LINK_FLOW,
}

FLOW_STATES = frozenset(FLOW_FOR_METHOD.values())
DIGITAL_FLOW_STATES = frozenset({CheckoutState.QR_FLOW, CheckoutState.CARD_FLOW})


class CheckoutWorkflow:
    def __init__(
        self,
        cart: Cart,
        catalog: CatalogStore,
        ledger: TransactionLedger,
        gateways: dict[PaymentMethod, PaymentGateway],
        terminal_link: TerminalLinkGateway,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.cart = cart
        self.catalog = catalog
        self.ledger = ledger
        self.gateways = gateways
        self.terminal_link = terminal_link
        self.clock = clock

        self.state = CheckoutState.IDLE
        self.method: PaymentMethod | None = None
        self.tendered: Decimal | None = None
        self.intent: PaymentIntent | None = None
        self.terminal_status: PaymentStatus | None = None
        self.last_sale: Sale | None = None

    # =========================================================================
    # GUARDS
    # =========================================================================

    def _require(self, *states: CheckoutState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise CheckoutStateError(f"Not allowed in state {self.state.value} (expected {allowed})")

    def ensure_cart_editable(self) -> None:
        if self.state is not CheckoutState.IDLE:
            raise CheckoutStateError("Cart is locked while a payment is in progress; cancel first")

    def _reset_payment(self) -> None:
        self.method = None
        self.tendered = None
        self.intent = None
        self.terminal_status = None

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def begin(self) -> CheckoutState:
        self._require(CheckoutState.IDLE)
        if self.cart.is_empty:
            raise CheckoutError("Cart is empty")
        self.state = CheckoutState.PAYMENT_SELECT
        return self.state

    def select_method(self, method: PaymentMethod) -> CheckoutState:
        """Pick a payment method; switching methods discards any partial payment."""
        self._require(CheckoutState.PAYMENT_SELECT, *FLOW_STATES)
        self._reset_payment()
        self.method = method
        self.state = FLOW_FOR_METHOD[method]
        return self.state

    def cancel(self) -> CheckoutState:
        """Back to IDLE from any pre-receipt state; the cart is kept."""
        if self.state is CheckoutState.RECEIPT:
            raise CheckoutStateError("Sale already completed; start a new sale")
        self._reset_payment()
        self.state = CheckoutState.IDLE
        return self.state

    def tender(self, amount: Any) -> Decimal:
        """Record cash handed over. Returns the change that would be due."""
        self._require(CheckoutState.CASH_FLOW)
        try:
            tendered = to_money(amount)
        except ValueError:
            raise CheckoutError("Tendered amount must be a number")
        if not tendered.is_finite() or tendered < 0:
            raise CheckoutError("Tendered amount cannot be negative")
        if tendered != quantize(tendered):
            raise CheckoutError("Tendered amount cannot have more than 2 decimal places")
        self.tendered = tendered
        return self.change_due

    def request_payment(self) -> PaymentIntent:
        self._require(*DIGITAL_FLOW_STATES, CheckoutState.TERMINAL_LINK_FLOW)
        if self.state is CheckoutState.TERMINAL_LINK_FLOW and self.terminal_status is not PaymentStatus.SUCCESS:
            raise CheckoutStateError("Link the card terminal first")
        gateway = self._gateway()
        self.intent = gateway.request(self.method, self.cart.total())
        return self.intent

    def confirm_received(self) -> PaymentIntent:
        self._require(*DIGITAL_FLOW_STATES, CheckoutState.TERMINAL_LINK_FLOW)
        if self.intent is None:
            raise CheckoutStateError("No payment request to confirm")
        self.intent = self._gateway().confirm(self.intent)
        return self.intent

    def link_terminal(self) -> PaymentStatus:
        """
        Pair with the card terminal. FAILURE can be retried; SUCCESS opens a
        payment request for the cart total.
        """
        self._require(CheckoutState.TERMINAL_LINK_FLOW)
        status = self.terminal_link.link()
        self.terminal_status = status
        if status is PaymentStatus.SUCCESS:
            self.request_payment()
        else:
            self.intent = None
        return status

    def new_sale(self) -> CheckoutState:
        self._require(CheckoutState.RECEIPT)
        self._reset_payment()
        self.last_sale = None
        self.state = CheckoutState.IDLE
        return self.state

    def _gateway(self) -> PaymentGateway:
        gateway = self.gateways.get(self.method)
        if gateway is None:
            raise PaymentGatewayError(f"No gateway configured for {self.method.value}")
        return gateway

    # =========================================================================
    # FINALIZATION
    # =========================================================================

    @property
    def change_due(self) -> Decimal:
        # The cart is already cleared on the receipt screen
        if self.state is CheckoutState.RECEIPT and self.last_sale is not None:
            return self.last_sale.change_due
        if self.tendered is None:
            return ZERO
        return max(ZERO, self.tendered - self.cart.total())

    def _check_payment(self, total: Decimal) -> tuple[Decimal, str | None]:
        """Returns (amount_paid, provider_ref) or raises if payment is not settled."""
        if self.state is CheckoutState.CASH_FLOW:
            if self.tendered is None:
                raise CheckoutError("Enter the cash tendered")
            if self.tendered < total:
                raise CheckoutError(
                    "Tendered amount is less than the total due",
                    details=[{"total": money_out(total), "tendered": money_out(self.tendered)}],
                )
            return self.tendered, None

        if self.intent is None or not self.intent.is_settled:
            raise CheckoutError("Payment has not been confirmed")
        return total, self.intent.provider_ref

    def _check_stock(self) -> None:
        shortages = []
        for item in self.cart.items():
            product = self.catalog.find_product(item.product_id)
            on_hand = product.stock if product else 0
            if on_hand < item.quantity:
                shortages.append({
                    "product_id": item.product_id,
                    "name": item.name,
                    "requested_quantity": item.quantity,
                    "on_hand": on_hand,
                })
        if shortages:
            raise InsufficientStockError("Insufficient stock", details=shortages)

    def complete(self) -> Sale:
        self._require(*FLOW_STATES)
        if self.cart.is_empty:
            raise CheckoutError("Cart is empty")

        total = self.cart.total()
        amount_paid, provider_ref = self._check_payment(total)
        net, vat = vat_breakdown(total)
        storage = self.ledger.storage

        with storage.unit_of_work():
            self._check_stock()
            order_no = self.ledger.next_order_no()
            sale = Sale(
                id=str(uuid.uuid4()),
                order_no=order_no,
                items=tuple(SaleItem.from_cart_item(item) for item in self.cart.items()),
                total=total,
                subtotal=net,
                tax=vat,
                payment_method=self.method,
                amount_paid=amount_paid,
                change_due=max(ZERO, amount_paid - total),
                created_at=self.clock(),
                status=SaleStatus.PAID,
                provider_ref=provider_ref,
            )
            for item in sale.items:
                self.catalog.decrement_stock(item.product_id, item.quantity, reason=f"Sale #{order_no}")
            self.ledger.append(sale)

        logger.info("Sale #%s completed: %s via %s", sale.order_no, sale.total, sale.payment_method.value)
        self.cart.clear()
        self.last_sale = sale
        self.state = CheckoutState.RECEIPT
        return sale

    def snapshot(self) -> dict:
        """Session view; on the receipt screen the totals are those of the completed sale."""
        sale = self.last_sale if self.state is CheckoutState.RECEIPT else None
        if sale is not None:
            total, net, vat = sale.total, sale.subtotal, sale.tax
            tendered = sale.amount_paid
        else:
            total = self.cart.total()
            net, vat = vat_breakdown(total)
            tendered = self.tendered
        return {
            "state": self.state.value,
            "method": self.method.value if self.method else None,
            "cart": self.cart.to_dict(),
            "total": money_out(total),
            "subtotal": money_out(net),
            "tax": money_out(vat),
            "tendered": money_out(tendered),
            "change_due": money_out(self.change_due),
            "payment": self.intent.to_dict() if self.intent else None,
            "terminal_status": self.terminal_status.value if self.terminal_status else None,
            "last_sale": self.last_sale.to_dict() if self.last_sale else None,
        }


class CheckoutSession:
    """One checkout terminal (browser tab): its own cart and workflow."""

    def __init__(self, session_id: str, workflow: CheckoutWorkflow, created_at: datetime | None = None):
        self.id = session_id
        self.workflow = workflow
        self.created_at = created_at or utcnow()
        self.last_active_at = self.created_at

    @property
    def cart(self) -> Cart:
        return self.workflow.cart

    def add_item(self, product_id: str, quantity: int = 1):
        self.workflow.ensure_cart_editable()
        product = self.workflow.catalog.get_product(product_id)
        return self.cart.add(product, quantity)

    def adjust_item(self, product_id: str, delta: int):
        self.workflow.ensure_cart_editable()
        return self.cart.adjust_quantity(product_id, delta)

    def remove_item(self, product_id: str) -> None:
        self.workflow.ensure_cart_editable()
        self.cart.remove(product_id)

    def clear_cart(self) -> None:
        self.workflow.ensure_cart_editable()
        self.cart.clear()

    def to_dict(self) -> dict:
        return {"id": self.id, "created_at": to_utc_z(self.created_at), **self.workflow.snapshot()}


class CheckoutSessionRegistry:
    """
    In-memory sessions keyed by id. Not shared across processes.

    A session untouched for longer than idle_timeout is dropped the next time
    the registry is used; its cart is lost but completed sales are already
    in the ledger. idle_timeout=None keeps sessions until discarded.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        ledger: TransactionLedger,
        gateways: dict[PaymentMethod, PaymentGateway],
        terminal_link: TerminalLinkGateway,
        idle_timeout: timedelta | None = timedelta(seconds=DEFAULT_SESSION_IDLE_SECONDS),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.gateways = gateways
        self.terminal_link = terminal_link
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._sessions: dict[str, CheckoutSession] = {}
        self._lock = threading.Lock()

    def _prune_locked(self, now: datetime) -> int:
        if self.idle_timeout is None:
            return 0
        cutoff = now - self.idle_timeout
        expired = [sid for sid, s in self._sessions.items() if s.last_active_at < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Dropped %d idle checkout session(s)", len(expired))
        return len(expired)

    def prune_idle(self) -> int:
        """Drop sessions idle past idle_timeout. Returns how many were dropped."""
        with self._lock:
            return self._prune_locked(self.clock())

    def create(self) -> CheckoutSession:
        workflow = CheckoutWorkflow(
            cart=Cart(),
            catalog=self.catalog,
            ledger=self.ledger,
            gateways=self.gateways,
            terminal_link=self.terminal_link,
        )
        now = self.clock()
        session = CheckoutSession(uuid.uuid4().hex, workflow, created_at=now)
        with self._lock:
            self._prune_locked(now)
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> CheckoutSession:
        now = self.clock()
        with self._lock:
            self._prune_locked(now)
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_active_at = now
        if session is None:
            raise CheckoutSessionNotFoundError(f"Checkout session {session_id} not found")
        return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
