# Overview: Injectable payment gateways for digital tenders and the card terminal link.

"""
Payment Gateways

Digital tenders (QR Ph, card, Maya terminal) are not processed here; the shop
confirms receipt manually. Each gateway therefore models only the handshake
state a checkout needs:

    PENDING -> SUCCESS | FAILURE

The terminal link gateway simulates pairing with a card device: after a fixed
latency it succeeds with a configured probability. Tests inject fixed
outcomes instead.
"""

from __future__ import annotations

import enum
import logging
import random
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable

from ..domain import PaymentMethod, money_out

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_SUCCESS_RATE = 0.7
DEFAULT_TERMINAL_LATENCY_SECONDS = 1.5


class PaymentGatewayError(Exception):
    """Raised for payment gateway handshake errors."""
    pass


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class PaymentIntent:
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    provider_ref: str | None = None
    message: str | None = None

    @property
    def is_settled(self) -> bool:
        return self.status is PaymentStatus.SUCCESS

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "amount": money_out(self.amount),
            "status": self.status.value,
            "provider_ref": self.provider_ref,
            "message": self.message,
        }


class PaymentGateway(ABC):
    """Handshake for one digital payment method."""

    @abstractmethod
    def request(self, method: PaymentMethod, amount: Decimal) -> PaymentIntent:
        ...

    @abstractmethod
    def confirm(self, intent: PaymentIntent) -> PaymentIntent:
        ...


class ManualConfirmGateway(PaymentGateway):
    """
    QR / card flow: the request shows a waiting screen and the cashier taps
    "confirm received" once the customer's payment shows up.
    """

    def __init__(self, ref_prefix: str = "PAY"):
        self.ref_prefix = ref_prefix

    def request(self, method: PaymentMethod, amount: Decimal) -> PaymentIntent:
        if not method.is_digital:
            raise PaymentGatewayError(f"{method.value} is not a digital payment method")
        ref = f"{self.ref_prefix}-{uuid.uuid4().hex[:10].upper()}"
        return PaymentIntent(method=method, amount=amount, provider_ref=ref)

    def confirm(self, intent: PaymentIntent) -> PaymentIntent:
        if intent.status is PaymentStatus.FAILURE:
            raise PaymentGatewayError("Payment request failed; request a new one")
        return replace(intent, status=PaymentStatus.SUCCESS)


class TerminalLinkGateway(ABC):
    @abstractmethod
    def link(self) -> PaymentStatus:
        """Attempt to pair with the card terminal. Returns SUCCESS or FAILURE."""
        ...


class SimulatedTerminalLink(TerminalLinkGateway):
    def __init__(
        self,
        success_rate: float = DEFAULT_TERMINAL_SUCCESS_RATE,
        latency_seconds: float = DEFAULT_TERMINAL_LATENCY_SECONDS,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.success_rate = success_rate
        self.latency_seconds = latency_seconds
        self._rng = rng or random.Random()
        self._sleep = sleep

    def link(self) -> PaymentStatus:
        if self.latency_seconds > 0:
            self._sleep(self.latency_seconds)
        if self._rng.random() < self.success_rate:
            return PaymentStatus.SUCCESS
        logger.warning("Terminal link handshake failed")
        return PaymentStatus.FAILURE


class FixedTerminalLink(TerminalLinkGateway):
    """Plays back a scripted sequence of outcomes; the last one repeats."""

    def __init__(self, *outcomes: PaymentStatus):
        if not outcomes:
            raise ValueError("at least one outcome is required")
        self._outcomes = list(outcomes)
        self.attempts = 0

    def link(self) -> PaymentStatus:
        index = min(self.attempts, len(self._outcomes) - 1)
        self.attempts += 1
        return self._outcomes[index]


def build_gateways(config) -> tuple[dict[PaymentMethod, PaymentGateway], TerminalLinkGateway]:
    """Gateways for every digital method plus the terminal link, from app config."""
    gateways: dict[PaymentMethod, PaymentGateway] = {
        PaymentMethod.QR_PH: ManualConfirmGateway("QRPH"),
        PaymentMethod.CARD: ManualConfirmGateway("CARD"),
        PaymentMethod.MAYA_TERMINAL: ManualConfirmGateway("MAYA"),
    }
    terminal = SimulatedTerminalLink(
        success_rate=config.get("TERMINAL_LINK_SUCCESS_RATE", DEFAULT_TERMINAL_SUCCESS_RATE),
        latency_seconds=config.get("TERMINAL_LINK_LATENCY_SECONDS", DEFAULT_TERMINAL_LATENCY_SECONDS),
    )
    return gateways, terminal
