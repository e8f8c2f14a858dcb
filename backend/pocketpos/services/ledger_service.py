# Overview: Transaction ledger; append-only record of completed sales plus query/aggregate views.

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..domain import ZERO, PaymentMethod, Sale, money_out, quantize
from ..repositories import Storage, StorageError

"""
Transaction Ledger Invariants

- Append-only: a Sale is immutable once appended; no update/delete is exposed.
- Ordering is applied at query time (newest first by created_at), never at write time.
- Order numbers are sequential per ledger, starting at FIRST_ORDER_NO.
"""

FIRST_ORDER_NO = 1001


class LedgerError(Exception):
    """Raised for ledger operation errors."""
    pass


class LedgerNotFoundError(LedgerError):
    pass


@dataclass
class LedgerSummary:
    count: int = 0
    total: Decimal = ZERO
    tax: Decimal = ZERO
    by_method: dict[str, Decimal] = field(default_factory=dict)

    @property
    def cash_total(self) -> Decimal:
        return self.by_method.get(PaymentMethod.CASH.value, ZERO)

    @property
    def digital_total(self) -> Decimal:
        return self.total - self.cash_total

    @property
    def average_ticket(self) -> Decimal:
        if not self.count:
            return ZERO
        return quantize(self.total / self.count)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total": money_out(self.total),
            "tax": money_out(self.tax),
            "cash_total": money_out(self.cash_total),
            "digital_total": money_out(self.digital_total),
            "average_ticket": money_out(self.average_ticket),
            "by_method": {method: money_out(amount) for method, amount in self.by_method.items()},
        }


class TransactionLedger:
    def __init__(self, storage: Storage):
        self.storage = storage

    def append(self, sale: Sale) -> Sale:
        """
        Append a finalized sale.

        Raises LedgerError if the id or order number is already present.
        """
        if self.get_by_order_no(sale.order_no) is not None:
            raise LedgerError(f"Order number {sale.order_no} already exists")
        try:
            return self.storage.sales.put(sale)
        except StorageError as exc:
            if self.storage.sales.get(sale.id) is not None:
                raise LedgerError(f"Transaction {sale.id} already exists") from exc
            raise

    def find(self, sale_id: str) -> Sale | None:
        return self.storage.sales.get(sale_id)

    def get(self, sale_id: str) -> Sale:
        sale = self.storage.sales.get(sale_id)
        if sale is None:
            raise LedgerNotFoundError(f"Transaction {sale_id} not found")
        return sale

    def get_by_order_no(self, order_no: str) -> Sale | None:
        for sale in self.storage.sales.list_all():
            if sale.order_no == str(order_no):
                return sale
        return None

    def all(self) -> list[Sale]:
        return sorted(self.storage.sales.list_all(), key=lambda s: s.created_at, reverse=True)

    def query(self, search: str | None = None, method: PaymentMethod | None = None) -> list[Sale]:
        """Filter by order-number substring and/or payment method, newest first."""
        sales = self.all()
        if search:
            term = search.strip().lower()
            sales = [s for s in sales if term in s.order_no.lower()]
        if method is not None:
            sales = [s for s in sales if s.payment_method is method]
        return sales

    def aggregate(self, search: str | None = None, method: PaymentMethod | None = None) -> LedgerSummary:
        summary = LedgerSummary()
        for sale in self.query(search=search, method=method):
            summary.count += 1
            summary.total += sale.total
            summary.tax += sale.tax
            key = sale.payment_method.value
            summary.by_method[key] = summary.by_method.get(key, ZERO) + sale.total
        return summary

    def next_order_no(self) -> str:
        highest = FIRST_ORDER_NO - 1
        for sale in self.storage.sales.list_all():
            if sale.order_no.isdigit():
                highest = max(highest, int(sale.order_no))
        return str(highest + 1)
