from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from pocketpos.domain import PaymentMethod, Sale, SaleItem
from pocketpos.services.ledger_service import LedgerError, LedgerNotFoundError
from pocketpos.services.metrics_service import vat_breakdown

BASE_TIME = datetime(2026, 10, 17, 2, 0, 0)


def make_sale(order_no, total, method=PaymentMethod.CASH, minutes=0, paid=None):
    total = Decimal(str(total))
    net, vat = vat_breakdown(total)
    paid = Decimal(str(paid)) if paid is not None else total
    return Sale(
        id=f"sale-{order_no}",
        order_no=str(order_no),
        items=(SaleItem(product_id="p-1", sku="SKU-1", name="Item", price=total, quantity=1),),
        total=total,
        subtotal=net,
        tax=vat,
        payment_method=method,
        amount_paid=paid,
        change_due=max(Decimal("0"), paid - total),
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def ledger(pos):
    ledger = pos.ledger
    ledger.append(make_sale(1001, "100", PaymentMethod.CASH, minutes=0))
    ledger.append(make_sale(1002, "250", PaymentMethod.QR_PH, minutes=5))
    ledger.append(make_sale(1013, "50", PaymentMethod.CARD, minutes=10))
    ledger.append(make_sale(1020, "40", PaymentMethod.CASH, minutes=15))
    return ledger


def test_query_is_newest_first(ledger):
    assert [s.order_no for s in ledger.query()] == ["1020", "1013", "1002", "1001"]


def test_query_by_order_number_substring(ledger):
    assert [s.order_no for s in ledger.query(search="101")] == ["1013"]
    assert [s.order_no for s in ledger.query(search="02")] == ["1020", "1002"]


def test_query_by_method(ledger):
    assert [s.order_no for s in ledger.query(method=PaymentMethod.CASH)] == ["1020", "1001"]
    assert ledger.query(method=PaymentMethod.MAYA_TERMINAL) == []


def test_aggregate_splits_cash_and_digital(ledger):
    summary = ledger.aggregate()

    assert summary.count == 4
    assert summary.total == Decimal("440")
    assert summary.cash_total == Decimal("140")
    assert summary.digital_total == Decimal("300")
    assert summary.by_method == {
        "CASH": Decimal("140"),
        "QR_PH": Decimal("250"),
        "CARD": Decimal("50"),
    }
    assert summary.average_ticket == Decimal("110.00")


def test_aggregate_respects_filters(ledger):
    summary = ledger.aggregate(method=PaymentMethod.QR_PH)
    assert summary.count == 1
    assert summary.total == Decimal("250")
    assert summary.cash_total == Decimal("0")


def test_aggregate_of_empty_ledger(pos):
    summary = pos.ledger.aggregate()
    assert summary.count == 0
    assert summary.total == Decimal("0")
    assert summary.average_ticket == Decimal("0")


def test_get_and_lookup(ledger):
    assert ledger.get("sale-1002").total == Decimal("250")
    assert ledger.get_by_order_no("1013").payment_method is PaymentMethod.CARD
    assert ledger.get_by_order_no("9999") is None
    assert ledger.find("missing") is None
    with pytest.raises(LedgerNotFoundError):
        ledger.get("missing")


def test_append_rejects_duplicates(ledger):
    with pytest.raises(LedgerError):
        ledger.append(make_sale(1001, "999"))
    assert ledger.get("sale-1001").total == Decimal("100")


def test_next_order_no(ledger):
    assert ledger.next_order_no() == "1021"


def test_first_order_no(pos):
    assert pos.ledger.next_order_no() == "1001"


def test_stored_sales_round_trip_items(ledger):
    sale = ledger.get("sale-1001")
    assert sale.items[0].name == "Item"
    assert sale.item_count == 1
    assert sale.created_at == BASE_TIME
