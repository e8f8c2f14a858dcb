from datetime import datetime

import pytest

from pocketpos.domain import PaymentMethod
from pocketpos.repositories import StorageError


def _sell(pos, product, quantity, method, at):
    session = pos.sessions.create()
    session.workflow.clock = lambda: at
    session.add_item(product.id, quantity)
    workflow = session.workflow
    workflow.begin()
    workflow.select_method(method)
    if method is PaymentMethod.CASH:
        workflow.tender(10000)
    else:
        workflow.request_payment()
        workflow.confirm_received()
    return workflow.complete()


@pytest.fixture
def sales(pos, coffee, bread):
    # 01:15 and 01:45 UTC are 09:15 and 09:45 in Manila
    return [
        _sell(pos, coffee, 1, PaymentMethod.CASH, datetime(2026, 10, 17, 1, 15)),
        _sell(pos, bread, 1, PaymentMethod.QR_PH, datetime(2026, 10, 17, 1, 45)),
        _sell(pos, coffee, 2, PaymentMethod.CARD, datetime(2026, 10, 16, 6, 0)),
    ]


def test_list_and_filter_transactions(client, sales):
    body = client.get("/api/transactions").get_json()
    assert body["count"] == 3
    assert [s["order_no"] for s in body["items"]] == ["1002", "1001", "1003"]
    assert body["summary"]["total"] == 450.0

    cash = client.get("/api/transactions?method=cash").get_json()
    assert [s["order_no"] for s in cash["items"]] == ["1001"]

    assert client.get("/api/transactions?method=ALL").get_json()["count"] == 3
    assert client.get("/api/transactions?search=003").get_json()["count"] == 1
    assert client.get("/api/transactions?method=GCASH").status_code == 400


def test_summary(client, sales):
    summary = client.get("/api/transactions/summary").get_json()
    assert summary["count"] == 3
    assert summary["cash_total"] == 120.0
    assert summary["digital_total"] == 330.0
    assert summary["by_method"] == {"CASH": 120.0, "QR_PH": 90.0, "CARD": 240.0}
    assert summary["tax"] == pytest.approx(float(sum(s.tax for s in sales)), abs=0.01)


def test_get_transaction_and_receipt(client, sales):
    sale = sales[0]
    assert client.get(f"/api/transactions/{sale.id}").get_json()["order_no"] == sale.order_no

    receipt = client.get(f"/api/transactions/{sale.id}/receipt").get_json()
    assert receipt["order_no"] == "1001"
    assert receipt["local_time"] == "2026-10-17 09:15"
    assert receipt["header"]["shop_name"] == "PocketPOS PH"
    assert receipt["change_due"] == 9880.0

    text = client.get(f"/api/transactions/{sale.id}/receipt?format=text")
    assert text.mimetype == "text/plain"
    assert "OR No." in text.get_data(as_text=True)


def test_missing_receipt(client):
    resp = client.get("/api/transactions/nope/receipt")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Receipt not found"
    assert client.get("/api/transactions/nope").status_code == 404


def test_dashboard(client, sales):
    body = client.get("/api/dashboard?date=2026-10-17").get_json()

    assert body["date"] == "2026-10-17"
    assert body["totals"]["gross"] == 210.0
    assert body["totals"]["order_count"] == 2
    assert body["totals"]["net"] + body["totals"]["vat"] == pytest.approx(210.0)
    assert body["hourly_velocity"] == {"9": 210.0}
    # bread drops to 4, coffee to 7; both at or below the default threshold of 10
    assert body["low_stock"]["count"] == 2

    assert client.get("/api/dashboard?date=17-10-2026").status_code == 400


def test_settings(client):
    assert client.get("/api/settings").get_json()["shop_name"] == "PocketPOS PH"

    resp = client.put("/api/settings", json={"shop_name": "Aling Nena", "tin": "123"})
    assert resp.status_code == 200
    assert resp.get_json()["tin"] == "123"
    assert client.get("/api/settings").get_json()["shop_name"] == "Aling Nena"

    assert client.put("/api/settings", json={"shop_name": " "}).status_code == 400


def test_settings_include_categories(client):
    client.post("/api/categories", json={"name": "Drinks"})
    assert [c["name"] for c in client.get("/api/settings").get_json()["categories"]] == ["Drinks"]


def test_health(client, app):
    body = client.get("/health").get_json()
    assert body["status"] == "ok"
    assert body["storage"]["backend"] == app.config["STORAGE_BACKEND"]


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not found"}


def _storage_down(*args, **kwargs):
    raise StorageError("Could not read pos_sales")


@pytest.mark.parametrize(
    "target, attr, url",
    [
        ("ledger", "query", "/api/transactions"),
        ("ledger", "aggregate", "/api/transactions/summary"),
        ("ledger", "get", "/api/transactions/some-id"),
        ("ledger", "get", "/api/transactions/some-id/receipt"),
        ("ledger", "all", "/api/dashboard"),
        ("settings", "get_settings", "/api/settings"),
    ],
)
def test_storage_failure_is_json_500(client, pos, monkeypatch, target, attr, url):
    monkeypatch.setattr(getattr(pos, target), attr, _storage_down)

    resp = client.get(url)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}


def test_unhandled_error_is_json_500(app, client, pos, monkeypatch):
    app.config["PROPAGATE_EXCEPTIONS"] = False
    monkeypatch.setattr(pos.catalog, "list_categories", _storage_down)

    resp = client.get("/api/categories")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}
