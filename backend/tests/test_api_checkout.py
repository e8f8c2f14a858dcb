import pytest


@pytest.fixture
def session_url(client):
    resp = client.post("/api/checkout/sessions")
    assert resp.status_code == 201
    return f"/api/checkout/sessions/{resp.get_json()['session']['id']}"


def _post(client, url, **body):
    return client.post(url, json=body or None)


def test_cash_checkout_over_http(client, session_url, coffee, bread):
    resp = client.post(f"{session_url}/cart/items", json={"product_id": coffee.id, "quantity": 2})
    assert resp.status_code == 200
    client.post(f"{session_url}/cart/items", json={"product_id": bread.id})

    session = client.get(session_url).get_json()["session"]
    assert session["total"] == 330.0
    assert session["state"] == "IDLE"

    assert _post(client, f"{session_url}/begin").get_json()["session"]["state"] == "PAYMENT_SELECT"
    assert _post(client, f"{session_url}/method", method="cash").get_json()["session"]["state"] == "CASH_FLOW"

    tender = _post(client, f"{session_url}/tender", amount=500).get_json()["session"]
    assert tender["change_due"] == 170.0

    resp = _post(client, f"{session_url}/complete")
    assert resp.status_code == 201
    session = resp.get_json()["session"]
    assert session["state"] == "RECEIPT"
    assert session["cart"]["items"] == []
    assert session["total"] == 330.0
    assert session["tendered"] == 500.0
    assert session["change_due"] == 170.0
    sale = session["last_sale"]
    assert sale["total"] == 330.0
    assert sale["change_due"] == 170.0
    assert sale["order_no"] == "1001"

    assert client.get(f"/api/products/{coffee.id}").get_json()["stock"] == 8
    assert client.get(f"/api/products/{bread.id}").get_json()["stock"] == 4
    assert client.get("/api/transactions").get_json()["count"] == 1

    assert _post(client, f"{session_url}/new-sale").get_json()["session"]["state"] == "IDLE"


def test_cart_editing(client, session_url, coffee):
    client.post(f"{session_url}/cart/items", json={"product_id": coffee.id, "quantity": 5})

    resp = client.patch(f"{session_url}/cart/items/{coffee.id}", json={"delta": -2})
    assert resp.get_json()["session"]["cart"]["items"][0]["quantity"] == 3

    resp = client.delete(f"{session_url}/cart/items/{coffee.id}")
    assert resp.get_json()["session"]["cart"]["items"] == []

    client.post(f"{session_url}/cart/items", json={"product_id": coffee.id})
    resp = client.delete(f"{session_url}/cart")
    assert resp.get_json()["session"]["cart"]["item_count"] == 0


def test_cart_errors(client, session_url, coffee, make_product):
    assert client.post(f"{session_url}/cart/items", json={}).status_code == 400
    assert client.post(f"{session_url}/cart/items", json={"product_id": "missing"}).status_code == 404
    assert client.post(f"{session_url}/cart/items", json={"product_id": coffee.id, "quantity": 0}).status_code == 400

    empty = make_product(name="Sold Out", stock=0)
    assert client.post(f"{session_url}/cart/items", json={"product_id": empty.id}).status_code == 400
    assert client.patch(f"{session_url}/cart/items/{coffee.id}", json={"delta": 1}).status_code == 400


def test_state_errors(client, session_url, coffee):
    assert _post(client, f"{session_url}/begin").status_code == 400

    client.post(f"{session_url}/cart/items", json={"product_id": coffee.id})
    assert _post(client, f"{session_url}/complete").status_code == 409
    assert _post(client, f"{session_url}/tender", amount=100).status_code == 409

    _post(client, f"{session_url}/begin")
    assert client.post(f"{session_url}/cart/items", json={"product_id": coffee.id}).status_code == 409
    assert _post(client, f"{session_url}/method", method="BITCOIN").status_code == 400
    assert _post(client, f"{session_url}/cancel").get_json()["session"]["state"] == "IDLE"


def test_underpayment_and_stock_shortage(client, session_url, coffee, pos):
    client.post(f"{session_url}/cart/items", json={"product_id": coffee.id, "quantity": 3})
    _post(client, f"{session_url}/begin")
    _post(client, f"{session_url}/method", method="CASH")
    _post(client, f"{session_url}/tender", amount=100)

    assert _post(client, f"{session_url}/complete").status_code == 400
    assert _post(client, f"{session_url}/tender").status_code == 400
    assert _post(client, f"{session_url}/tender", amount="100.005").status_code == 400

    _post(client, f"{session_url}/tender", amount=1000)
    pos.catalog.adjust_stock(coffee.id, -8)

    resp = _post(client, f"{session_url}/complete")
    assert resp.status_code == 409
    body = resp.get_json()
    assert body["details"][0]["on_hand"] == 2
    assert body["details"][0]["requested_quantity"] == 3
    assert client.get(session_url).get_json()["session"]["cart"]["item_count"] == 3


def test_qr_checkout_over_http(client, session_url, coffee):
    client.post(f"{session_url}/cart/items", json={"product_id": coffee.id})
    _post(client, f"{session_url}/begin")
    _post(client, f"{session_url}/method", method="QR_PH")

    payment = _post(client, f"{session_url}/payment-request").get_json()["session"]["payment"]
    assert payment["status"] == "PENDING"
    assert payment["amount"] == 120.0

    assert _post(client, f"{session_url}/confirm").get_json()["session"]["payment"]["status"] == "SUCCESS"
    sale = _post(client, f"{session_url}/complete").get_json()["session"]["last_sale"]
    assert sale["payment_method"] == "QR_PH"
    assert sale["provider_ref"] == payment["provider_ref"]


def test_terminal_link_over_http(client, scripted_terminal, coffee):
    url = f"/api/checkout/sessions/{client.post('/api/checkout/sessions').get_json()['session']['id']}"
    client.post(f"{url}/cart/items", json={"product_id": coffee.id})
    _post(client, f"{url}/begin")
    _post(client, f"{url}/method", method="MAYA_TERMINAL")

    first = _post(client, f"{url}/terminal-link").get_json()["session"]
    assert first["terminal_status"] == "FAILURE"
    assert first["payment"] is None

    second = _post(client, f"{url}/terminal-link").get_json()["session"]
    assert second["terminal_status"] == "SUCCESS"
    assert second["payment"]["status"] == "PENDING"

    _post(client, f"{url}/confirm")
    assert _post(client, f"{url}/complete").status_code == 201


def test_unknown_session(client):
    assert client.get("/api/checkout/sessions/nope").status_code == 404
    assert client.post("/api/checkout/sessions/nope/begin").status_code == 404


def test_discard_session(client, session_url):
    assert client.delete(session_url).status_code == 200
    assert client.get(session_url).status_code == 404
    assert client.delete(session_url).status_code == 404
