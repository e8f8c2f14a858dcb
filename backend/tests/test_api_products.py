def _create(client, **overrides):
    payload = {"sku": "DRK-001", "name": "Iced Coffee", "price": 120, "cost": 70, "stock": 10, "category": "Drinks"}
    payload.update(overrides)
    return client.post("/api/products", json=payload)


def test_create_and_get_product(client):
    resp = _create(client)
    assert resp.status_code == 201
    product = resp.get_json()
    assert product["price"] == 120.0
    assert product["stock"] == 10

    fetched = client.get(f"/api/products/{product['id']}")
    assert fetched.status_code == 200
    assert fetched.get_json()["name"] == "Iced Coffee"


def test_create_product_field_errors(client):
    resp = client.post("/api/products", json={"name": "", "price": -5})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["fields"]["sku"] == "Required"
    assert body["fields"]["name"] == "Required"
    assert body["fields"]["price"] == "Cannot be negative"


def test_create_duplicate_sku(client):
    _create(client)
    assert _create(client, name="Other").status_code == 409


def test_list_products_with_filters(client):
    _create(client)
    _create(client, sku="SNK-001", name="Banana Chips", category="Snacks", cost=10, price=35)

    all_items = client.get("/api/products").get_json()
    assert all_items["count"] == 2

    snacks = client.get("/api/products?category=snacks").get_json()
    assert [p["name"] for p in snacks["items"]] == ["Banana Chips"]

    search = client.get("/api/products?search=drk").get_json()
    assert [p["sku"] for p in search["items"]] == ["DRK-001"]


def test_update_and_delete_product(client):
    product_id = _create(client).get_json()["id"]

    resp = client.put(f"/api/products/{product_id}", json={"price": 60})
    assert resp.status_code == 400

    resp = client.put(f"/api/products/{product_id}", json={"price": 130, "emoji": "🧋"})
    assert resp.status_code == 200
    assert resp.get_json()["emoji"] == "🧋"

    assert client.delete(f"/api/products/{product_id}").status_code == 200
    assert client.get(f"/api/products/{product_id}").status_code == 404
    assert client.delete(f"/api/products/{product_id}").status_code == 404
    assert client.put(f"/api/products/{product_id}", json={"price": 1}).status_code == 404


def test_stock_adjustment_and_movements(client):
    product_id = _create(client, stock=4).get_json()["id"]

    resp = client.post(f"/api/products/{product_id}/stock", json={"delta": -10, "reason": "Spoiled"})
    assert resp.status_code == 200
    assert resp.get_json()["stock"] == 0

    assert client.post(f"/api/products/{product_id}/stock", json={"delta": "x"}).status_code == 400
    assert client.post("/api/products/missing/stock", json={"delta": 1}).status_code == 404

    movements = client.get(f"/api/inventory/movements?product_id={product_id}").get_json()
    assert movements["count"] == 1
    assert movements["items"][0]["quantity"] == -4
    assert movements["items"][0]["reason"] == "Spoiled"
    assert movements["items"][0]["type"] == "ADJUSTMENT"


def test_low_stock_endpoint(client):
    _create(client, sku="A", name="Plenty", stock=50)
    _create(client, sku="B", name="Few", stock=3)
    _create(client, sku="C", name="Custom", stock=15, low_stock_threshold=20)

    report = client.get("/api/products/low-stock").get_json()
    assert report["count"] == 2
    assert {p["name"] for p in report["items"]} == {"Few", "Custom"}

    report = client.get("/api/products/low-stock?threshold=2").get_json()
    assert report["count"] == 0

    assert client.get("/api/products/low-stock?threshold=abc").status_code == 400


def test_set_image_link(client):
    product_id = _create(client).get_json()["id"]

    resp = client.put(f"/api/products/{product_id}/image", json={"image": "/uploads/a.png"})
    assert resp.status_code == 200
    assert resp.get_json()["image"] == "/uploads/a.png"

    assert client.put(f"/api/products/{product_id}/image", json={"image": "http://evil/x.png"}).status_code == 400


def test_categories_endpoints(client):
    resp = client.post("/api/categories", json={"name": "Snacks", "emoji": "🍟", "color": "#F59E0B"})
    assert resp.status_code == 201
    category = resp.get_json()
    assert category["slug"] == "snacks"

    assert client.post("/api/categories", json={"name": "snacks"}).status_code == 409
    assert client.post("/api/categories", json={}).status_code == 400
    assert client.get("/api/categories").get_json()["count"] == 1

    assert client.delete(f"/api/categories/{category['id']}").status_code == 200
    assert client.delete(f"/api/categories/{category['id']}").status_code == 404


def test_sub_centavo_price_rejected(client):
    resp = _create(client, price="12.345")
    assert resp.status_code == 400
    assert resp.get_json()["fields"]["price"] == "At most 2 decimal places"

    resp = _create(client, price="12.30", cost="10.5")
    assert resp.status_code == 201
    product = client.get(f"/api/products/{resp.get_json()['id']}").get_json()
    assert product["price"] == 12.3
    assert product["cost"] == 10.5
