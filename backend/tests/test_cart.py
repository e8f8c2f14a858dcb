import random
from decimal import Decimal

import pytest

from pocketpos.domain import Product
from pocketpos.services.cart_service import TURBO_TAP_QUANTITY, Cart, CartError
from pocketpos.validation import ValidationError


def _product(pid, price, stock=50, name=None):
    return Product(id=pid, sku=f"SKU-{pid}", name=name or f"Product {pid}", price=Decimal(price), stock=stock)


def test_add_merges_entries_per_product():
    cart = Cart()
    coffee = _product("a", "120")

    cart.add(coffee)
    cart.add(coffee, 2)

    assert len(cart) == 1
    assert cart.get("a").quantity == 3
    assert cart.total() == Decimal("360")


def test_example_cart_total():
    cart = Cart()
    cart.add(_product("a", "120"), 2)
    cart.add(_product("b", "90"), 1)

    assert cart.total() == Decimal("330")
    assert cart.item_count == 3


def test_turbo_tap_adds_bulk_quantity():
    cart = Cart()
    item = cart.turbo_tap(_product("a", "10"))
    assert item.quantity == TURBO_TAP_QUANTITY == 5


@pytest.mark.parametrize("quantity", [0, -1, "x"])
def test_add_rejects_non_positive_quantity(quantity):
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.add(_product("a", "10"), quantity)
    assert cart.is_empty


def test_add_rejects_out_of_stock_product():
    cart = Cart()
    with pytest.raises(CartError):
        cart.add(_product("a", "10", stock=0))


def test_adjust_quantity_clamps_and_removes_at_zero():
    cart = Cart()
    cart.add(_product("a", "10"), 2)

    assert cart.adjust_quantity("a", 1).quantity == 3
    assert cart.adjust_quantity("a", -10) is None
    assert cart.is_empty
    assert cart.total() == Decimal("0")


def test_adjust_unknown_product_raises():
    with pytest.raises(CartError):
        Cart().adjust_quantity("missing", 1)


def test_remove_and_clear():
    cart = Cart()
    cart.add(_product("a", "10"), 4)
    cart.add(_product("b", "5"))

    cart.remove("a")
    assert [i.product_id for i in cart.items()] == ["b"]

    cart.clear()
    assert cart.is_empty


def test_price_snapshot_survives_product_edit():
    cart = Cart()
    product = _product("a", "100")
    cart.add(product)

    product.price = Decimal("150")
    cart.add(product)

    assert cart.get("a").price == Decimal("100")
    assert cart.total() == Decimal("200")


def test_items_returns_copy():
    cart = Cart()
    cart.add(_product("a", "10"))
    cart.items().clear()
    assert len(cart) == 1


def test_random_operations_keep_positive_quantities_and_consistent_total():
    rng = random.Random(1234)
    products = [_product(str(i), str(rng.randint(1, 500))) for i in range(5)]
    cart = Cart()

    for _ in range(500):
        product = rng.choice(products)
        if rng.random() < 0.5 or cart.get(product.id) is None:
            cart.add(product, rng.randint(1, TURBO_TAP_QUANTITY))
        else:
            cart.adjust_quantity(product.id, rng.randint(-6, 3))

        items = cart.items()
        assert all(item.quantity > 0 for item in items)
        assert len({item.product_id for item in items}) == len(items)
        assert cart.total() == sum((item.price * item.quantity for item in items), Decimal("0"))
