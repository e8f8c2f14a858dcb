# Overview: Cart engine; in-memory line items for one checkout session.

"""
Cart Engine

Holds the products a cashier has tapped, one entry per product id, in the
order they were first added. Entries carry a price snapshot taken at add time.
The cart never touches catalog stock; that happens when checkout finalizes.
"""

from __future__ import annotations

from decimal import Decimal

from ..domain import ZERO, CartItem, Product, money_out
from ..validation import parse_quantity

# Quantity added by one turbo-tap (long-press) on a product tile
TURBO_TAP_QUANTITY = 5


class CartError(Exception):
    """Raised for cart operation errors."""
    pass


class Cart:
    def __init__(self) -> None:
        self._items: list[CartItem] = []

    def _index_of(self, product_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.product_id == product_id:
                return i
        return None

    def add(self, product: Product, quantity: int = 1) -> CartItem:
        """
        Add quantity units of product.

        An existing entry keeps its original price snapshot and only grows in
        quantity. Out-of-stock products cannot be added.
        """
        quantity = parse_quantity(quantity)
        if product.stock <= 0:
            raise CartError(f"{product.name} is out of stock")

        index = self._index_of(product.id)
        if index is None:
            item = CartItem.from_product(product, quantity)
            self._items.append(item)
            return item

        item = self._items[index].with_quantity(self._items[index].quantity + quantity)
        self._items[index] = item
        return item

    def turbo_tap(self, product: Product) -> CartItem:
        return self.add(product, TURBO_TAP_QUANTITY)

    def adjust_quantity(self, product_id: str, delta: int) -> CartItem | None:
        """
        Change an entry's quantity by delta, clamped at zero.

        Returns the updated entry, or None when it reached zero and was removed.
        """
        index = self._index_of(product_id)
        if index is None:
            raise CartError(f"Product {product_id} is not in the cart")

        quantity = max(0, self._items[index].quantity + delta)
        if quantity == 0:
            del self._items[index]
            return None

        item = self._items[index].with_quantity(quantity)
        self._items[index] = item
        return item

    def remove(self, product_id: str) -> None:
        index = self._index_of(product_id)
        if index is None:
            raise CartError(f"Product {product_id} is not in the cart")
        self.adjust_quantity(product_id, -self._items[index].quantity)

    def clear(self) -> None:
        self._items = []

    def items(self) -> list[CartItem]:
        return list(self._items)

    def get(self, product_id: str) -> CartItem | None:
        index = self._index_of(product_id)
        return None if index is None else self._items[index]

    def total(self) -> Decimal:
        # Recomputed on every read
        return sum((item.line_total for item in self._items), ZERO)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self._items],
            "item_count": self.item_count,
            "total": money_out(self.total()),
        }
