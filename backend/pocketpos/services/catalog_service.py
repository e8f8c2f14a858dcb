# Overview: Catalog store for products and categories; owns stock levels and the change feed.

"""
Catalog Store

Source of truth for products and categories, backed by whichever Storage the
app was built with. Every product/category write publishes a ChangeEvent to
subscribers once the write is committed (row-level INSERT/UPDATE/DELETE,
mirroring the hosted tables' change feed). Consumers must merge idempotently.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from ..domain import Category, InventoryMovement, MovementType, Product
from ..repositories import Storage
from ..time_utils import utcnow
from ..validation import (
    CATEGORY_POLICY,
    PRODUCT_POLICY,
    ConflictError,
    enforce_rules_product,
    slugify,
    validate_payload,
)

logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"

ALL_CATEGORIES = "ALL"


class CatalogError(Exception):
    """Raised for catalog operation errors."""


class CatalogNotFoundError(CatalogError):
    """Raised when a product or category id does not exist."""


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    record: dict


Subscriber = Callable[[ChangeEvent], None]


class CatalogStore:
    def __init__(self, storage: Storage):
        self.storage = storage
        self._subscribers: list[Subscriber] = []

    # =========================================================================
    # CHANGE FEED
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, table: str, event_type: str, record: dict) -> None:
        event = ChangeEvent(table=table, event_type=event_type, record=record)

        def deliver() -> None:
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    logger.warning("Catalog subscriber failed for %s %s", table, event_type, exc_info=True)

        self.storage.after_commit(deliver)

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    def list_products(self, search: str | None = None, category: str | None = None) -> list[Product]:
        """
        Products sorted by name.

        search matches name or SKU (case-insensitive substring); category
        matches the product's category case-insensitively, "ALL" disables it.
        """
        products = self.storage.products.list_all()
        if search:
            term = search.strip().lower()
            products = [
                p for p in products
                if term in p.name.lower() or term in (p.sku or "").lower()
            ]
        if category and category.upper() != ALL_CATEGORIES:
            wanted = category.strip().lower()
            products = [p for p in products if (p.category or "").lower() == wanted]
        return products

    def find_product(self, product_id: str) -> Product | None:
        return self.storage.products.get(product_id)

    def get_product(self, product_id: str) -> Product:
        product = self.storage.products.get(product_id)
        if product is None:
            raise CatalogNotFoundError(f"Product {product_id} not found")
        return product

    def _ensure_unique_sku(self, sku: str, product_id: str | None = None) -> None:
        for other in self.storage.products.list_all():
            if other.sku.lower() == sku.lower() and other.id != product_id:
                raise ConflictError("SKU already exists.")

    def create_product(self, payload: dict) -> Product:
        """Validate an inventory-form payload and insert the product."""
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        self._ensure_unique_sku(patch["sku"])

        now = utcnow()
        product = Product(
            id=str(payload.get("id") or uuid.uuid4()),
            sku=patch["sku"],
            name=patch["name"],
            price=patch["price"],
            created_at=now,
            updated_at=now,
        )
        if self.storage.products.get(product.id) is not None:
            raise ConflictError(f"Product {product.id} already exists.")
        for key in ("cost", "stock", "low_stock_threshold", "category", "emoji", "image"):
            if key in patch and patch[key] is not None:
                setattr(product, key, patch[key])

        self.storage.products.put(product)
        self._publish("products", EVENT_INSERT, product.to_dict())
        return product

    def update_product(self, product_id: str, payload: dict) -> Product:
        product = self.get_product(product_id)
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch, existing={"price": product.price, "cost": product.cost})
        if "sku" in patch:
            self._ensure_unique_sku(patch["sku"], product_id=product.id)

        for key, value in patch.items():
            setattr(product, key, value)
        product.updated_at = utcnow()

        self.storage.products.put(product)
        self._publish("products", EVENT_UPDATE, product.to_dict())
        return product

    def upsert_product(self, product: Product) -> Product:
        """Raw write used by seeding and sync; skips form validation."""
        existed = self.storage.products.get(product.id) is not None
        now = utcnow()
        if product.created_at is None:
            product.created_at = now
        product.updated_at = now
        self.storage.products.put(product)
        self._publish("products", EVENT_UPDATE if existed else EVENT_INSERT, product.to_dict())
        return product

    def delete_product(self, product_id: str) -> bool:
        product = self.storage.products.get(product_id)
        if product is None or not self.storage.products.delete(product_id):
            return False
        self._publish("products", EVENT_DELETE, product.to_dict())
        return True

    def set_image(self, product_id: str, image_url: str | None) -> Product:
        product = self.get_product(product_id)
        product.image = image_url
        product.updated_at = utcnow()
        self.storage.products.put(product)
        self._publish("products", EVENT_UPDATE, product.to_dict())
        return product

    # =========================================================================
    # STOCK
    # =========================================================================

    def _record_movement(
        self, product: Product, movement_type: MovementType, quantity: int, reason: str | None
    ) -> InventoryMovement:
        movement = InventoryMovement(
            id=str(uuid.uuid4()),
            product_id=product.id,
            product_name=product.name,
            type=movement_type,
            quantity=quantity,
            reason=reason,
            created_at=utcnow(),
        )
        self.storage.movements.put(movement)
        return movement

    def adjust_stock(self, product_id: str, delta: int, reason: str | None = None) -> Product:
        """
        Manual inventory +/- action. The result is clamped at zero and the
        movement records the delta that was actually applied.
        """
        with self.storage.unit_of_work():
            product = self.get_product(product_id)
            new_stock = max(0, product.stock + delta)
            applied = new_stock - product.stock
            product.stock = new_stock
            product.updated_at = utcnow()
            self.storage.products.put(product)
            if applied:
                self._record_movement(product, MovementType.ADJUSTMENT, applied, reason or "Manual adjustment")
            self._publish("products", EVENT_UPDATE, product.to_dict())
        return product

    def decrement_stock(self, product_id: str, quantity: int, reason: str | None = None) -> Product:
        """
        Sale-side stock decrement. No floor clamp: callers validate on-hand
        quantity before finalizing a sale.
        """
        product = self.get_product(product_id)
        product.stock -= quantity
        product.updated_at = utcnow()
        self.storage.products.put(product)
        self._record_movement(product, MovementType.SALE, -quantity, reason)
        self._publish("products", EVENT_UPDATE, product.to_dict())
        return product

    def list_movements(self, product_id: str | None = None, limit: int | None = None) -> list[InventoryMovement]:
        movements = self.storage.movements.list_all()
        if product_id:
            movements = [m for m in movements if m.product_id == product_id]
        if limit is not None:
            movements = movements[:limit]
        return movements

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def list_categories(self) -> list[Category]:
        return self.storage.categories.list_all()

    def create_category(self, payload: dict) -> Category:
        patch = validate_payload(payload=payload, policy=CATEGORY_POLICY, partial=False)
        slug = slugify(patch.get("slug") or patch["name"])
        if any(c.slug == slug for c in self.storage.categories.list_all()):
            raise ConflictError("Category already exists.")

        category = Category(
            id=str(payload.get("id") or uuid.uuid4()),
            name=patch["name"],
            slug=slug,
            emoji=patch.get("emoji"),
            color=patch.get("color"),
        )
        self.storage.categories.put(category)
        self._publish("categories", EVENT_INSERT, category.to_dict())
        return category

    def upsert_category(self, category: Category) -> Category:
        existed = self.storage.categories.get(category.id) is not None
        self.storage.categories.put(category)
        self._publish("categories", EVENT_UPDATE if existed else EVENT_INSERT, category.to_dict())
        return category

    def delete_category(self, category_id: str) -> bool:
        """Products keep their (now orphaned) category reference."""
        category = self.storage.categories.get(category_id)
        if category is None or not self.storage.categories.delete(category_id):
            return False
        self._publish("categories", EVENT_DELETE, category.to_dict())
        return True


def low_stock_alert(threshold: int) -> Subscriber:
    """Subscriber that logs a warning when a product update leaves it at or below threshold."""

    def _on_change(event: ChangeEvent) -> None:
        if event.table != "products" or event.event_type == EVENT_DELETE:
            return
        record = event.record
        limit = record.get("low_stock_threshold")
        if limit is None:
            limit = threshold
        if record.get("stock", 0) <= limit:
            logger.warning("Low stock: %s (%s) has %s left", record.get("name"), record.get("sku"), record.get("stock"))

    return _on_change
