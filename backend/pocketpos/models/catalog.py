from __future__ import annotations

from ..extensions import db
from ..domain import ZERO, Category, InventoryMovement, MovementType, Product


class ProductRecord(db.Model):
    """
    Product row in the hosted `products` table.

    Price is tax-inclusive. Stock is never clamped here; callers decide
    whether a write may take it below zero.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
    )

    id = db.Column(db.String(36), primary_key=True)
    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=True)

    # Category slug; orphaned references are tolerated
    category = db.Column(db.String(64), nullable=True, index=True)
    emoji = db.Column(db.String(16), nullable=True)
    image = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ProductRecord id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    def apply(self, product: Product) -> "ProductRecord":
        self.id = product.id
        self.sku = product.sku
        self.name = product.name
        self.price = product.price
        self.cost = product.cost
        self.stock = product.stock
        self.low_stock_threshold = product.low_stock_threshold
        self.category = product.category
        self.emoji = product.emoji
        self.image = product.image
        self.created_at = product.created_at
        self.updated_at = product.updated_at
        return self

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            sku=self.sku,
            name=self.name,
            price=self.price,
            cost=self.cost if self.cost is not None else ZERO,
            stock=self.stock,
            low_stock_threshold=self.low_stock_threshold,
            category=self.category,
            emoji=self.emoji,
            image=self.image,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class CategoryRecord(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("slug", name="uq_categories_slug"),
    )

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    slug = db.Column(db.String(64), nullable=False)
    emoji = db.Column(db.String(16), nullable=True)
    color = db.Column(db.String(32), nullable=True)

    def apply(self, category: Category) -> "CategoryRecord":
        self.id = category.id
        self.name = category.name
        self.slug = category.slug
        self.emoji = category.emoji
        self.color = category.color
        return self

    def to_domain(self) -> Category:
        return Category(id=self.id, name=self.name, slug=self.slug, emoji=self.emoji, color=self.color)


class InventoryMovementRecord(db.Model):
    """Append-only stock movement log (sales and manual adjustments)."""
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.Index("ix_inventory_movements_product_created", "product_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)  # SALE, ADJUSTMENT
    quantity = db.Column(db.Integer, nullable=False)  # signed delta
    reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def apply(self, movement: InventoryMovement) -> "InventoryMovementRecord":
        self.id = movement.id
        self.product_id = movement.product_id
        self.product_name = movement.product_name
        self.type = movement.type.value
        self.quantity = movement.quantity
        self.reason = movement.reason
        self.created_at = movement.created_at
        return self

    def to_domain(self) -> InventoryMovement:
        return InventoryMovement(
            id=self.id,
            product_id=self.product_id,
            product_name=self.product_name,
            type=MovementType(self.type),
            quantity=self.quantity,
            reason=self.reason,
            created_at=self.created_at,
        )
