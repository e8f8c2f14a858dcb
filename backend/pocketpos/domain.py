"""
Domain records shared by every storage backend.

Money is held as Decimal currency units (tax-inclusive prices). Timestamps
are UTC-naive, like everything produced by time_utils.utcnow().
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from pocketpos.time_utils import parse_iso_datetime, to_utc_z

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal into a Decimal amount."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("money value cannot be a boolean")
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"invalid money value: {value!r}")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_out(value: Decimal | None) -> float | None:
    """JSON-facing representation of an amount (2 decimal places)."""
    if value is None:
        return None
    return float(quantize(value))


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    QR_PH = "QR_PH"
    CARD = "CARD"
    MAYA_TERMINAL = "MAYA_TERMINAL"

    @property
    def is_digital(self) -> bool:
        return self is not PaymentMethod.CASH

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class SaleStatus(str, enum.Enum):
    PAID = "PAID"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    CANCELLED = "CANCELLED"


class MovementType(str, enum.Enum):
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"


@dataclass
class Category:
    id: str
    name: str
    slug: str
    emoji: str | None = None
    color: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "emoji": self.emoji,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            slug=data.get("slug") or data["name"].lower(),
            emoji=data.get("emoji"),
            color=data.get("color"),
        )


@dataclass
class Product:
    id: str
    sku: str
    name: str
    price: Decimal
    cost: Decimal = ZERO
    stock: int = 0
    low_stock_threshold: int | None = None
    category: str | None = None
    emoji: str | None = None
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "price": money_out(self.price),
            "cost": money_out(self.cost),
            "stock": self.stock,
            "low_stock_threshold": self.low_stock_threshold,
            "category": self.category,
            "emoji": self.emoji,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_record(self) -> dict:
        """Lossless form used by the JSON blob backend."""
        data = self.to_dict()
        data["price"] = str(self.price)
        data["cost"] = str(self.cost)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=str(data["id"]),
            sku=data["sku"],
            name=data["name"],
            price=to_money(data["price"]),
            cost=to_money(data.get("cost") or 0),
            stock=int(data.get("stock") or 0),
            low_stock_threshold=data.get("low_stock_threshold"),
            category=data.get("category"),
            emoji=data.get("emoji"),
            image=data.get("image"),
            created_at=parse_iso_datetime(data.get("created_at")),
            updated_at=parse_iso_datetime(data.get("updated_at")),
        )


@dataclass(frozen=True)
class CartItem:
    """Product snapshot plus quantity; price is frozen at add time."""
    product_id: str
    sku: str
    name: str
    price: Decimal
    quantity: int
    emoji: str | None = None

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        return cls(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            price=product.price,
            quantity=quantity,
            emoji=product.emoji,
        )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def with_quantity(self, quantity: int) -> "CartItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "price": money_out(self.price),
            "quantity": self.quantity,
            "line_total": money_out(self.line_total),
            "emoji": self.emoji,
        }


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    sku: str
    name: str
    price: Decimal
    quantity: int

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "SaleItem":
        return cls(
            product_id=item.product_id,
            sku=item.sku,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
        )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "price": money_out(self.price),
            "quantity": self.quantity,
            "line_total": money_out(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleItem":
        return cls(
            product_id=str(data["product_id"]),
            sku=data.get("sku") or "",
            name=data["name"],
            price=to_money(data["price"]),
            quantity=int(data["quantity"]),
        )


@dataclass(frozen=True)
class Sale:
    """
    A completed transaction. Immutable once appended to the ledger.

    Items are copies of the cart entries at finalization time, so later
    product edits never change a historical receipt.
    """
    id: str
    order_no: str
    items: tuple[SaleItem, ...]
    total: Decimal
    subtotal: Decimal
    tax: Decimal
    payment_method: PaymentMethod
    amount_paid: Decimal
    change_due: Decimal
    created_at: datetime
    status: SaleStatus = SaleStatus.PAID
    provider_ref: str | None = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_no": self.order_no,
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "total": money_out(self.total),
            "subtotal": money_out(self.subtotal),
            "tax": money_out(self.tax),
            "payment_method": self.payment_method.value,
            "amount_paid": money_out(self.amount_paid),
            "change_due": money_out(self.change_due),
            "status": self.status.value,
            "provider_ref": self.provider_ref,
            "created_at": to_utc_z(self.created_at),
        }

    def to_record(self) -> dict:
        data = self.to_dict()
        for key in ("total", "subtotal", "tax", "amount_paid", "change_due"):
            data[key] = str(getattr(self, key))
        data["items"] = [
            {**item.to_dict(), "price": str(item.price)} for item in self.items
        ]
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=str(data["id"]),
            order_no=str(data["order_no"]),
            items=tuple(SaleItem.from_dict(item) for item in data.get("items", [])),
            total=to_money(data["total"]),
            subtotal=to_money(data["subtotal"]),
            tax=to_money(data["tax"]),
            payment_method=PaymentMethod(data["payment_method"]),
            amount_paid=to_money(data["amount_paid"]),
            change_due=to_money(data["change_due"]),
            status=SaleStatus(data.get("status", SaleStatus.PAID.value)),
            provider_ref=data.get("provider_ref"),
            created_at=parse_iso_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class InventoryMovement:
    id: str
    product_id: str
    product_name: str
    type: MovementType
    quantity: int
    created_at: datetime
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.type.value,
            "quantity": self.quantity,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InventoryMovement":
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            product_name=data["product_name"],
            type=MovementType(data["type"]),
            quantity=int(data["quantity"]),
            reason=data.get("reason"),
            created_at=parse_iso_datetime(data["created_at"]),
        )


DEFAULT_SHOP_NAME = "PocketPOS PH"


@dataclass
class AppSettings:
    shop_name: str = DEFAULT_SHOP_NAME
    shop_address: str = ""
    tin: str = ""
    categories: list[Category] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "shop_name": self.shop_name,
            "shop_address": self.shop_address,
            "tin": self.tin,
            "categories": [c.to_dict() for c in self.categories],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        return cls(
            shop_name=data.get("shop_name") or DEFAULT_SHOP_NAME,
            shop_address=data.get("shop_address") or "",
            tin=data.get("tin") or "",
            categories=[Category.from_dict(c) for c in data.get("categories", [])],
        )
