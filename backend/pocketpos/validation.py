from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

from pocketpos.domain import PaymentMethod, quantize, to_money


# Prevents nonsensical prices from the inventory form
MAX_PRICE = Decimal("9999999.99")

SLUG_RE = re.compile(r"[^a-z0-9]+")


class ValidationError(ValueError):
    """400-level input problem. `fields` maps field name -> message for inline form errors."""

    def __init__(self, message: str, fields: dict[str, str] | None = None):
        super().__init__(message)
        self.fields = fields or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - coercers: what clients are allowed to set, and how each value is normalized
    - required_on_create: fields required for POST
    """
    coercers: dict[str, Callable[[str, Any], Any]]
    required_on_create: set[str] = field(default_factory=set)


def coerce_text(key: str, value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_required_text(key: str, value: Any) -> str:
    text = coerce_text(key, value)
    if not text:
        raise ValidationError(f"{key} is required", {key: "Required"})
    return text


def coerce_money(key: str, value: Any) -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{key} is required", {key: "Required"})
    try:
        amount = to_money(value)
    except ValueError:
        raise ValidationError(f"{key} must be a number", {key: "Must be a number"})
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a number", {key: "Must be a number"})
    if amount < 0:
        raise ValidationError(f"{key} cannot be negative", {key: "Cannot be negative"})
    if amount > MAX_PRICE:
        raise ValidationError(f"{key} exceeds maximum of {MAX_PRICE}", {key: "Too large"})
    # Both backends hold whole centavos
    if amount != quantize(amount):
        raise ValidationError(
            f"{key} cannot have more than 2 decimal places", {key: "At most 2 decimal places"}
        )
    return quantize(amount)


def coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{key} must be an integer", {key: "Must be a whole number"})


def coerce_non_negative_int(key: str, value: Any) -> int:
    number = coerce_int(key, value)
    if number < 0:
        raise ValidationError(f"{key} cannot be negative", {key: "Cannot be negative"})
    return number


def coerce_optional_threshold(key: str, value: Any) -> int | None:
    if value is None or value == "":
        return None
    return coerce_non_negative_int(key, value)


def validate_payload(*, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a policy allowlist.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: update semantics (only validate provided fields)

    All field errors are collected so forms can show them inline at once.
    """
    if not isinstance(payload, dict):
        raise ValidationError("JSON object body required")

    errors: dict[str, str] = {}
    patch: dict[str, Any] = {}

    if not partial:
        for key in sorted(policy.required_on_create):
            if payload.get(key) in (None, ""):
                errors[key] = "Required"

    for key, coerce in policy.coercers.items():
        if key not in payload or key in errors:
            continue
        try:
            patch[key] = coerce(key, payload[key])
        except ValidationError as exc:
            errors.update(exc.fields or {key: str(exc)})

    if errors:
        raise ValidationError("Invalid input: " + ", ".join(sorted(errors)), errors)
    return patch


PRODUCT_POLICY = ModelValidationPolicy(
    coercers={
        "sku": coerce_required_text,
        "name": coerce_required_text,
        "price": coerce_money,
        "cost": coerce_money,
        "stock": coerce_non_negative_int,
        "low_stock_threshold": coerce_optional_threshold,
        "category": coerce_text,
        "emoji": coerce_text,
        "image": coerce_text,
    },
    required_on_create={"sku", "name", "price"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    coercers={
        "name": coerce_required_text,
        "slug": coerce_text,
        "emoji": coerce_text,
        "color": coerce_text,
    },
    required_on_create={"name"},
)

SETTINGS_POLICY = ModelValidationPolicy(
    coercers={
        "shop_name": coerce_required_text,
        "shop_address": lambda key, value: coerce_text(key, value) or "",
        "tin": lambda key, value: coerce_text(key, value) or "",
    },
)


def enforce_rules_product(patch: dict, existing: dict | None = None) -> None:
    """
    Cross-field product rules, checked at input time only.

    price >= cost is evaluated against the merged record so a partial update
    of either side is still checked.
    """
    merged = dict(existing or {})
    merged.update(patch)
    price = merged.get("price")
    cost = merged.get("cost")
    if price is not None and cost is not None and to_money(price) < to_money(cost):
        raise ValidationError(
            "price must be greater than or equal to cost",
            {"price": "Must not be below cost"},
        )


def slugify(value: str) -> str:
    return SLUG_RE.sub("-", value.strip().lower()).strip("-")


def parse_payment_method(value: Any) -> PaymentMethod:
    try:
        return PaymentMethod(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(
            f"Invalid payment method: {value}. Must be one of {valid}",
            {"method": "Unknown payment method"},
        )


def parse_quantity(value: Any, *, key: str = "quantity") -> int:
    quantity = coerce_int(key, value)
    if quantity < 1:
        raise ValidationError(f"{key} must be at least 1", {key: "Must be at least 1"})
    return quantity
