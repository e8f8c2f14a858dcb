# Overview: Receipt rendering for completed sales (JSON view model and fixed-width print text).

from __future__ import annotations

from datetime import timezone, tzinfo
from decimal import Decimal

from ..domain import AppSettings, Sale, money_out, quantize
from ..time_utils import to_local, to_utc_z
from .metrics_service import VAT_RATE

RECEIPT_WIDTH = 32
CURRENCY = "PHP"
FOOTER = "Thank you for your business!"


def _vat_label() -> str:
    return f"VAT ({int(VAT_RATE * 100)}%)"


def render_receipt(sale: Sale, settings: AppSettings, tz: tzinfo = timezone.utc) -> dict:
    """Display model for the receipt screen. Pure; never mutates the sale."""
    local_time = to_local(sale.created_at, tz)
    return {
        "header": {
            "shop_name": settings.shop_name,
            "shop_address": settings.shop_address,
            "tin": settings.tin,
        },
        "sale_id": sale.id,
        "order_no": sale.order_no,
        "timestamp": to_utc_z(sale.created_at),
        "local_time": local_time.strftime("%Y-%m-%d %H:%M"),
        "lines": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "price": money_out(item.price),
                "line_total": money_out(item.line_total),
            }
            for item in sale.items
        ],
        "item_count": sale.item_count,
        "subtotal": money_out(sale.subtotal),
        "vat_label": _vat_label(),
        "vat": money_out(sale.tax),
        "total": money_out(sale.total),
        "payment_method": sale.payment_method.value,
        "payment_label": sale.payment_method.label,
        "amount_paid": money_out(sale.amount_paid),
        "change_due": money_out(sale.change_due),
        "provider_ref": sale.provider_ref,
        "footer": FOOTER,
    }


def _amount(value: Decimal) -> str:
    return f"{quantize(value):,.2f}"


def _row(left: str, right: str, width: int) -> str:
    space = width - len(right) - 1
    if len(left) > space:
        left = left[: max(space, 0)]
    return f"{left:<{space}} {right}"


def render_receipt_text(
    sale: Sale,
    settings: AppSettings,
    tz: tzinfo = timezone.utc,
    width: int = RECEIPT_WIDTH,
) -> str:
    """Fixed-width layout for thermal printers."""
    rule = "-" * width
    lines = [settings.shop_name.center(width).rstrip()]
    if settings.shop_address:
        lines.append(settings.shop_address.center(width).rstrip())
    if settings.tin:
        lines.append(f"TIN: {settings.tin}".center(width).rstrip())
    lines.append(rule)
    lines.append(_row("OR No.", sale.order_no, width))
    lines.append(_row("Date", to_local(sale.created_at, tz).strftime("%Y-%m-%d %H:%M"), width))
    lines.append(rule)

    for item in sale.items:
        lines.append(_row(f"{item.quantity}x {item.name}", _amount(item.line_total), width))
        if item.quantity > 1:
            lines.append(f"   @ {_amount(item.price)}")

    lines.append(rule)
    lines.append(_row("Subtotal", _amount(sale.subtotal), width))
    lines.append(_row(_vat_label(), _amount(sale.tax), width))
    lines.append(_row("Total Due", f"{CURRENCY} {_amount(sale.total)}", width))
    lines.append(rule)
    lines.append(_row("Paid via", sale.payment_method.label, width))
    lines.append(_row("Tendered", _amount(sale.amount_paid), width))
    lines.append(_row("Change", _amount(sale.change_due), width))
    if sale.provider_ref:
        lines.append(_row("Ref", sale.provider_ref, width))
    lines.append(rule)
    lines.append(FOOTER.center(width).rstrip())
    return "\n".join(lines) + "\n"
