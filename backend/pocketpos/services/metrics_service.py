# Overview: Dashboard metrics; pure functions over sales and product snapshots.

"""
Metrics Aggregator

Everything here is a pure function of its inputs: no storage access, no
clock reads unless the caller passes `as_of=None`.

Prices are VAT-inclusive. The VAT share is back-calculated:
    net = gross / (1 + VAT_RATE)
    vat = gross - net
so net + vat always equals gross exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Iterable

from ..domain import ZERO, Product, Sale, money_out, quantize
from ..time_utils import local_date, to_local, utcnow

# Philippine VAT; fixed, not configurable per sale
VAT_RATE = Decimal("0.12")
DEFAULT_LOW_STOCK_THRESHOLD = 10


def vat_breakdown(gross: Decimal) -> tuple[Decimal, Decimal]:
    """Split a VAT-inclusive amount into (net, vat), each rounded to the cent."""
    net = quantize(gross / (1 + VAT_RATE))
    return net, gross - net


def sales_on(sales: Iterable[Sale], day: date, tz: tzinfo = timezone.utc) -> list[Sale]:
    return [s for s in sales if local_date(s.created_at, tz) == day]


@dataclass(frozen=True)
class DailyTotals:
    day: date
    gross: Decimal
    net: Decimal
    vat: Decimal
    order_count: int

    @property
    def average_ticket(self) -> Decimal:
        if not self.order_count:
            return ZERO
        return quantize(self.gross / self.order_count)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "gross": money_out(self.gross),
            "net": money_out(self.net),
            "vat": money_out(self.vat),
            "order_count": self.order_count,
            "average_ticket": money_out(self.average_ticket),
        }


def _resolve_day(as_of: date | datetime | None, tz: tzinfo) -> date:
    if as_of is None:
        return local_date(utcnow(), tz)
    if isinstance(as_of, datetime):
        return local_date(as_of, tz)
    return as_of


def daily_totals(
    sales: Iterable[Sale],
    as_of: date | datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> DailyTotals:
    """Gross/net/VAT over the sales whose local calendar day is `as_of`."""
    day = _resolve_day(as_of, tz)
    todays = sales_on(sales, day, tz)
    gross = sum((s.total for s in todays), ZERO)
    net, vat = vat_breakdown(gross)
    return DailyTotals(day=day, gross=gross, net=net, vat=vat, order_count=len(todays))


def hourly_velocity(sales: Iterable[Sale], tz: tzinfo = timezone.utc) -> dict[int, Decimal]:
    """
    Sales totals bucketed by local hour-of-day (0-23).

    Callers pass one day's sales. Hours without sales are absent, not zero.
    """
    buckets: dict[int, Decimal] = {}
    for sale in sales:
        hour = to_local(sale.created_at, tz).hour
        buckets[hour] = buckets.get(hour, ZERO) + sale.total
    return dict(sorted(buckets.items()))


@dataclass
class LowStockReport:
    threshold: int | None
    products: list[Product] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.products)

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "count": self.count,
            "items": [p.to_dict() for p in self.products],
        }


def low_stock(
    products: Iterable[Product],
    threshold: int | None = None,
    default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> LowStockReport:
    """
    Products with stock <= threshold.

    An explicit threshold applies to every product. Without one, each product
    uses its own low_stock_threshold, falling back to default_threshold.
    """
    flagged = []
    for product in products:
        if threshold is not None:
            limit = threshold
        elif product.low_stock_threshold is not None:
            limit = product.low_stock_threshold
        else:
            limit = default_threshold
        if product.stock <= limit:
            flagged.append(product)
    flagged.sort(key=lambda p: (p.stock, p.name.lower()))
    return LowStockReport(threshold=threshold, products=flagged)


def dashboard(
    sales: Iterable[Sale],
    products: Iterable[Product],
    as_of: date | datetime | None = None,
    tz: tzinfo = timezone.utc,
    default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> dict:
    sales = list(sales)
    totals = daily_totals(sales, as_of, tz)
    velocity = hourly_velocity(sales_on(sales, totals.day, tz), tz)
    report = low_stock(products, default_threshold=default_threshold)
    return {
        "date": totals.day.isoformat(),
        "totals": totals.to_dict(),
        "hourly_velocity": {str(hour): money_out(amount) for hour, amount in velocity.items()},
        "low_stock": report.to_dict(),
        "vat_rate": float(VAT_RATE),
    }
