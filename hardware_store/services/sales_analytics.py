# hardware_store/services/sales_analytics.py
"""
Sales report aggregation.

Pure functions over plain order facts: no database, no clock reads other
than ReportWindow.ending() when no end instant is given.

Revenue policy:
  - rejected / cancelled orders never count toward revenue (daily
    revenue, totals, growth, average order value, product and category
    rankings);
  - they do count as orders everywhere orders are counted.
  - realized revenue only counts completed orders.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Iterable, Sequence

from hardware_store.domain.ledger import as_utc
from hardware_store.domain.order_status import OrderStatus, counts_toward_revenue

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class LineFacts:
    product_id: uuid.UUID
    product_name: str
    category_id: uuid.UUID | None
    category_name: str
    quantity: int
    subtotal: Decimal


@dataclass(frozen=True)
class OrderFacts:
    order_id: uuid.UUID
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    lines: tuple[LineFacts, ...] = ()


@dataclass(frozen=True)
class ReportWindow:
    """
    `days` calendar days in `tz`, from local midnight of the first day up
    to (excluding) `end`.
    """

    days: int
    start: datetime
    end: datetime
    tz: tzinfo

    @classmethod
    def ending(
        cls,
        days: int,
        end: datetime | None = None,
        tz: tzinfo = timezone.utc,
    ) -> "ReportWindow":
        if days < 1:
            raise ValueError("days must be at least 1")
        end = as_utc(end) if end else datetime.now(timezone.utc)
        last_day = end.astimezone(tz).date()
        first_day = last_day - timedelta(days=days - 1)
        start = datetime.combine(first_day, time.min, tzinfo=tz)
        return cls(days=days, start=start, end=end, tz=tz)

    def previous(self) -> "ReportWindow":
        """Window of the same length immediately before this one."""
        first_day = self.first_day - timedelta(days=self.days)
        start = datetime.combine(first_day, time.min, tzinfo=self.tz)
        return ReportWindow(days=self.days, start=start, end=self.start, tz=self.tz)

    @property
    def first_day(self) -> date:
        return self.start.astimezone(self.tz).date()

    def day_of(self, instant: datetime) -> date:
        return as_utc(instant).astimezone(self.tz).date()

    def contains(self, instant: datetime) -> bool:
        """Half-open: start <= instant < end."""
        return self.start <= as_utc(instant) < self.end

    def dates(self) -> list[date]:
        return [self.first_day + timedelta(days=i) for i in range(self.days)]


@dataclass(frozen=True)
class DailyPoint:
    date: date
    order_count: int = 0
    revenue: Decimal = ZERO
    realized_revenue: Decimal = ZERO


@dataclass(frozen=True)
class Growth:
    revenue: float | None
    orders: float | None


@dataclass(frozen=True)
class ProductRank:
    product_id: uuid.UUID
    name: str
    units_sold: int
    revenue: Decimal


@dataclass(frozen=True)
class CategoryRank:
    category_id: uuid.UUID | None
    name: str
    units_sold: int
    revenue: Decimal
    order_count: int


@dataclass(frozen=True)
class SalesReport:
    days: int
    start: datetime
    end: datetime
    timezone: str
    total_orders: int
    total_revenue: Decimal
    realized_revenue: Decimal
    average_order_value: Decimal
    completion_rate: float
    cancellation_rate: float
    status_distribution: dict[str, int]
    growth: Growth
    daily_series: list[DailyPoint] = field(default_factory=list)
    top_products: list[ProductRank] = field(default_factory=list)
    category_performance: list[CategoryRank] = field(default_factory=list)


def percent_change(current: Decimal | int, previous: Decimal | int) -> float | None:
    """(current - previous) / previous * 100; None when previous is 0."""
    if not previous:
        return None
    return round(float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100), 2)


def _rate(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def booked_revenue(orders: Iterable[OrderFacts]) -> Decimal:
    return sum(
        (o.total_amount for o in orders if counts_toward_revenue(o.status)),
        ZERO,
    )


def daily_series(
    orders: Sequence[OrderFacts],
    window: ReportWindow,
) -> list[DailyPoint]:
    """One point per calendar day of the window, zero-filled."""
    buckets: dict[date, dict] = {
        day: {"order_count": 0, "revenue": ZERO, "realized_revenue": ZERO}
        for day in window.dates()
    }
    for order in orders:
        bucket = buckets.get(window.day_of(order.created_at))
        if bucket is None:
            continue
        bucket["order_count"] += 1
        if counts_toward_revenue(order.status):
            bucket["revenue"] += order.total_amount
        if order.status is OrderStatus.COMPLETED:
            bucket["realized_revenue"] += order.total_amount

    return [DailyPoint(date=day, **values) for day, values in buckets.items()]


def status_distribution(orders: Iterable[OrderFacts]) -> dict[str, int]:
    counts = {status.value: 0 for status in OrderStatus}
    for order in orders:
        counts[order.status.value] += 1
    return counts


def top_products(orders: Iterable[OrderFacts], limit: int = 10) -> list[ProductRank]:
    """Best sellers by units, then revenue; revenue-counting orders only."""
    totals: dict[uuid.UUID, dict] = {}
    for order in orders:
        if not counts_toward_revenue(order.status):
            continue
        for line in order.lines:
            entry = totals.setdefault(
                line.product_id,
                {"name": line.product_name, "units_sold": 0, "revenue": ZERO},
            )
            entry["units_sold"] += line.quantity
            entry["revenue"] += line.subtotal

    ranked = sorted(
        totals.items(),
        key=lambda kv: (-kv[1]["units_sold"], -kv[1]["revenue"], kv[1]["name"]),
    )
    return [ProductRank(product_id=pid, **values) for pid, values in ranked[:limit]]


def category_performance(orders: Iterable[OrderFacts]) -> list[CategoryRank]:
    """Revenue per category, highest first; revenue-counting orders only."""
    totals: dict[uuid.UUID | None, dict] = {}
    for order in orders:
        if not counts_toward_revenue(order.status):
            continue
        seen: set[uuid.UUID | None] = set()
        for line in order.lines:
            entry = totals.setdefault(
                line.category_id,
                {"name": line.category_name, "units_sold": 0, "revenue": ZERO, "order_count": 0},
            )
            entry["units_sold"] += line.quantity
            entry["revenue"] += line.subtotal
            if line.category_id not in seen:
                entry["order_count"] += 1
                seen.add(line.category_id)

    ranked = sorted(totals.items(), key=lambda kv: (-kv[1]["revenue"], kv[1]["name"]))
    return [CategoryRank(category_id=cid, **values) for cid, values in ranked]


def build_sales_report(
    current: Sequence[OrderFacts],
    previous: Sequence[OrderFacts],
    window: ReportWindow,
    top_n: int = 10,
) -> SalesReport:
    """
    Aggregate the current window and compare it with the previous one.

    Facts outside their window are ignored. Inputs are never mutated and
    empty input yields an all-zero report.
    """
    current = [o for o in current if window.contains(o.created_at)]
    prev_window = window.previous()
    previous = [o for o in previous if prev_window.contains(o.created_at)]

    total_orders = len(current)
    total_revenue = booked_revenue(current)
    realized = sum(
        (o.total_amount for o in current if o.status is OrderStatus.COMPLETED),
        ZERO,
    )
    distribution = status_distribution(current)

    if total_orders:
        average = (total_revenue / total_orders).quantize(CENT)
    else:
        average = ZERO

    return SalesReport(
        days=window.days,
        start=window.start,
        end=window.end,
        timezone=str(window.tz),
        total_orders=total_orders,
        total_revenue=total_revenue,
        realized_revenue=realized,
        average_order_value=average,
        completion_rate=_rate(distribution[OrderStatus.COMPLETED.value], total_orders),
        cancellation_rate=_rate(distribution[OrderStatus.CANCELLED.value], total_orders),
        status_distribution=distribution,
        growth=Growth(
            revenue=percent_change(total_revenue, booked_revenue(previous)),
            orders=percent_change(total_orders, len(previous)),
        ),
        daily_series=daily_series(current, window),
        top_products=top_products(current, limit=top_n),
        category_performance=category_performance(current),
    )
