# hardware_store/schemas/stats.py
import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from hardware_store.domain.order_status import OrderStatus


class DailySeriesPoint(SQLModel):
    """
    One calendar day (report timezone) of the sales series.
    """
    model_config = ConfigDict(extra="forbid")

    date: date
    order_count: int
    revenue: Decimal
    realized_revenue: Decimal


class GrowthRead(SQLModel):
    """
    Percentage change against the previous window; None when the previous
    window had nothing to compare with.
    """
    model_config = ConfigDict(extra="forbid")

    revenue: float | None
    orders: float | None


class TopProduct(SQLModel):
    """
    Aggregated stats for top-selling products.
    """
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    name: str
    units_sold: int
    revenue: Decimal


class CategoryPerformance(SQLModel):
    model_config = ConfigDict(extra="forbid")

    category_id: uuid.UUID | None
    name: str
    units_sold: int
    revenue: Decimal
    order_count: int


class SalesReportRead(SQLModel):
    """
    Full payload for the sales report page.
    """
    model_config = ConfigDict(extra="forbid")

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
    growth: GrowthRead
    daily_series: list[DailySeriesPoint]
    top_products: list[TopProduct]
    category_performance: list[CategoryPerformance]


class LatestOrderSummary(SQLModel):
    """
    Lightweight info for last N orders.
    """
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    order_number: str
    created_at: datetime
    customer_name: str
    total_amount: Decimal
    status: OrderStatus


class AdminDashboardStats(SQLModel):
    """
    Payload for the admin dashboard cards.
    """
    model_config = ConfigDict(extra="forbid")

    total_orders: int
    today_orders: int
    pending_orders: int
    total_products: int
    today_revenue: Decimal
    latest_orders: list[LatestOrderSummary]
