# hardware_store/services/stats_service.py
from dataclasses import asdict
from datetime import datetime, time, timezone, tzinfo
from decimal import Decimal
from typing import Callable

from sqlmodel import Session

from hardware_store.domain.ledger import as_utc
from hardware_store.domain.order_status import OrderStatus
from hardware_store.models.order import Order, utcnow
from hardware_store.repositories.product_repo import ProductRepository
from hardware_store.repositories.stats_repo import StatsRepository
from hardware_store.schemas.stats import (
    AdminDashboardStats,
    LatestOrderSummary,
    SalesReportRead,
)
from hardware_store.services.sales_analytics import (
    LineFacts,
    OrderFacts,
    ReportWindow,
    build_sales_report,
)

# Orders whose money is in hand for the "today's revenue" card
REALIZED_STATUSES = [OrderStatus.DELIVERED.value, OrderStatus.COMPLETED.value]

UNCATEGORIZED = "Uncategorized"


class StatsService:
    """
    Orchestrates the admin dashboard and the sales report.

    Loading happens here; the arithmetic lives in sales_analytics.
    """

    def __init__(
        self,
        repo: StatsRepository,
        product_repo: ProductRepository,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.tz = tz
        self.clock = clock

    def get_sales_report(
        self,
        session: Session,
        days: int = 30,
        end: datetime | None = None,
        top_n: int = 10,
    ) -> SalesReportRead:
        """
        Sales report for the last `days` calendar days (report timezone),
        compared with the equally long window before it.
        """
        window = ReportWindow.ending(days, end or self.clock(), tz=self.tz)
        previous = window.previous()

        current_facts = self._load_facts(session, window)
        previous_facts = self._load_facts(session, previous)

        report = build_sales_report(current_facts, previous_facts, window, top_n=top_n)
        return SalesReportRead.model_validate(asdict(report))

    def get_admin_dashboard_stats(
        self,
        session: Session,
        latest_n_orders: int = 5,
    ) -> AdminDashboardStats:
        now = self.clock()
        local_midnight = datetime.combine(
            as_utc(now).astimezone(self.tz).date(), time.min, tzinfo=self.tz
        )
        today_start = as_utc(local_midnight)

        # Latest orders
        latest_orders: list[LatestOrderSummary] = []
        for o in self.repo.latest_orders(session, limit=latest_n_orders):
            latest_orders.append(
                LatestOrderSummary(
                    id=o.id,
                    order_number=o.order_number,
                    created_at=as_utc(o.created_at),
                    customer_name=o.customer_name,
                    total_amount=o.total_amount,
                    status=OrderStatus(o.status),
                )
            )

        return AdminDashboardStats(
            total_orders=self.repo.count_orders(session),
            today_orders=self.repo.count_orders_since(session, today_start),
            pending_orders=self.repo.count_by_status(session, OrderStatus.PENDING.value),
            total_products=self.product_repo.count(session),
            today_revenue=self.repo.revenue_since(session, today_start, REALIZED_STATUSES),
            latest_orders=latest_orders,
        )

    def _load_facts(self, session: Session, window: ReportWindow) -> list[OrderFacts]:
        orders: list[Order] = self.repo.orders_between(
            session, as_utc(window.start), as_utc(window.end)
        )

        lines: dict = {o.id: [] for o in orders}
        for row in self.repo.lines_for_orders(session, list(lines)):
            (
                order_id,
                product_id,
                product_name,
                category_id,
                category_name,
                quantity,
                subtotal,
            ) = row
            lines[order_id].append(
                LineFacts(
                    product_id=product_id,
                    product_name=product_name,
                    category_id=category_id,
                    category_name=category_name or UNCATEGORIZED,
                    quantity=int(quantity),
                    subtotal=Decimal(subtotal),
                )
            )

        return [
            OrderFacts(
                order_id=o.id,
                status=OrderStatus(o.status),
                total_amount=Decimal(o.total_amount),
                created_at=as_utc(o.created_at),
                lines=tuple(lines[o.id]),
            )
            for o in orders
        ]
