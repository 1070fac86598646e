# hardware_store/repositories/stats_repo.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, col, select

from hardware_store.models.order import Order, OrderItem
from hardware_store.models.product import Category, Product


class StatsRepository:
    """
    Read-only queries for the admin dashboard and sales reports.

    Datetime bounds are expected in UTC.
    """

    def count_orders(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Order)
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_orders_since(self, session: Session, start: datetime) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.created_at >= start)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_by_status(self, session: Session, status: str) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.status == status)
        value = session.exec(stmt).one()
        return int(value or 0)

    def revenue_since(
        self,
        session: Session,
        start: datetime,
        statuses: list[str],
    ) -> Decimal:
        """
        Sum of total_amount for orders created since `start` that are
        currently in one of `statuses`.
        """
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.created_at >= start,
            col(Order.status).in_(statuses),
        )
        value = session.exec(stmt).one()
        return Decimal(str(value or 0)).quantize(Decimal("0.01"))

    def orders_between(
        self,
        session: Session,
        start: datetime,
        end: datetime,
    ) -> list[Order]:
        """
        Orders with start <= created_at < end, oldest first.
        """
        stmt = (
            select(Order)
            .where(Order.created_at >= start, Order.created_at < end)
            .order_by(col(Order.created_at))
        )
        return list(session.exec(stmt).all())

    def lines_for_orders(
        self,
        session: Session,
        order_ids: list[uuid.UUID],
    ) -> list[tuple]:
        """
        (order_id, product_id, product_name, category_id, category_name,
        quantity, subtotal) for every item of the given orders.
        """
        if not order_ids:
            return []

        stmt = (
            select(
                OrderItem.order_id,
                OrderItem.product_id,
                Product.name,
                Product.category_id,
                Category.name,
                OrderItem.quantity,
                OrderItem.subtotal,
            )
            .join(Product, Product.id == OrderItem.product_id)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(col(OrderItem.order_id).in_(order_ids))
        )
        return list(session.exec(stmt).all())

    def latest_orders(
        self,
        session: Session,
        limit: int = 5,
    ) -> list[Order]:
        """
        Latest N orders by created_at (any status).
        """
        stmt = (
            select(Order)
            .order_by(col(Order.created_at).desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())
