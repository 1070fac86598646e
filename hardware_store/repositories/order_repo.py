# hardware_store/repositories/order_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from hardware_store.models.order import Order, OrderItem


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation and status changes are multi-step
        transactions. The service is responsible for calling
        session.commit() / session.rollback().
    """

    # ---- Orders ----

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def get_by_number(self, session: Session, order_number: str) -> Order | None:
        stmt = select(Order).where(Order.order_number == order_number)
        return session.exec(stmt).first()

    def get_for_update(self, session: Session, order_id: uuid.UUID) -> Order | None:
        """
        Load an order and lock its row until the transaction ends.

        FOR UPDATE is dropped by dialects without row locks (SQLite);
        compare_and_set_status still guards the write there.
        """
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def get_status(self, session: Session, order_id: uuid.UUID) -> str | None:
        stmt = select(Order.status).where(Order.id == order_id)
        return session.exec(stmt).first()

    def number_exists(self, session: Session, order_number: str) -> bool:
        stmt = select(Order.id).where(Order.order_number == order_number)
        return session.exec(stmt).first() is not None

    def list_all(
        self,
        session: Session,
        status: str | None = None,
        search: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Order], int]:
        """
        Admin listing, newest first. Returns (page, total matching rows).
        """
        filters = []
        if status:
            filters.append(Order.status == status)
        if search:
            filters.append(
                or_(
                    col(Order.order_number).contains(search),
                    col(Order.customer_name).contains(search),
                    col(Order.phone).contains(search),
                )
            )
        if start is not None:
            filters.append(Order.created_at >= start)
        if end is not None:
            filters.append(Order.created_at <= end)

        stmt = (
            select(Order)
            .where(*filters)
            .order_by(col(Order.created_at).desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Order).where(*filters)

        orders = list(session.exec(stmt).all())
        total = int(session.exec(count_stmt).one() or 0)
        return orders, total

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing. Flushing here makes a duplicate
        order_number fail fast with IntegrityError.
        """
        session.add(order)
        session.flush()
        return order

    def compare_and_set_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        expected: str,
        new: str,
        changed_at: datetime,
    ) -> bool:
        """
        Move the order to `new` only if it is still in `expected`.

        Returns False when another transaction changed the status first.
        """
        stmt = (
            update(Order)
            .where(col(Order.id) == order_id, col(Order.status) == expected)
            .values(status=new, updated_at=changed_at)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return list(session.exec(stmt).all())

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        return items
