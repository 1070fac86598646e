# hardware_store/repositories/status_event_repo.py
import uuid

from sqlmodel import Session, col, select

from hardware_store.models.order import OrderStatusEvent


class StatusEventRepository:
    """
    Append-only access to the order status ledger.

    Rows are only inserted; there is no update or delete.
    """

    def append(self, session: Session, event: OrderStatusEvent) -> OrderStatusEvent:
        session.add(event)
        session.flush()  # Assign autoincrement id
        return event

    def timeline_for(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderStatusEvent]:
        """
        Events for one order, oldest first.
        """
        stmt = (
            select(OrderStatusEvent)
            .where(OrderStatusEvent.order_id == order_id)
            .order_by(col(OrderStatusEvent.id))
        )
        return list(session.exec(stmt).all())

    def latest_for(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> OrderStatusEvent | None:
        stmt = (
            select(OrderStatusEvent)
            .where(OrderStatusEvent.order_id == order_id)
            .order_by(col(OrderStatusEvent.id).desc())
            .limit(1)
        )
        return session.exec(stmt).first()
