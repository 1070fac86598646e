# hardware_store/routers/orders.py
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlmodel import Session

from hardware_store.core.auth import get_optional_customer_id, require_admin
from hardware_store.core.config import get_settings
from hardware_store.database import get_session
from hardware_store.domain.order_status import OrderStatus
from hardware_store.repositories.order_repo import OrderRepository
from hardware_store.repositories.product_repo import ProductRepository
from hardware_store.repositories.status_event_repo import StatusEventRepository
from hardware_store.schemas.order import (
    OrderCreate,
    OrderListPage,
    OrderRead,
    OrderStatusUpdate,
    OrderTimelineRead,
    OrderTrackingRead,
    OrderWithItemsRead,
)
from hardware_store.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
event_repo = StatusEventRepository()


def get_order_service(request: Request) -> OrderService:
    """
    OrderService wired to the app's notifier (started in the lifespan).
    """
    return OrderService(
        order_repo,
        product_repo,
        event_repo,
        notifier=request.app.state.notifier,
        max_number_attempts=get_settings().ORDER_NUMBER_MAX_ATTEMPTS,
    )


# -------- Public endpoints --------


@router.post(
    "",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    customer_id: str | None = Depends(get_optional_customer_id),
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order.

    Auth:
      - Optional. With a bearer token the order is linked to the customer;
        without one it is a guest order.
    """
    return service.create_order(session, payload, customer_id=customer_id)


@router.get(
    "/track/{order_number}",
    response_model=OrderTrackingRead,
)
def track_order(
    order_number: str,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Public order tracking by order number.
    """
    return service.track_order(session, order_number)


@router.get(
    "/track/{order_number}/timeline",
    response_model=OrderTimelineRead,
)
def get_order_timeline(
    order_number: str,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Status history of an order, oldest first, with time spent per status.
    """
    return service.get_order_timeline(session, order_number)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=OrderListPage,
    dependencies=[Depends(require_admin)],
)
def list_orders(
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    search: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    """
    List orders (admin only).

    Filters:
      - status
      - search: order number, customer name or phone
      - start_date / end_date: created_at range
    """
    return service.list_orders(
        session,
        status=status_filter,
        search=search,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_admin)],
)
def get_order_admin(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Get any order with items and status history (admin only).
    """
    return service.get_order(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
    actor_id: str = Depends(require_admin),
):
    """
    Update order status (admin only).

      pending          -> accepted, rejected

      accepted         -> preparing, cancelled

      preparing        -> out_for_delivery, cancelled

      out_for_delivery -> delivered, cancelled

      delivered        -> completed

    Rejecting or cancelling requires a `note` (the reason).
    """
    return service.transition_order(session, order_id, payload, actor_id)
