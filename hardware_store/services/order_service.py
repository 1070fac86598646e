# hardware_store/services/order_service.py
import logging
import math
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from hardware_store.core.errors import (
    EmptyOrderError,
    InvalidQuantityError,
    InsufficientStockError,
    InvalidTransitionError,
    OrderNotFoundError,
    OrderNumberCollisionError,
    ProductNotFoundError,
    ProductUnavailableError,
)
from hardware_store.core.logging import log_order_status
from hardware_store.domain.ledger import (
    as_utc,
    closing_reason,
    current_status,
    status_durations,
)
from hardware_store.domain.order_number import generate_order_number
from hardware_store.domain.order_status import (
    INITIAL_STATUS,
    STATUS_LABELS,
    OrderStatus,
    allowed_targets,
    validate_transition,
)
from hardware_store.models.order import (
    Order,
    OrderItem,
    OrderStatusEvent,
    utcnow,
)
from hardware_store.models.product import Product
from hardware_store.repositories.order_repo import OrderRepository
from hardware_store.repositories.product_repo import ProductRepository
from hardware_store.repositories.status_event_repo import StatusEventRepository
from hardware_store.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderListPage,
    OrderRead,
    OrderStatusUpdate,
    OrderTimelineRead,
    OrderTrackingRead,
    OrderWithItemsRead,
    PublicStatusEventRead,
    StatusEventRead,
)
from hardware_store.services.notification_service import (
    NotificationDispatcher,
    NullNotificationDispatcher,
    StatusNotification,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

REGISTERED_ORDER_NOTE = "Order placed by registered customer"
GUEST_ORDER_NOTE = "Order placed by guest customer"

# Reaching one of these puts the ordered units back on the shelf
RESTOCK_STATUSES = frozenset({OrderStatus.REJECTED, OrderStatus.CANCELLED})


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create orders: validate lines against the catalog, price them,
        allocate an order number, write the first ledger event
      - Move orders through the status graph (admin), keeping
        orders.status and the ledger in one transaction
      - Read views: admin detail / list, public tracking, timeline
      - Signal the notifier after every committed status change

    The service owns transactions; repositories never commit.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        event_repo: StatusEventRepository,
        notifier: NotificationDispatcher | None = None,
        max_number_attempts: int = 5,
        number_factory: Callable[[], str] = generate_order_number,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.event_repo = event_repo
        self.notifier = notifier or NullNotificationDispatcher()
        self.max_number_attempts = max_number_attempts
        self.number_factory = number_factory
        self.clock = clock

    # -------- Customer-facing operations --------

    def create_order(
        self,
        session: Session,
        payload: OrderCreate,
        customer_id: str | None = None,
    ) -> OrderWithItemsRead:
        """
        Place a new order.

        Steps:
          1. Reject empty orders and non-positive quantities.
          2. Ensure every product exists, is available and has stock.
          3. Price each line (given unit price, else catalog price).
          4. Allocate a unique order number (bounded retries).
          5. Insert order + items + first ledger event and take the
             units off the shelf, commit.
          6. Notify (order confirmation).
        """
        # 1) Shape checks
        if not payload.items:
            raise EmptyOrderError()
        for item in payload.items:
            if item.quantity <= 0:
                raise InvalidQuantityError(item.product_id, item.quantity)

        # 2) Catalog checks
        products = self.product_repo.get_many(
            session, [item.product_id for item in payload.items]
        )
        for item in payload.items:
            product = products.get(item.product_id)
            if product is None:
                raise ProductNotFoundError(item.product_id)
            if not product.is_available:
                raise ProductUnavailableError(product.name)

        # Same product may appear on several lines
        requested: dict[uuid.UUID, int] = {}
        for item in payload.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock_quantity < quantity:
                raise InsufficientStockError(product.name, product.stock_quantity, quantity)

        # 3) Pricing; totals are fixed from here on
        priced: list[tuple[Decimal, Decimal]] = []
        for item in payload.items:
            unit_price = item.unit_price
            if unit_price is None:
                unit_price = products[item.product_id].price
            unit_price = Decimal(unit_price).quantize(CENT)
            priced.append((unit_price, (unit_price * item.quantity).quantize(CENT)))

        total_amount = sum((subtotal for _, subtotal in priced), Decimal("0.00"))

        # 4) + 5) Insert under a fresh order number
        order = self._insert_with_unique_number(
            session, payload, customer_id, priced, total_amount, requested, products
        )

        log_order_status(order.order_number, None, order.status, customer_id)

        # 6) Confirmation SMS (and admin alert)
        self._notify(order, note=None)

        return self._build_order_detail(session, order)

    def track_order(self, session: Session, order_number: str) -> OrderTrackingRead:
        """
        Public tracking view by order number.
        """
        order = self._get_by_number_or_404(session, order_number)
        items = self.order_repo.list_items_for_order(session, order.id)
        events = self.event_repo.timeline_for(session, order.id)
        status = OrderStatus(order.status)

        return OrderTrackingRead(
            order_number=order.order_number,
            status=status,
            status_label=STATUS_LABELS[status],
            customer_name=order.customer_name,
            total_amount=order.total_amount,
            created_at=as_utc(order.created_at),
            updated_at=as_utc(order.updated_at),
            items=self._build_item_dtos(session, items),
            timeline=[self._build_public_event_dto(e) for e in events],
            closing_reason=closing_reason(events),
        )

    def get_order_timeline(
        self,
        session: Session,
        order_number: str,
        now: datetime | None = None,
    ) -> OrderTimelineRead:
        """
        Ordered ledger of an order plus derived reason and durations.
        """
        order = self._get_by_number_or_404(session, order_number)
        events = self.event_repo.timeline_for(session, order.id)

        return OrderTimelineRead(
            order_number=order.order_number,
            status=current_status(events),
            events=[self._build_public_event_dto(e) for e in events],
            closing_reason=closing_reason(events),
            durations=status_durations(events, now or self.clock()),
        )

    # -------- Admin operations --------

    def list_orders(
        self,
        session: Session,
        status: OrderStatus | None = None,
        search: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrderListPage:
        """
        List orders newest first with optional filters (admin only).
        """
        page = max(page, 1)
        orders, total = self.order_repo.list_all(
            session,
            status=status.value if status else None,
            search=search.strip() if search else None,
            start=as_utc(start) if start else None,
            end=as_utc(end) if end else None,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return OrderListPage(
            items=[self._build_order_dto(o) for o in orders],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if limit else 0,
        )

    def get_order(self, session: Session, order_id: uuid.UUID) -> OrderWithItemsRead:
        """
        Get any order with items and ledger (admin only).
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return self._build_order_detail(session, order)

    def get_order_by_number(
        self,
        session: Session,
        order_number: str,
    ) -> OrderWithItemsRead:
        order = self._get_by_number_or_404(session, order_number)
        return self._build_order_detail(session, order)

    def transition_order(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
        actor_id: str | None,
    ) -> OrderRead:
        """
        Move an order to a new status.

        Steps:
          1. Lock the order row and read its status.
          2. Validate the move (graph + reason).
          3. Compare-and-set the status; if another request moved the
             order first, fail against the status actually stored.
             Rejecting or cancelling returns the units to stock.
          4. Append the ledger event and commit both together.
          5. Notify. Failures there are logged only.
        """
        requested = payload.status

        # 1) Locked read
        order = self.order_repo.get_for_update(session, order_id)
        if order is None:
            session.rollback()
            raise OrderNotFoundError(order_id)
        current = order.status

        try:
            # 2) Rules
            validate_transition(current, requested, payload.note)

            # 3) Conditional write
            changed_at = self.clock()
            if not self.order_repo.compare_and_set_status(
                session, order.id, current, requested.value, changed_at
            ):
                session.rollback()
                stored = self.order_repo.get_status(session, order.id)
                if stored is None:
                    raise OrderNotFoundError(order_id)
                raise InvalidTransitionError(
                    stored,
                    requested.value,
                    [s.value for s in allowed_targets(stored)],
                )

            # Both targets are terminal, so this runs at most once per order
            if requested in RESTOCK_STATUSES:
                self._restore_stock(session, order.id)

            # 4) Ledger, same transaction
            self.event_repo.append(
                session,
                OrderStatusEvent(
                    order_id=order.id,
                    from_status=current,
                    to_status=requested.value,
                    changed_by=actor_id,
                    note=payload.note,
                    created_at=changed_at,
                ),
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        order = self.order_repo.get_by_id(session, order_id)
        log_order_status(order.order_number, current, order.status, actor_id)

        # 5) After commit only
        self._notify(order, note=payload.note)

        return self._build_order_dto(order)

    # -------- Helpers --------

    def _insert_with_unique_number(
        self,
        session: Session,
        payload: OrderCreate,
        customer_id: str | None,
        priced: list[tuple[Decimal, Decimal]],
        total_amount: Decimal,
        requested: dict[uuid.UUID, int],
        products: dict[uuid.UUID, Product],
    ) -> Order:
        for attempt in range(1, self.max_number_attempts + 1):
            order_number = self.number_factory()
            if self.order_repo.number_exists(session, order_number):
                logger.warning(
                    "Order number %s already taken (attempt %d)", order_number, attempt
                )
                continue

            now = self.clock()
            order = Order(
                order_number=order_number,
                customer_id=customer_id,
                customer_name=payload.customer_name,
                phone=payload.phone,
                address=payload.address,
                barangay=payload.barangay,
                landmarks=payload.landmarks,
                notes=payload.notes,
                total_amount=total_amount,
                status=INITIAL_STATUS.value,
                created_at=now,
                updated_at=now,
            )
            try:
                order = self.order_repo.create_order(session, order)
            except IntegrityError:
                # Lost a race for the same number
                session.rollback()
                logger.warning(
                    "Order number %s collided on insert (attempt %d)",
                    order_number,
                    attempt,
                )
                continue

            try:
                for product_id, quantity in requested.items():
                    if not self.product_repo.reserve_stock(session, product_id, quantity):
                        # Someone else bought the last units since the check
                        raise InsufficientStockError(
                            products[product_id].name,
                            self.product_repo.get_stock(session, product_id) or 0,
                            quantity,
                        )

                self.order_repo.create_items(
                    session,
                    [
                        OrderItem(
                            order_id=order.id,
                            product_id=item.product_id,
                            variant_id=item.variant_id,
                            variant_name=item.variant_name,
                            quantity=item.quantity,
                            unit_price=unit_price,
                            subtotal=subtotal,
                        )
                        for item, (unit_price, subtotal) in zip(payload.items, priced)
                    ],
                )
                self.event_repo.append(
                    session,
                    OrderStatusEvent(
                        order_id=order.id,
                        from_status=None,
                        to_status=INITIAL_STATUS.value,
                        changed_by=customer_id,
                        note=REGISTERED_ORDER_NOTE if customer_id else GUEST_ORDER_NOTE,
                        created_at=now,
                    ),
                )
                session.commit()
            except Exception:
                session.rollback()
                raise

            session.refresh(order)
            return order

        raise OrderNumberCollisionError(self.max_number_attempts)

    def _restore_stock(self, session: Session, order_id: uuid.UUID) -> None:
        for item in self.order_repo.list_items_for_order(session, order_id):
            self.product_repo.restore_stock(session, item.product_id, item.quantity)

    def _get_by_number_or_404(self, session: Session, order_number: str) -> Order:
        order = self.order_repo.get_by_number(session, order_number.strip().upper())
        if not order:
            raise OrderNotFoundError(order_number)
        return order

    def _notify(self, order: Order, note: str | None) -> None:
        try:
            self.notifier.notify(
                StatusNotification(
                    order_id=order.id,
                    order_number=order.order_number,
                    phone=order.phone,
                    customer_name=order.customer_name,
                    status=OrderStatus(order.status),
                    total_amount=order.total_amount,
                    note=note,
                )
            )
        except Exception:
            logger.exception(
                "Notification for order %s (%s) failed",
                order.order_number,
                order.status,
            )

    # -------- Helper DTO builders --------

    def _build_order_dto(self, order: Order) -> OrderRead:
        return OrderRead(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            phone=order.phone,
            address=order.address,
            barangay=order.barangay,
            landmarks=order.landmarks,
            notes=order.notes,
            status=OrderStatus(order.status),
            total_amount=order.total_amount,
            created_at=as_utc(order.created_at),
            updated_at=as_utc(order.updated_at),
        )

    def _build_item_dtos(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItemRead]:
        products: dict[uuid.UUID, Product] = self.product_repo.get_many(
            session, [it.product_id for it in items]
        )
        dtos: list[OrderItemRead] = []
        for it in items:
            product = products.get(it.product_id)
            dtos.append(
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_id=it.product_id,
                    product_name=product.name if product else None,
                    variant_id=it.variant_id,
                    variant_name=it.variant_name,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    subtotal=it.subtotal,
                )
            )
        return dtos

    def _build_event_dto(self, event: OrderStatusEvent) -> StatusEventRead:
        return StatusEventRead(
            id=event.id,
            from_status=OrderStatus(event.from_status) if event.from_status else None,
            to_status=OrderStatus(event.to_status),
            changed_by=event.changed_by,
            note=event.note,
            created_at=as_utc(event.created_at),
        )

    def _build_public_event_dto(self, event: OrderStatusEvent) -> PublicStatusEventRead:
        return PublicStatusEventRead(
            from_status=OrderStatus(event.from_status) if event.from_status else None,
            to_status=OrderStatus(event.to_status),
            note=event.note,
            created_at=as_utc(event.created_at),
        )

    def _build_order_detail(
        self,
        session: Session,
        order: Order,
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models, ledger included.
        """
        items = self.order_repo.list_items_for_order(session, order.id)
        events = self.event_repo.timeline_for(session, order.id)
        status = OrderStatus(order.status)

        return OrderWithItemsRead(
            **self._build_order_dto(order).model_dump(),
            items=self._build_item_dtos(session, items),
            timeline=[self._build_event_dto(e) for e in events],
            allowed_transitions=[s for s in OrderStatus if s in allowed_targets(status)],
            closing_reason=closing_reason(events),
        )
