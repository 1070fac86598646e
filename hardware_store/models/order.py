# hardware_store/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field

from hardware_store.domain.order_status import INITIAL_STATUS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(SQLModel, table=True):
    """
    Customer order.

    Columns:
      - id, order_number, customer_id, customer_name, phone,
        address, barangay, landmarks, notes,
        total_amount, status, created_at, updated_at

    `status` only changes through OrderService.transition_order, which
    writes the matching OrderStatusEvent in the same transaction.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_number: str = Field(
        max_length=32,
        unique=True,
        index=True,
        description="Public order number, ORD-<time>-<random>",
    )

    customer_id: str | None = Field(
        default=None,
        index=True,
        description="Registered customer id; NULL for guest checkout",
    )

    customer_name: str = Field(
        description="Name of the person receiving the order",
    )
    phone: str = Field(
        index=True,
        description="Contact phone number (09XXXXXXXXX)",
    )
    address: str = Field(
        description="Street address for delivery",
    )
    barangay: str = Field(
        description="Barangay / locality",
    )
    landmarks: str | None = Field(
        default=None,
        description="Optional landmarks to help the rider",
    )
    notes: str | None = Field(
        default=None,
        description="Optional customer notes",
    )

    # Sum of item subtotals, fixed at creation
    total_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=12,
        decimal_places=2,
    )

    status: str = Field(
        default=INITIAL_STATUS.value,
        max_length=32,
        index=True,
        description="Order status lifecycle",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        index=True,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last status change (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order. Immutable once the order exists.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    variant_id: uuid.UUID | None = Field(
        default=None,
        description="Product variant, if one was picked",
    )
    variant_name: str | None = Field(
        default=None,
        description="Variant display name at time of order",
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    # Price captured at order time, never re-read from the catalog
    unit_price: Decimal = Field(
        max_digits=12,
        decimal_places=2,
    )
    subtotal: Decimal = Field(
        max_digits=12,
        decimal_places=2,
    )


class OrderStatusEvent(SQLModel, table=True):
    """
    One entry of an order's status ledger. Rows are only ever inserted.

    The autoincrement id defines ledger order.
    """

    __tablename__ = "order_status_events"

    id: int | None = Field(default=None, primary_key=True)

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    # NULL only for the event written at order creation
    from_status: str | None = Field(default=None, max_length=32)
    to_status: str = Field(max_length=32)

    changed_by: str | None = Field(
        default=None,
        description="Actor id of the admin who made the change",
    )
    note: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the transition happened (UTC)",
    )
