# hardware_store/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from hardware_store.core.sms_client import validate_phone_number
from hardware_store.domain.order_status import OrderStatus


class OrderItemCreate(SQLModel):
    """
    One requested line.

    Quantity is checked by the service so that a non-positive value gets
    the INVALID_QUANTITY error code rather than a generic 422.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    variant_id: uuid.UUID | None = None
    variant_name: str | None = None
    quantity: int
    # Omitted => current catalog price
    unit_price: Decimal | None = Field(default=None, gt=0)


class OrderCreate(SQLModel):
    """
    Payload for placing an order (guest or registered customer).

    Customer provides:
      - customer_name, phone
      - address, barangay, landmarks (optional)
      - notes (optional)
      - items

    Backend derives:
      - customer_id from token (None for guests)
      - order_number, status = 'pending'
      - subtotals and total_amount
    """

    model_config = ConfigDict(extra="forbid")

    customer_name: str
    phone: str
    address: str
    barangay: str
    landmarks: str | None = None
    notes: str | None = None
    items: list[OrderItemCreate]

    @field_validator("customer_name", "address", "barangay")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        return validate_phone_number(v)

    @field_validator("landmarks", "notes", mode="before")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    order_number: str
    customer_id: str | None
    customer_name: str
    phone: str
    address: str
    barangay: str
    landmarks: str | None
    notes: str | None
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    variant_id: uuid.UUID | None
    variant_name: str | None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class PublicStatusEventRead(SQLModel):
    """
    One ledger entry as shown on the public tracking pages.
    """

    from_status: OrderStatus | None
    to_status: OrderStatus
    note: str | None
    created_at: datetime


class StatusEventRead(PublicStatusEventRead):
    """
    One ledger entry, with the actor who made the change (admin views).
    """

    id: int
    changed_by: str | None


class OrderWithItemsRead(OrderRead):
    """
    Full order view: items, ledger and what can happen next.
    """

    items: list[OrderItemRead]
    timeline: list[StatusEventRead]
    allowed_transitions: list[OrderStatus]
    closing_reason: str | None = None


class OrderTrackingRead(SQLModel):
    """
    Public tracking view looked up by order number.

    Leaves out the delivery address, phone and who changed the status.
    """

    order_number: str
    status: OrderStatus
    status_label: str
    customer_name: str
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemRead]
    timeline: list[PublicStatusEventRead]
    closing_reason: str | None = None


class OrderTimelineRead(SQLModel):
    """
    Ledger of one order with derived per-status durations (seconds).
    """

    order_number: str
    status: OrderStatus
    events: list[PublicStatusEventRead]
    closing_reason: str | None = None
    durations: dict[str, float]


class OrderListPage(SQLModel):
    """
    Paginated admin order list.
    """

    items: list[OrderRead]
    total: int
    page: int
    limit: int
    pages: int


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.

    `note` is required for rejected / cancelled and becomes the reason
    shown to the customer.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
    note: str | None = None

    @field_validator("note", mode="before")
    @classmethod
    def normalize_note(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None
