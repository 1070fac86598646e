# hardware_store/domain/order_status.py
"""
Order status catalog and transition rules.

    pending          -> accepted, rejected
    accepted         -> preparing, cancelled
    preparing        -> out_for_delivery, cancelled
    out_for_delivery -> delivered, cancelled
    delivered        -> completed
    rejected, completed, cancelled are terminal.

A pending order is *rejected*, never cancelled; once accepted it can only
be *cancelled*. Both need a reason.
"""
from __future__ import annotations

from enum import Enum

from hardware_store.core.errors import InvalidTransitionError, MissingReasonError


class OrderStatus(str, Enum):
    """Order status enumeration."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


INITIAL_STATUS = OrderStatus.PENDING

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.REJECTED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset(
        {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset(
        {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    ),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.REJECTED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.ACCEPTED: "Accepted",
    OrderStatus.REJECTED: "Rejected",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}

# Declines that must carry a note for the customer
REASON_REQUIRED: frozenset[OrderStatus] = frozenset(
    {OrderStatus.REJECTED, OrderStatus.CANCELLED}
)

# Statuses whose totals never count as booked revenue
REVENUE_EXCLUDED: frozenset[OrderStatus] = frozenset(
    {OrderStatus.REJECTED, OrderStatus.CANCELLED}
)


def _check_catalog() -> None:
    for name, table in (
        ("ALLOWED_TRANSITIONS", ALLOWED_TRANSITIONS),
        ("STATUS_LABELS", STATUS_LABELS),
    ):
        missing = set(OrderStatus) - set(table)
        if missing:
            raise RuntimeError(
                f"{name} has no entry for: {sorted(s.value for s in missing)}"
            )


_check_catalog()


def allowed_targets(status: OrderStatus | str) -> frozenset[OrderStatus]:
    return ALLOWED_TRANSITIONS[OrderStatus(status)]


def is_terminal(status: OrderStatus | str) -> bool:
    return not allowed_targets(status)


def requires_reason(status: OrderStatus | str) -> bool:
    return OrderStatus(status) in REASON_REQUIRED


def counts_toward_revenue(status: OrderStatus | str) -> bool:
    return OrderStatus(status) not in REVENUE_EXCLUDED


def validate_transition(
    current: OrderStatus | str,
    requested: OrderStatus | str,
    note: str | None = None,
) -> None:
    """
    Check a requested status change against the transition graph.

    Raises:
        InvalidTransitionError: ``requested`` is not a target of ``current``
            (same-status requests and anything out of a terminal state
            included).
        MissingReasonError: the move is a rejection or cancellation and
            ``note`` is empty.
    """
    current = OrderStatus(current)
    requested = OrderStatus(requested)
    allowed = ALLOWED_TRANSITIONS[current]

    if requested not in allowed:
        raise InvalidTransitionError(
            current.value,
            requested.value,
            [s.value for s in allowed],
        )

    if requested in REASON_REQUIRED and not (note and note.strip()):
        raise MissingReasonError(requested.value)
