# hardware_store/core/errors.py
"""
Typed errors raised by the order services.

Every error carries a stable ``code`` and the HTTP status the API layer
maps it to. Services raise these; ``main.py`` turns them into JSON
responses of the form ``{"detail": ..., "code": ...}``.
"""
from __future__ import annotations

import uuid
from typing import Any, Iterable


class StoreError(Exception):
    """Base class for all domain errors surfaced to API callers."""

    code = "STORE_ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class OrderNotFoundError(StoreError):
    code = "ORDER_NOT_FOUND"
    status_code = 404

    def __init__(self, reference: uuid.UUID | str):
        self.reference = reference
        super().__init__(f"Order {reference} not found")


class InvalidTransitionError(StoreError):
    """Requested status is not reachable from the current status."""

    code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str, allowed: Iterable[str] = ()):
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        super().__init__(f"Invalid status transition: {current} -> {requested}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current
        data["allowed_transitions"] = self.allowed
        return data


class MissingReasonError(StoreError):
    """Rejection or cancellation attempted without a note."""

    code = "MISSING_REASON"
    status_code = 422

    def __init__(self, requested: str):
        self.requested = requested
        super().__init__(f"A reason is required to move an order to '{requested}'")


class EmptyOrderError(StoreError):
    code = "EMPTY_ORDER"

    def __init__(self):
        super().__init__("Order must have at least one item")


class InvalidQuantityError(StoreError):
    code = "INVALID_QUANTITY"

    def __init__(self, product_id: uuid.UUID, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            f"Quantity for product {product_id} must be positive (got {quantity})"
        )


class ProductNotFoundError(StoreError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: uuid.UUID):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found")


class ProductUnavailableError(StoreError):
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, name: str):
        super().__init__(f"{name} is currently unavailable")


class InsufficientStockError(StoreError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, name: str, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {name}. "
            f"Available: {available}, Requested: {requested}"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["available_stock"] = self.available
        return data


class OrderNumberCollisionError(StoreError):
    """Could not find a free order number within the retry budget."""

    code = "ORDER_NUMBER_COLLISION"
    status_code = 503

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique order number after {attempts} attempts"
        )


class NotificationDeliveryError(StoreError):
    """
    Raised inside the notification layer only.

    Never propagated to the caller of a status transition.
    """

    code = "NOTIFICATION_FAILED"
    status_code = 502


class SmsGatewayError(NotificationDeliveryError):
    """Every configured gateway failed to take the message; worth retrying."""
