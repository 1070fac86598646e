# hardware_store/services/notification_service.py
"""
Customer notifications triggered by order status changes.

OrderService calls `notify()` after the status change is committed. A
dispatcher must never let an exception escape into the caller: the
order has already moved and the request must still succeed.

Dispatchers:
  - NullNotificationDispatcher: drops everything.
  - SmsNotificationDispatcher: renders a per-status SMS and sends it
    (with retries) through SmsClient.
  - BackgroundNotificationDispatcher: hands notifications to a worker
    thread so request handlers never wait on the SMS gateway.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Protocol

from hardware_store.core.config import Settings
from hardware_store.core.errors import NotificationDeliveryError, SmsGatewayError
from hardware_store.core.retry import retry_with_backoff
from hardware_store.core.sms_client import SmsClient
from hardware_store.domain.order_status import OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusNotification:
    order_id: uuid.UUID
    order_number: str
    phone: str
    customer_name: str
    status: OrderStatus
    total_amount: Decimal
    note: str | None = None


class NotificationDispatcher(Protocol):
    def notify(self, notification: StatusNotification) -> None: ...


class NullNotificationDispatcher:
    """Drops every notification."""

    def notify(self, notification: StatusNotification) -> None:
        logger.debug(
            "Notification dropped for %s (%s)",
            notification.order_number,
            notification.status.value,
        )


# ---------------------------------------------------------------------------
# SMS
# ---------------------------------------------------------------------------


def _peso(amount: Decimal) -> str:
    return f"P{Decimal(amount):.2f}"


def render_customer_message(
    notification: StatusNotification,
    store_name: str,
    store_phone: str,
) -> str:
    """
    SMS text the customer receives when their order enters a status.
    """
    number = notification.order_number
    reason = f": {notification.note}" if notification.note else ""
    status = notification.status

    if status is OrderStatus.PENDING:
        return (
            f"[{store_name}] Order {number} received! "
            f"Total: {_peso(notification.total_amount)}. "
            "We'll notify you when accepted. Salamat po!"
        )
    if status is OrderStatus.ACCEPTED:
        return (
            f"[{store_name}] Good news! Order {number} ACCEPTED & being prepared. "
            "We'll update you when out for delivery."
        )
    if status is OrderStatus.REJECTED:
        return (
            f"Order {number} cannot be processed{reason}. "
            f"Contact {store_phone} for help. Sorry for inconvenience."
        )
    if status is OrderStatus.PREPARING:
        return (
            f"[{store_name}] Order {number} is being prepared! "
            "We'll notify you when out for delivery."
        )
    if status is OrderStatus.OUT_FOR_DELIVERY:
        eta = f" ETA: {notification.note}." if notification.note else ""
        return (
            f"Your order {number} is ON THE WAY!{eta} "
            "Please prepare payment. Thank you!"
        )
    if status in (OrderStatus.DELIVERED, OrderStatus.COMPLETED):
        return (
            f"Order {number} DELIVERED! Thank you for shopping with {store_name}. "
            "We appreciate your business!"
        )
    if status is OrderStatus.CANCELLED:
        return f"Order {number} cancelled{reason}. Questions? Contact {store_phone}."

    raise ValueError(f"No SMS template for status {status}")


def render_admin_new_order(notification: StatusNotification) -> str:
    return (
        f"NEW ORDER! {notification.order_number} - "
        f"{_peso(notification.total_amount)} from {notification.customer_name}. "
        "Check dashboard now."
    )


class SmsNotificationDispatcher:
    """
    Sends status SMS to the customer, and a new-order alert to the store
    admin phone when one is configured.

    Gateway errors are retried with exponential backoff, then logged.
    A bad number or a missing provider is logged without retrying.
    """

    def __init__(
        self,
        sms_client: SmsClient,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sms_client = sms_client
        self.settings = settings
        self._send = retry_with_backoff(
            max_retries=settings.SMS_MAX_RETRIES,
            initial_delay=settings.SMS_RETRY_DELAY_SECONDS,
            exceptions=(SmsGatewayError,),
            sleep=sleep,
        )(sms_client.send)

    def notify(self, notification: StatusNotification) -> None:
        message = render_customer_message(
            notification,
            store_name=self.settings.STORE_NAME,
            store_phone=self.settings.STORE_PHONE,
        )
        self.deliver(notification.phone, message, notification.order_number)

        admin_phone = self.settings.ADMIN_NOTIFICATION_PHONE
        if notification.status is OrderStatus.PENDING and admin_phone:
            self.deliver(
                admin_phone,
                render_admin_new_order(notification),
                notification.order_number,
            )

    def deliver(self, phone: str, message: str, order_number: str) -> bool:
        """
        Send one message. Returns False (and logs) if it could not be
        delivered after all retries.
        """
        try:
            self._send(phone, message)
            return True
        except SmsGatewayError as exc:
            logger.error(
                "SMS for order %s to %s failed after %d attempt(s): %s",
                order_number,
                phone,
                self.settings.SMS_MAX_RETRIES + 1,
                exc,
                extra={"order_number": order_number, "phone": phone},
            )
            return False
        except NotificationDeliveryError as exc:
            logger.error(
                "SMS for order %s to %s not sent: %s",
                order_number,
                phone,
                exc,
                extra={"order_number": order_number, "phone": phone},
            )
            return False


# ---------------------------------------------------------------------------
# Background worker
# ---------------------------------------------------------------------------


class BackgroundNotificationDispatcher:
    """
    Queue in front of another dispatcher, drained by one daemon thread.

    notify() only enqueues. start() / stop() are called from the app
    lifespan; stop() lets the worker finish what is already queued.
    """

    _STOP = object()

    def __init__(self, inner: NotificationDispatcher, join_timeout: float = 10.0):
        self.inner = inner
        self.join_timeout = join_timeout
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run,
            name="notification-worker",
            daemon=True,
        )
        self._thread.start()
        logger.info("Notification worker started")

    def stop(self) -> None:
        if self._thread is None:
            return
        self._queue.put(self._STOP)
        self._thread.join(timeout=self.join_timeout)
        self._thread = None
        logger.info("Notification worker stopped")

    def notify(self, notification: StatusNotification) -> None:
        self._queue.put(notification)

    def join(self) -> None:
        """Block until everything queued so far has been handled."""
        self._queue.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self.inner.notify(item)
            except Exception:
                logger.exception(
                    "Notification for order %s failed",
                    getattr(item, "order_number", "?"),
                )
            finally:
                self._queue.task_done()
