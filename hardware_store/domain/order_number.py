# hardware_store/domain/order_number.py
"""
Human-readable order numbers.

Format: ``ORD-<base36 millisecond timestamp>-<4 random base36 chars>``,
all uppercase, e.g. ``ORD-MGU3X1QK-7Z2A``. Tracking pages depend on this
exact shape.
"""
from __future__ import annotations

import re
import secrets
from datetime import datetime, timezone
from typing import Callable

BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
RANDOM_LENGTH = 4

ORDER_NUMBER_PATTERN = re.compile(r"^ORD-[0-9A-Z]+-[0-9A-Z]{4}$")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_order_number(
    now: datetime | None = None,
    choice: Callable[[str], str] = secrets.choice,
) -> str:
    """Build a new order number from the current time and a random suffix."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(choice(BASE36_ALPHABET) for _ in range(RANDOM_LENGTH))
    return f"ORD-{to_base36(millis)}-{suffix}"


def is_order_number(value: str) -> bool:
    return bool(ORDER_NUMBER_PATTERN.match(value))
