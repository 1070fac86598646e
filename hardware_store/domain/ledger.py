# hardware_store/domain/ledger.py
"""
Read-side derivations over an order's status ledger.

The ledger is the append-only list of status events for one order,
oldest first. Nothing here mutates the events it is given.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, Sequence

from hardware_store.domain.order_status import (
    INITIAL_STATUS,
    REASON_REQUIRED,
    OrderStatus,
    is_terminal,
)


class StatusEventLike(Protocol):
    from_status: str | None
    to_status: str
    note: str | None
    created_at: datetime


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def current_status(
    events: Sequence[StatusEventLike],
    initial: OrderStatus = INITIAL_STATUS,
) -> OrderStatus:
    if not events:
        return initial
    return OrderStatus(events[-1].to_status)


def closing_reason(events: Sequence[StatusEventLike]) -> str | None:
    """Note attached to the most recent rejection or cancellation, if any."""
    for event in reversed(events):
        if OrderStatus(event.to_status) in REASON_REQUIRED:
            return event.note
    return None


def status_durations(
    events: Sequence[StatusEventLike],
    now: datetime | None = None,
) -> dict[str, float]:
    """
    Seconds spent in each status, rebuilt from consecutive event times.

    The latest status runs until ``now`` unless it is terminal.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    durations: dict[str, float] = {}

    for event, following in zip(events, list(events[1:]) + [None]):
        started = as_utc(event.created_at)
        if following is not None:
            ended = as_utc(following.created_at)
        elif is_terminal(event.to_status):
            ended = started
        else:
            ended = now
        elapsed = max((ended - started).total_seconds(), 0.0)
        durations[event.to_status] = durations.get(event.to_status, 0.0) + elapsed

    return durations
