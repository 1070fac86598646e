from datetime import datetime, timezone
from itertools import cycle

import pytest

from hardware_store.domain.order_number import (
    generate_order_number,
    is_order_number,
    to_base36,
)


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"
    with pytest.raises(ValueError):
        to_base36(-1)


def test_order_number_shape():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    letters = cycle("A7Q2")
    number = generate_order_number(now=now, choice=lambda alphabet: next(letters))

    prefix, stamp, suffix = number.split("-")
    assert prefix == "ORD"
    assert int(stamp, 36) == 1704067200000
    assert suffix == "A7Q2"
    assert is_order_number(number)


def test_generated_numbers_are_valid_and_vary():
    numbers = {generate_order_number() for _ in range(20)}
    assert all(is_order_number(n) for n in numbers)
    assert len(numbers) > 1


def test_is_order_number_rejects_garbage():
    assert not is_order_number("ord-abc-1234")
    assert not is_order_number("ORD-ABC-12")
    assert not is_order_number("12345")
