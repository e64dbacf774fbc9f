"""Tests for calendar-month helpers and lenient coercion."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from leave_engine.services.dates import (
    coerce_date,
    coerce_number,
    floor_month,
    is_month_key,
    is_weekend,
    month_bounds,
    months_between,
    round2,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (date(2024, 3, 5), date(2024, 3, 5)),
        (datetime(2024, 3, 5, 23, 59), date(2024, 3, 5)),
        ("2024-03-05", date(2024, 3, 5)),
        ("2024-03-05T10:00:00", date(2024, 3, 5)),
        ("", None),
        ("not a date", None),
        (None, None),
        (42, None),
    ],
)
def test_coerce_date(value: object, expected: date | None) -> None:
    assert coerce_date(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1.5, 1.5), ("2", 2.0), (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (float("inf"), 0.0), (True, 0.0)],
)
def test_coerce_number(value: object, expected: float) -> None:
    assert coerce_number(value) == expected


def test_round2_is_half_up() -> None:
    assert round2(2.675) == 2.68
    assert round2(0.125) == 0.13
    assert round2(1 / 3) == 0.33
    assert round2(float("nan")) == 0.0


def test_month_bounds() -> None:
    assert month_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))


@pytest.mark.parametrize("value", ["2025-13", "2025-00", "2025-1", "202501", "", None, 202501])
def test_invalid_month_keys(value: object) -> None:
    assert month_bounds(value) is None
    assert is_month_key(value) is False


def test_month_arithmetic() -> None:
    assert floor_month(date(2024, 1, 15)) == date(2024, 1, 1)
    assert months_between(date(2024, 1, 1), date(2024, 4, 1)) == 3
    assert months_between(date(2024, 4, 1), date(2024, 1, 1)) == -3


def test_is_weekend() -> None:
    assert is_weekend(date(2024, 2, 3))  # Saturday
    assert is_weekend(date(2024, 2, 4))  # Sunday
    assert not is_weekend(date(2024, 2, 5))
