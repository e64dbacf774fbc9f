"""Calendar-month helpers and defensive coercion shared by the leave services.

Everything here is pure. Malformed input degrades to ``None`` or ``0.0``
instead of raising.
"""

from __future__ import annotations

import math
import re
from calendar import monthrange
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_MONTH_KEY_RE = re.compile(r"^\d{4}-\d{2}$")
_CENT = Decimal("0.01")


def coerce_date(value: object) -> date | None:
    """Return ``value`` as a date, or None when it is absent or unparseable.

    Accepts ``date``, ``datetime`` (its calendar date is used) and ISO-8601
    strings with or without a time part.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


def coerce_number(value: object) -> float:
    """Return ``value`` as a finite float; anything else becomes 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def round2(value: object) -> float:
    """Round half-up to two decimal places; non-finite input rounds to 0.0."""
    number = coerce_number(value)
    return float(Decimal(repr(number)).quantize(_CENT, rounding=ROUND_HALF_UP))


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` key of the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def is_month_key(value: object) -> bool:
    """True when ``value`` is a ``YYYY-MM`` string naming a real month."""
    return month_bounds(value) is not None


def month_bounds(value: object) -> tuple[date, date] | None:
    """Return (first_day, last_day) of a ``YYYY-MM`` month, or None if invalid."""
    if not isinstance(value, str) or not _MONTH_KEY_RE.match(value):
        return None
    year, month = (int(part) for part in value.split("-"))
    if year < 1 or not 1 <= month <= 12:
        return None
    _, days_in_month = monthrange(year, month)
    return date(year, month, 1), date(year, month, days_in_month)


def floor_month(day: date) -> date:
    """Return the first day of the month containing ``day``."""
    return day.replace(day=1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start``'s month to ``end``'s month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def is_weekend(day: date) -> bool:
    """Saturday and Sunday are the only non-working days."""
    return day.weekday() >= 5


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from ``start`` to ``end`` inclusive."""
    one_day = timedelta(days=1)
    current = start
    while current <= end:
        yield current
        current += one_day
