"""Working-day proration of a leave's allocation across calendar months."""

from __future__ import annotations

import math
from datetime import date
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import NotFoundError
from leave_engine.models.leave import Leave
from leave_engine.schemas.leave import DistributionResponse, MonthPortion
from leave_engine.schemas.policy import LeaveAllocations
from leave_engine.services.dates import coerce_date, is_weekend, iter_days, month_key, round2

if TYPE_CHECKING:
    import uuid
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession


class LeaveRange(Protocol):
    """Anything with a date range and per-type allocations."""

    start_date: object
    end_date: object
    allocations: LeaveAllocations


def leave_allocations(leave: Leave) -> LeaveAllocations:
    """Read the allocation columns of a persisted leave."""
    return LeaveAllocations(
        paid=leave.alloc_paid,
        casual=leave.alloc_casual,
        sick=leave.alloc_sick,
        unpaid=leave.alloc_unpaid,
    )


def count_working_days_by_month(start: date, end: date) -> dict[str, int]:
    """Count non-weekend days per ``YYYY-MM`` over [start, end]."""
    counts: dict[str, int] = {}
    for day in iter_days(start, end):
        if is_weekend(day):
            continue
        key = month_key(day)
        counts[key] = counts.get(key, 0) + 1
    return counts


def distribute_range(
    start_date: object,
    end_date: object,
    allocations: LeaveAllocations | Mapping[str, object] | None,
) -> dict[str, MonthPortion]:
    """Split ``allocations`` across the months of [start_date, end_date].

    Each month receives ``allocation * working_days_in_month / total_working_days``
    for every type independently. A range with no working days attributes the
    whole allocation to the start month. Values are not rounded; round only
    when displaying or aggregating.
    """
    start = coerce_date(start_date)
    end = coerce_date(end_date)
    if start is None or end is None or start > end:
        return {}

    if allocations is None:
        alloc = LeaveAllocations()
    elif isinstance(allocations, LeaveAllocations):
        alloc = allocations
    else:
        alloc = LeaveAllocations.model_validate(allocations)

    counts = count_working_days_by_month(start, end)
    total_working_days = sum(counts.values())

    if total_working_days == 0:
        total_allocated = alloc.total
        if not math.isfinite(total_allocated) or total_allocated <= 0:
            return {}
        return {
            month_key(start): MonthPortion(
                paid=alloc.paid,
                casual=alloc.casual,
                sick=alloc.sick,
                unpaid=alloc.unpaid,
                total=total_allocated,
            )
        }

    portions: dict[str, MonthPortion] = {}
    for key, days in counts.items():
        ratio = days / total_working_days
        paid = alloc.paid * ratio
        casual = alloc.casual * ratio
        sick = alloc.sick * ratio
        unpaid = alloc.unpaid * ratio
        portions[key] = MonthPortion(
            paid=paid,
            casual=casual,
            sick=sick,
            unpaid=unpaid,
            total=paid + casual + sick + unpaid,
        )
    return portions


def distribute(leave: Leave | LeaveRange) -> dict[str, MonthPortion]:
    """Distribute a persisted leave (or any leave-shaped object) across months."""
    allocations = getattr(leave, "allocations", None)
    if not isinstance(allocations, LeaveAllocations):
        allocations = leave_allocations(leave)  # type: ignore[arg-type]
    return distribute_range(leave.start_date, leave.end_date, allocations)


def round_portions(portions: Mapping[str, MonthPortion]) -> dict[str, MonthPortion]:
    """Display copy of ``portions`` rounded to two decimals, ordered by month."""
    return {
        key: MonthPortion(
            paid=round2(portion.paid),
            casual=round2(portion.casual),
            sick=round2(portion.sick),
            unpaid=round2(portion.unpaid),
            total=round2(portion.total),
        )
        for key, portion in sorted(portions.items())
    }


# ---------------------------------------------------------------------------
# DB-backed lookup
# ---------------------------------------------------------------------------


async def get_leave_distribution(
    session: AsyncSession,
    company_id: uuid.UUID,
    leave_id: uuid.UUID,
) -> DistributionResponse:
    """Rounded month distribution of a stored leave, whatever its status."""
    result = await session.execute(
        select(Leave).where(col(Leave.id) == leave_id, col(Leave.company_id) == company_id)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave not found")
    return DistributionResponse(
        leave_id=leave.id,
        start_date=leave.start_date,
        end_date=leave.end_date,
        months=round_portions(distribute(leave)),
    )
