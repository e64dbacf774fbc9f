"""Accrual engine: monthly growth of an employee's leave entitlement under company policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from leave_engine.exceptions import NotFoundError
from leave_engine.schemas.policy import LeaveUsage
from leave_engine.services.company import read_leave_policy
from leave_engine.services.dates import coerce_date, coerce_number, floor_month, month_key, months_between
from leave_engine.services.stores import get_employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.company import Company
    from leave_engine.models.employee import Employee
    from leave_engine.schemas.policy import LeavePolicy

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccrualResult:
    """Immutable outcome of one accrual computation.

    ``changes()`` is the write to apply to the employee record; nothing else on
    the employee is touched by accrual.
    """

    accrual_start: date
    as_of_month: str
    months_elapsed: int
    potential: float
    used_so_far: float
    max_base: float
    base: float
    manual_adjustment: float
    total: float

    def changes(self) -> dict[str, Any]:
        return {
            "total_leave_available": self.total,
            "last_accrued_year_month": self.as_of_month,
        }


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def employee_usage(employee: Employee) -> LeaveUsage:
    """Cumulative usage of an employee as a lenient value object."""
    return LeaveUsage(
        paid=employee.used_paid,
        casual=employee.used_casual,
        sick=employee.used_sick,
        unpaid=employee.used_unpaid,
    )


def resolve_accrual_start(
    *,
    joining_date: date | None,
    applicable_from: date | None,
    created_at: date | None,
    as_of: date,
) -> date:
    """Pick the month from which accrual counts, floored to its first day.

    A policy that became applicable after the employee joined wins over the
    joining date. Otherwise the first present value of joining date, policy
    start, record creation and ``as_of`` is used.
    """
    if joining_date is not None and applicable_from is not None and applicable_from > joining_date:
        return floor_month(applicable_from)
    for candidate in (joining_date, applicable_from, created_at):
        if candidate is not None:
            return floor_month(candidate)
    return floor_month(as_of)


def compute_accrual(
    policy: LeavePolicy,
    *,
    usage: LeaveUsage,
    manual_adjustment: object,
    joining_date: object,
    created_at: object,
    as_of: date,
) -> AccrualResult:
    """Compute accrued base and total available leave as of ``as_of``.

    The accrual-start month itself counts, so an employee who joined in January
    has accrued four months by April. The base never exceeds what is left of
    the annual total after paid, casual and sick usage. ``manual_adjustment``
    is added on top as-is.
    """
    as_of_month = floor_month(as_of)
    accrual_start = resolve_accrual_start(
        joining_date=coerce_date(joining_date),
        applicable_from=policy.applicable_from,
        created_at=coerce_date(created_at),
        as_of=as_of,
    )

    months_elapsed = 0
    if accrual_start <= as_of_month:
        # Counted from the month before accrual starts.
        months_elapsed = max(0, months_between(accrual_start, as_of_month) + 1)

    potential = policy.rate_per_month * months_elapsed
    used_so_far = usage.entitlement_used
    max_base = max(0.0, policy.total_annual - used_so_far)
    base = min(max(potential, 0.0), max_base)
    adjustment = coerce_number(manual_adjustment)

    return AccrualResult(
        accrual_start=accrual_start,
        as_of_month=month_key(as_of),
        months_elapsed=months_elapsed,
        potential=potential,
        used_so_far=used_so_far,
        max_base=max_base,
        base=base,
        manual_adjustment=adjustment,
        total=base + adjustment,
    )


def apply_accrual(employee: Employee, result: AccrualResult) -> None:
    """Apply the derived fields of ``result`` to ``employee``."""
    for field_name, value in result.changes().items():
        setattr(employee, field_name, value)


# ---------------------------------------------------------------------------
# DB-backed operations
# ---------------------------------------------------------------------------


async def accrue(
    session: AsyncSession,
    employee: Employee | None,
    company: Company | None,
    as_of: date | None = None,
) -> AccrualResult | None:
    """Recompute and persist ``employee``'s total available leave.

    Returns None without writing when the employee or company is missing or
    the company has no accruing policy. Otherwise flushes exactly one update of
    the employee row; the caller commits. Storage errors propagate.
    """
    if employee is None or company is None:
        return None
    policy = read_leave_policy(company)
    if policy is None:
        logger.debug("No accruing leave policy for company=%s; skipping accrual", company.id)
        return None

    if as_of is None:
        as_of = date.today()

    result = compute_accrual(
        policy,
        usage=employee_usage(employee),
        manual_adjustment=employee.manual_adjustment,
        joining_date=employee.joining_date,
        created_at=employee.created_at,
        as_of=as_of,
    )
    apply_accrual(employee, result)
    session.add(employee)
    await session.flush()
    return result


async def accrue_employee(
    session: AsyncSession,
    company: Company,
    employee_id: uuid.UUID,
    as_of: date | None = None,
) -> tuple[Employee, AccrualResult | None]:
    """Lock the employee row, then accrue it against ``company``'s policy."""
    employee = await get_employee(session, company.id, employee_id, for_update=True)
    if employee is None:
        raise NotFoundError("Employee not found")
    result = await accrue(session, employee, company, as_of)
    return employee, result
