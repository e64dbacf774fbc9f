"""Unpaid-leave deduction ledger.

Unpaid days are attributed to payroll months by working-day proration of
approved leaves. Admins then choose how many of those days to deduct each
month; whatever is not deducted carries into the next month.

For employee E and month M:

    carry_before   = max(0, taken in months before M - deducted in months before M)
    available      = carry_before + taken in M
    max_deductable = max(0, available)
    carry_after    = max(0, available - deducted in M)

so a month's ``carry_after`` is the next month's ``carry_before``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.exceptions import AppError, NotFoundError
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.models.unpaid_adjustment import UnpaidLeaveAdjustment
from leave_engine.schemas.unpaid import (
    LedgerMonthResponse,
    LedgerSummary,
    SaveDeductionResponse,
    UnpaidDeductionRow,
    UnpaidTakenResponse,
)
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.dates import coerce_date, coerce_number, month_bounds, month_key, round2
from leave_engine.services.distribution import distribute_range, leave_allocations
from leave_engine.services.stores import (
    SqlLeaveStore,
    get_employee,
    list_active_employees,
    list_adjustments_through,
    list_employee_adjustments,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.employee import Employee
    from leave_engine.models.leave import Leave
    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.unpaid import SaveDeductionRequest
    from leave_engine.services.stores import LeaveStore

logger = logging.getLogger(__name__)

# Float slack allowed when comparing a requested deduction to the maximum.
_DEDUCTION_TOLERANCE = 1e-6

_ADJUSTMENT_AUDIT_FIELDS = ("employee_id", "month", "deducted", "note")


@dataclass(frozen=True)
class UnpaidTaken:
    """Unpaid days attributed before and within a payroll month."""

    taken_before: float = 0.0
    taken_this_month: float = 0.0


@dataclass(frozen=True)
class DeductionTotals:
    """Saved deductions before and within a payroll month."""

    deducted_before: float = 0.0
    deducted_current: float = 0.0
    note: str | None = None


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def clip_to_employment(leave: Leave, employment_start: date | None) -> tuple[date, date] | None:
    """Return the leave's range with days before employment removed.

    None when the leave ends before employment starts or its dates are unusable.
    """
    start = coerce_date(leave.start_date)
    end = coerce_date(leave.end_date)
    if start is None or end is None:
        return None
    if employment_start is not None:
        if end < employment_start:
            return None
        start = max(start, employment_start)
    return start, end


def unpaid_by_month(leave: Leave, employment_start: date | None) -> dict[str, float]:
    """Unpaid portion of one leave per month, after employment clipping."""
    clipped = clip_to_employment(leave, employment_start)
    if clipped is None:
        return {}
    portions = distribute_range(clipped[0], clipped[1], leave_allocations(leave))
    return {key: portion.unpaid for key, portion in portions.items() if portion.unpaid}


def build_adjustment_totals(
    adjustments: Iterable[UnpaidLeaveAdjustment],
    month: str,
) -> dict[uuid.UUID, DeductionTotals]:
    """Fold saved deduction rows into before/current totals per employee."""
    before: dict[uuid.UUID, float] = {}
    current: dict[uuid.UUID, tuple[float, str | None]] = {}
    for adjustment in adjustments:
        deducted = coerce_number(adjustment.deducted)
        if adjustment.month == month:
            current[adjustment.employee_id] = (deducted, adjustment.note)
        elif adjustment.month < month:
            before[adjustment.employee_id] = before.get(adjustment.employee_id, 0.0) + deducted

    totals: dict[uuid.UUID, DeductionTotals] = {}
    for employee_id in before.keys() | current.keys():
        deducted_current, note = current.get(employee_id, (0.0, None))
        totals[employee_id] = DeductionTotals(
            deducted_before=before.get(employee_id, 0.0),
            deducted_current=deducted_current,
            note=note,
        )
    return totals


def build_ledger_row(
    employee: Employee,
    taken: UnpaidTaken,
    totals: DeductionTotals,
) -> UnpaidDeductionRow:
    """Reconcile attributed unpaid days against saved deductions for one month."""
    carry_before = round2(max(0.0, taken.taken_before - totals.deducted_before))
    available = round2(carry_before + taken.taken_this_month)
    deducted = round2(totals.deducted_current)
    return UnpaidDeductionRow(
        employee_id=employee.id,
        name=employee.name or "",
        email=employee.email or "",
        taken=round2(taken.taken_this_month),
        taken_before=round2(taken.taken_before),
        carry_before=carry_before,
        available=available,
        deducted=deducted,
        carry_after=round2(max(0.0, available - deducted)),
        max_deductable=round2(max(0.0, available)),
        note=totals.note,
    )


def find_overdrawn_month(
    employee: Employee,
    unpaid_per_month: Mapping[str, float],
    deductions: Mapping[str, float],
    after_month: str,
) -> tuple[str, UnpaidDeductionRow] | None:
    """First saved month after ``after_month`` whose deduction exceeds its maximum.

    ``deductions`` holds every saved month of the employee, with the month
    being written already replaced by its new value.
    """
    for later_month in sorted(key for key in deductions if key > after_month):
        taken = UnpaidTaken(
            taken_before=round2(sum(v for k, v in unpaid_per_month.items() if k < later_month)),
            taken_this_month=round2(unpaid_per_month.get(later_month, 0.0)),
        )
        totals = DeductionTotals(
            deducted_before=sum(v for k, v in deductions.items() if k < later_month),
            deducted_current=deductions[later_month],
        )
        row = build_ledger_row(employee, taken, totals)
        if row.deducted > row.max_deductable + _DEDUCTION_TOLERANCE:
            return later_month, row
    return None


def compute_summary(rows: Sequence[UnpaidDeductionRow]) -> LedgerSummary:
    return LedgerSummary(
        total_taken=round2(sum(row.taken for row in rows)),
        total_deducted=round2(sum(row.deducted for row in rows)),
        total_available=round2(sum(row.available for row in rows)),
        total_carry_before=round2(sum(row.carry_before for row in rows)),
        total_carry_after=round2(sum(row.carry_after for row in rows)),
        total_max_deductable=round2(sum(row.max_deductable for row in rows)),
    )


# ---------------------------------------------------------------------------
# Attribution queries
# ---------------------------------------------------------------------------


async def unpaid_taken_for_month(
    store: LeaveStore,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    month: str,
    employment_start: object = None,
) -> float:
    """Unpaid days of approved leaves attributable to ``month``.

    Returns 0 for a malformed month or a month that ends before employment
    starts. Per-leave amounts are summed unrounded and the total is rounded to
    two decimals once.
    """
    bounds = month_bounds(month)
    if bounds is None:
        return 0.0
    month_start, month_end = bounds
    start = coerce_date(employment_start)
    if start is not None and start > month_end:
        return 0.0

    leaves = await store.find_approved_overlapping(employee_id, company_id, month_start, month_end)
    total = 0.0
    for leave in leaves:
        total += unpaid_by_month(leave, start).get(month, 0.0)
    return round2(total)


async def get_unpaid_taken(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    month: str,
) -> UnpaidTakenResponse:
    """Unpaid days attributable to ``month`` for one active employee."""
    employee = await get_employee(session, company_id, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    taken = await unpaid_taken_for_month(
        SqlLeaveStore(session), employee.id, company_id, month, coerce_date(employee.joining_date)
    )
    return UnpaidTakenResponse(employee_id=employee.id, month=month, taken=taken)


async def summarize_unpaid(
    store: LeaveStore,
    company_id: uuid.UUID,
    employee_ids: Sequence[uuid.UUID],
    month: str,
    employment_starts: Mapping[uuid.UUID, date | None] | None = None,
) -> dict[uuid.UUID, UnpaidTaken]:
    """Unpaid days taken before and within ``month`` for many employees at once."""
    bounds = month_bounds(month)
    if bounds is None or not employee_ids:
        return {}
    employment_starts = employment_starts or {}

    taken_before: dict[uuid.UUID, float] = dict.fromkeys(employee_ids, 0.0)
    taken_this_month: dict[uuid.UUID, float] = dict.fromkeys(employee_ids, 0.0)

    for leave in await store.find_approved_started_by(company_id, employee_ids, bounds[1]):
        if leave.employee_id not in taken_before:
            continue
        for key, unpaid in unpaid_by_month(leave, employment_starts.get(leave.employee_id)).items():
            if key == month:
                taken_this_month[leave.employee_id] += unpaid
            elif key < month:
                taken_before[leave.employee_id] += unpaid

    return {
        employee_id: UnpaidTaken(
            taken_before=round2(taken_before[employee_id]),
            taken_this_month=round2(taken_this_month[employee_id]),
        )
        for employee_id in employee_ids
    }


async def unpaid_per_month_through(
    store: LeaveStore,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    through_month: str,
    employment_start: date | None = None,
) -> dict[str, float]:
    """Unrounded unpaid days per month for one employee, up to and including ``through_month``."""
    bounds = month_bounds(through_month)
    if bounds is None:
        return {}
    per_month: dict[str, float] = {}
    for leave in await store.find_approved_started_by(company_id, [employee_id], bounds[1]):
        if leave.employee_id != employee_id:
            continue
        for key, unpaid in unpaid_by_month(leave, employment_start).items():
            if key <= through_month:
                per_month[key] = per_month.get(key, 0.0) + unpaid
    return per_month


# ---------------------------------------------------------------------------
# Ledger read path
# ---------------------------------------------------------------------------


async def get_month_ledger(
    session: AsyncSession,
    company_id: uuid.UUID,
    month: str | None = None,
    employee_id: uuid.UUID | None = None,
) -> LedgerMonthResponse:
    """Ledger rows for a payroll month; an invalid or missing month means the current one."""
    if month is None or month_bounds(month) is None:
        month = month_key(date.today())

    employees = await list_active_employees(session, company_id)
    if employee_id is not None:
        employees = [e for e in employees if e.id == employee_id]
    employee_ids = [e.id for e in employees]

    taken = await summarize_unpaid(
        SqlLeaveStore(session),
        company_id,
        employee_ids,
        month,
        {e.id: coerce_date(e.joining_date) for e in employees},
    )
    totals = build_adjustment_totals(
        await list_adjustments_through(session, company_id, employee_ids, month),
        month,
    )

    rows = sorted(
        (
            build_ledger_row(e, taken.get(e.id, UnpaidTaken()), totals.get(e.id, DeductionTotals()))
            for e in employees
        ),
        key=lambda row: row.name,
    )
    return LedgerMonthResponse(scope="month", month=month, rows=rows, summary=compute_summary(rows))


async def get_all_time_deductions(session: AsyncSession, company_id: uuid.UUID) -> LedgerMonthResponse:
    """Cumulative deductions per employee across every month, omitting zeros."""
    result = await session.execute(
        select(
            col(UnpaidLeaveAdjustment.employee_id),
            func.coalesce(func.sum(col(UnpaidLeaveAdjustment.deducted)), 0).label("deducted"),
        )
        .where(
            col(UnpaidLeaveAdjustment.company_id) == company_id,
            col(UnpaidLeaveAdjustment.is_deleted).is_(False),
            col(UnpaidLeaveAdjustment.is_active).is_(True),
        )
        .group_by(col(UnpaidLeaveAdjustment.employee_id))
    )
    deducted_by_id = {row.employee_id: round2(row.deducted) for row in result.all()}

    rows = [
        UnpaidDeductionRow(
            employee_id=e.id,
            name=e.name or "",
            email=e.email or "",
            deducted=deducted_by_id.get(e.id, 0.0),
        )
        for e in await list_active_employees(session, company_id)
        if deducted_by_id.get(e.id, 0.0) > 0
    ]
    rows.sort(key=lambda row: row.name)
    return LedgerMonthResponse(
        scope="all",
        month=None,
        rows=rows,
        summary=LedgerSummary(total_deducted=round2(sum(row.deducted for row in rows))),
    )


# ---------------------------------------------------------------------------
# Ledger write path
# ---------------------------------------------------------------------------


async def _get_adjustment_for_update(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    month: str,
) -> UnpaidLeaveAdjustment | None:
    result = await session.execute(
        select(UnpaidLeaveAdjustment)
        .where(
            col(UnpaidLeaveAdjustment.company_id) == company_id,
            col(UnpaidLeaveAdjustment.employee_id) == employee_id,
            col(UnpaidLeaveAdjustment.month) == month,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def save_deduction(
    session: AsyncSession,
    auth: AuthContext,
    payload: SaveDeductionRequest,
) -> SaveDeductionResponse:
    """Upsert the admin-chosen deduction for an employee-month.

    Flow:
    1. Lock the employee row (serialises concurrent saves for one employee)
    2. Recompute taken days and prior deductions for the month
    3. Reject deductions above ``max_deductable``
    4. Reject saves that would overdraw a later month's saved deduction
    5. Upsert the (company, employee, month) row
    6. Write audit log
    7. Commit and return the recomputed row
    """
    month = payload.month
    store = SqlLeaveStore(session)

    # 1. Lock employee.
    employee = await get_employee(session, auth.company_id, payload.employee_id, for_update=True)
    if employee is None:
        raise NotFoundError("Employee not found")
    employment_start = coerce_date(employee.joining_date)

    # 2. Current position excluding this month's saved value.
    taken = (
        await summarize_unpaid(store, auth.company_id, [employee.id], month, {employee.id: employment_start})
    ).get(employee.id, UnpaidTaken())
    saved = await list_employee_adjustments(session, auth.company_id, employee.id)
    prior_totals = build_adjustment_totals([adj for adj in saved if adj.month < month], month).get(
        employee.id, DeductionTotals()
    )
    position = build_ledger_row(employee, taken, prior_totals)

    # 3. Enforce the maximum.
    deducted = round2(payload.deducted)
    if deducted > position.max_deductable + _DEDUCTION_TOLERANCE:
        raise AppError(
            f"Cannot deduct more than available unpaid leaves "
            f"(max_deductable={position.max_deductable}, available={position.available})",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # 4. Later saved months keep their deductions within reach.
    last_month = max((adj.month for adj in saved), default=month)
    if last_month > month:
        deductions = {adj.month: coerce_number(adj.deducted) for adj in saved}
        deductions[month] = deducted
        unpaid_per_month = await unpaid_per_month_through(
            store, auth.company_id, employee.id, last_month, employment_start
        )
        overdrawn = find_overdrawn_month(employee, unpaid_per_month, deductions, month)
        if overdrawn is not None:
            later_month, row = overdrawn
            raise AppError(
                f"Cannot deduct more than available unpaid leaves: {later_month} already deducts "
                f"{row.deducted} but would only have max_deductable={row.max_deductable}",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

    # 5. Upsert.
    note = payload.note.strip() if payload.note and payload.note.strip() else None
    adjustment = await _get_adjustment_for_update(session, auth.company_id, employee.id, month)
    before_json = None
    if adjustment is None:
        adjustment = UnpaidLeaveAdjustment(
            company_id=auth.company_id,
            employee_id=employee.id,
            month=month,
            created_by=auth.user_id,
        )
        action = AuditAction.CREATE
    else:
        before_json = model_to_audit_dict(adjustment, _ADJUSTMENT_AUDIT_FIELDS)
        action = AuditAction.UPDATE
    adjustment.deducted = deducted
    adjustment.note = note
    adjustment.updated_by = auth.user_id
    adjustment.is_deleted = False
    adjustment.is_active = True
    session.add(adjustment)
    await session.flush()

    # 6. Audit.
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.UNPAID_ADJUSTMENT,
        entity_id=adjustment.id,
        action=action,
        before_json=before_json,
        after_json=model_to_audit_dict(adjustment, _ADJUSTMENT_AUDIT_FIELDS),
    )

    # 7. Commit and return.
    await session.commit()
    logger.info(
        "Saved unpaid deduction employee=%s month=%s deducted=%s max=%s",
        employee.id,
        month,
        deducted,
        position.max_deductable,
    )
    totals = DeductionTotals(
        deducted_before=prior_totals.deducted_before,
        deducted_current=deducted,
        note=note,
    )
    return SaveDeductionResponse(month=month, row=build_ledger_row(employee, taken, totals))
