"""Per-type balance projection and the read path that refreshes accrual first."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import NotFoundError
from leave_engine.models.company import Company
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.schemas.balance import AccrualSummary, EmployeeLeaveBalanceResponse
from leave_engine.schemas.policy import LeaveBalances, LeaveUsage, TypeCaps
from leave_engine.services.accrual import accrue, accrue_employee, employee_usage
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.company import get_company, read_type_caps
from leave_engine.services.stores import get_employee, list_active_employees

if TYPE_CHECKING:
    import uuid
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.models.employee import Employee
    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.balance import ManualAdjustmentRequest
    from leave_engine.services.accrual import AccrualResult

logger = logging.getLogger(__name__)

_ACCRUAL_AUDIT_FIELDS = ("manual_adjustment", "total_leave_available", "last_accrued_year_month")


@dataclass
class AccrualRunResult:
    """Summary of a bulk accrual refresh."""

    as_of: date
    processed: int = 0
    accrued: int = 0
    skipped: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Pure projection
# ---------------------------------------------------------------------------


def project_balances(
    caps: TypeCaps | Mapping[str, object] | None,
    usage: LeaveUsage | Mapping[str, object] | None,
) -> LeaveBalances:
    """Remaining per-type balance: ``max(0, cap - used)`` for paid, casual and sick.

    Unpaid is reported as the days already taken unpaid. The per-type figures
    are not bounded by the shared accrued total.
    """
    caps = caps if isinstance(caps, TypeCaps) else TypeCaps.model_validate(caps or {})
    usage = usage if isinstance(usage, LeaveUsage) else LeaveUsage.model_validate(usage or {})
    return LeaveBalances(
        paid=max(0.0, caps.paid - usage.paid),
        casual=max(0.0, caps.casual - usage.casual),
        sick=max(0.0, caps.sick - usage.sick),
        unpaid=usage.unpaid,
    )


def apply_balances(employee: Employee, balances: LeaveBalances) -> None:
    employee.balance_paid = balances.paid
    employee.balance_casual = balances.casual
    employee.balance_sick = balances.sick
    employee.balance_unpaid = balances.unpaid


def build_balance_response(employee: Employee, result: AccrualResult | None) -> EmployeeLeaveBalanceResponse:
    accrual = None
    if result is not None:
        accrual = AccrualSummary(
            accrual_start=result.accrual_start,
            months_elapsed=result.months_elapsed,
            potential=result.potential,
            used_so_far=result.used_so_far,
            base=result.base,
        )
    return EmployeeLeaveBalanceResponse(
        employee_id=employee.id,
        total_leave_available=employee.total_leave_available,
        manual_adjustment=employee.manual_adjustment,
        last_accrued_year_month=employee.last_accrued_year_month,
        usage=employee_usage(employee),
        balances=LeaveBalances(
            paid=employee.balance_paid,
            casual=employee.balance_casual,
            sick=employee.balance_sick,
            unpaid=employee.balance_unpaid,
        ),
        accrual=accrual,
    )


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def _project_and_store(session: AsyncSession, employee: Employee, company: Company) -> None:
    balances = project_balances(read_type_caps(company).type_caps, employee_usage(employee))
    apply_balances(employee, balances)
    session.add(employee)
    await session.flush()


async def sync_leave_balances(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    as_of: date | None = None,
) -> EmployeeLeaveBalanceResponse:
    """Accrue, project per-type balances, and return the employee's balance view.

    The caller commits.
    """
    company = await get_company(session, company_id)
    employee, result = await accrue_employee(session, company, employee_id, as_of)
    await _project_and_store(session, employee, company)
    return build_balance_response(employee, result)


# ---------------------------------------------------------------------------
# Write path: admin override and bulk refresh
# ---------------------------------------------------------------------------


async def set_manual_adjustment(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: ManualAdjustmentRequest,
    as_of: date | None = None,
) -> EmployeeLeaveBalanceResponse:
    """Replace the operator-entered adjustment, then re-accrue and commit.

    This is the only operation that writes ``manual_adjustment``.
    """
    company = await get_company(session, auth.company_id)
    employee = await get_employee(session, auth.company_id, employee_id, for_update=True)
    if employee is None:
        raise NotFoundError("Employee not found")

    before = model_to_audit_dict(employee, _ACCRUAL_AUDIT_FIELDS)
    employee.manual_adjustment = payload.manual_adjustment
    result = await accrue(session, employee, company, as_of)
    await _project_and_store(session, employee, company)

    after = model_to_audit_dict(employee, _ACCRUAL_AUDIT_FIELDS)
    if payload.reason:
        after["reason"] = payload.reason
    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_ACCRUAL,
        entity_id=employee.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=after,
    )

    await session.commit()
    return build_balance_response(employee, result)


async def refresh_company_accruals(
    session: AsyncSession,
    company_id: uuid.UUID,
    as_of: date | None = None,
) -> AccrualRunResult:
    """Re-accrue and re-project every active employee of a company, then commit.

    Each employee is written inside its own savepoint, so a failure for one
    employee is rolled back, logged and counted while the rest still run.
    """
    if as_of is None:
        as_of = date.today()
    run = AccrualRunResult(as_of=as_of)

    company = await get_company(session, company_id)
    for employee in await list_active_employees(session, company_id):
        employee_id = employee.id
        run.processed += 1
        try:
            async with session.begin_nested():
                result = await accrue(session, employee, company, as_of)
                await _project_and_store(session, employee, company)
        except Exception:
            logger.exception("Error refreshing accrual for employee=%s company=%s", employee_id, company_id)
            run.errors += 1
            continue
        if result is None:
            run.skipped += 1
        else:
            run.accrued += 1

    await session.commit()
    return run


async def refresh_all_accruals(session: AsyncSession, as_of: date | None = None) -> AccrualRunResult:
    """Run ``refresh_company_accruals`` for every company and aggregate the counts."""
    if as_of is None:
        as_of = date.today()
    total = AccrualRunResult(as_of=as_of)

    result = await session.execute(select(col(Company.id)))
    for company_id in result.scalars().all():
        run = await refresh_company_accruals(session, company_id, as_of)
        total.processed += run.processed
        total.accrued += run.accrued
        total.skipped += run.skipped
        total.errors += run.errors
    return total
