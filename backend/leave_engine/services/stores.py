"""Store interfaces consumed by the leave services, with SQL implementations.

Stores are constructed around an explicit ``AsyncSession`` and passed into
the services that need them.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import select
from sqlmodel import col

from leave_engine.models.employee import Employee
from leave_engine.models.enums import LeaveStatus
from leave_engine.models.leave import Leave
from leave_engine.models.unpaid_adjustment import UnpaidLeaveAdjustment

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


@runtime_checkable
class LeaveStore(Protocol):
    """Read access to approved leave requests."""

    async def find_approved_overlapping(
        self,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        range_start: date,
        range_end: date,
    ) -> list[Leave]:
        """Approved leaves of one employee whose date range overlaps [range_start, range_end]."""
        ...

    async def find_approved_started_by(
        self,
        company_id: uuid.UUID,
        employee_ids: Sequence[uuid.UUID],
        range_end: date,
    ) -> list[Leave]:
        """Approved leaves of the given employees starting on or before ``range_end``."""
        ...


class SqlLeaveStore:
    """LeaveStore backed by the ``leave_request`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_approved_overlapping(
        self,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        range_start: date,
        range_end: date,
    ) -> list[Leave]:
        result = await self._session.execute(
            select(Leave).where(
                col(Leave.employee_id) == employee_id,
                col(Leave.company_id) == company_id,
                col(Leave.status) == LeaveStatus.APPROVED.value,
                col(Leave.start_date) <= range_end,
                col(Leave.end_date) >= range_start,
            )
        )
        return list(result.scalars().all())

    async def find_approved_started_by(
        self,
        company_id: uuid.UUID,
        employee_ids: Sequence[uuid.UUID],
        range_end: date,
    ) -> list[Leave]:
        if not employee_ids:
            return []
        result = await self._session.execute(
            select(Leave).where(
                col(Leave.company_id) == company_id,
                col(Leave.employee_id).in_(list(employee_ids)),
                col(Leave.status) == LeaveStatus.APPROVED.value,
                col(Leave.start_date) <= range_end,
            )
        )
        return list(result.scalars().all())


async def get_employee(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Employee | None:
    """Fetch an active employee in a company, optionally taking a row lock."""
    query = select(Employee).where(
        col(Employee.id) == employee_id,
        col(Employee.company_id) == company_id,
        col(Employee.is_deleted).is_(False),
        col(Employee.is_active).is_(True),
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_active_employees(session: AsyncSession, company_id: uuid.UUID) -> list[Employee]:
    """All active, non-deleted employees of a company ordered by name."""
    result = await session.execute(
        select(Employee)
        .where(
            col(Employee.company_id) == company_id,
            col(Employee.is_deleted).is_(False),
            col(Employee.is_active).is_(True),
        )
        .order_by(col(Employee.name))
    )
    return list(result.scalars().all())


async def list_adjustments_through(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_ids: Sequence[uuid.UUID],
    month: str,
) -> list[UnpaidLeaveAdjustment]:
    """Live deduction rows for months up to and including ``month``."""
    if not employee_ids:
        return []
    result = await session.execute(
        select(UnpaidLeaveAdjustment).where(
            col(UnpaidLeaveAdjustment.company_id) == company_id,
            col(UnpaidLeaveAdjustment.employee_id).in_(list(employee_ids)),
            col(UnpaidLeaveAdjustment.month) <= month,
            col(UnpaidLeaveAdjustment.is_deleted).is_(False),
            col(UnpaidLeaveAdjustment.is_active).is_(True),
        )
    )
    return list(result.scalars().all())


async def list_employee_adjustments(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> list[UnpaidLeaveAdjustment]:
    """Every live deduction row of one employee, oldest month first."""
    result = await session.execute(
        select(UnpaidLeaveAdjustment)
        .where(
            col(UnpaidLeaveAdjustment.company_id) == company_id,
            col(UnpaidLeaveAdjustment.employee_id) == employee_id,
            col(UnpaidLeaveAdjustment.is_deleted).is_(False),
            col(UnpaidLeaveAdjustment.is_active).is_(True),
        )
        .order_by(col(UnpaidLeaveAdjustment.month))
    )
    return list(result.scalars().all())
