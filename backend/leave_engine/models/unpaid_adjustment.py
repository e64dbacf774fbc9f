# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class UnpaidLeaveAdjustment(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Admin-chosen unpaid-day deduction for one employee in one payroll month.

    Only ``deducted`` and ``note`` are stored; taken days and carries are derived
    from approved leaves on every read.
    """

    __tablename__ = "unpaid_leave_adjustment"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "employee_id", "month", name="uq_unpaid_adjustment_month"),
    )

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    month: str = Field(max_length=7)
    deducted: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    note: str | None = None
    created_by: uuid.UUID | None = None
    updated_by: uuid.UUID | None = None
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    is_deleted: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
