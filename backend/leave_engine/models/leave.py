# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import LeaveStatus


class Leave(UUIDBase, TimestampMixin, table=True):
    """A leave request with the per-type allocation decided at approval time.

    Proration only redistributes ``alloc_*`` across months; it never changes them.
    """

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_employee_status", "company_id", "employee_id", "status"),
        sa.Index("ix_leave_range", "start_date", "end_date"),
    )

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(index=True)
    start_date: date
    end_date: date
    reason: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    alloc_paid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    alloc_casual: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    alloc_sick: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    alloc_unpaid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
