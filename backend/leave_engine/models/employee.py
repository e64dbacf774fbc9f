# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class Employee(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Employee record carrying cumulative leave usage and derived accrual state.

    ``manual_adjustment`` is operator-entered and additive; accrual reads it but
    never writes it. ``total_leave_available`` and the ``balance_*`` columns are
    derived and overwritten on every accrual run.
    """

    __tablename__ = "employee"

    company_id: uuid.UUID = Field(index=True)
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    joining_date: date | None = None

    used_paid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    used_casual: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    used_sick: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    used_unpaid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})

    manual_adjustment: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    last_accrued_year_month: str | None = Field(default=None, max_length=7)
    total_leave_available: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})

    balance_paid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    balance_casual: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    balance_sick: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    balance_unpaid: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})

    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    is_deleted: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
