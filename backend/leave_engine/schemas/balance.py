# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from leave_engine.schemas.policy import LeaveBalances, LeaveUsage


class AccrualSummary(BaseModel):
    """How the current total was derived."""

    accrual_start: date | None
    months_elapsed: int
    potential: float
    used_so_far: float
    base: float


class EmployeeLeaveBalanceResponse(BaseModel):
    """Accrued total plus per-type balances for one employee."""

    employee_id: uuid.UUID
    total_leave_available: float
    manual_adjustment: float
    last_accrued_year_month: str | None
    usage: LeaveUsage
    balances: LeaveBalances
    accrual: AccrualSummary | None = Field(
        default=None,
        description="Absent when the company has no active leave policy",
    )


class ManualAdjustmentRequest(BaseModel):
    """Request body for the admin override added on top of accrued leave."""

    manual_adjustment: float = Field(allow_inf_nan=False)
    reason: str | None = Field(default=None, max_length=1000)
