# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field, field_validator

from leave_engine.services.dates import is_month_key


class UnpaidDeductionRow(BaseModel):
    """One employee's unpaid-leave ledger position for a payroll month."""

    employee_id: uuid.UUID
    name: str = ""
    email: str = ""
    taken: float = 0.0
    taken_before: float = 0.0
    carry_before: float = 0.0
    available: float = 0.0
    deducted: float = 0.0
    carry_after: float = 0.0
    max_deductable: float = 0.0
    note: str | None = None


class LedgerSummary(BaseModel):
    """Column totals across all rows of a ledger view."""

    total_taken: float = 0.0
    total_deducted: float = 0.0
    total_available: float = 0.0
    total_carry_before: float = 0.0
    total_carry_after: float = 0.0
    total_max_deductable: float = 0.0


class LedgerMonthResponse(BaseModel):
    """Ledger rows for every active employee in one month."""

    scope: str = "month"
    month: str | None
    rows: list[UnpaidDeductionRow]
    summary: LedgerSummary


class SaveDeductionRequest(BaseModel):
    """Admin-chosen deduction for an employee-month."""

    employee_id: uuid.UUID
    month: str
    deducted: float = Field(ge=0, allow_inf_nan=False)
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("month")
    @classmethod
    def _validate_month(cls, value: str) -> str:
        if not is_month_key(value):
            msg = "month must be a valid YYYY-MM value"
            raise ValueError(msg)
        return value


class SaveDeductionResponse(BaseModel):
    """Recomputed ledger row after a save."""

    month: str
    row: UnpaidDeductionRow


class UnpaidTakenResponse(BaseModel):
    """Unpaid days attributable to one payroll month."""

    employee_id: uuid.UUID
    month: str
    taken: float
