# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from leave_engine.schemas.policy import LeaveAllocations


class MonthPortion(BaseModel):
    """Share of a leave's allocation attributed to one calendar month."""

    paid: float = 0.0
    casual: float = 0.0
    sick: float = 0.0
    unpaid: float = 0.0
    total: float = 0.0


class DistributionRequest(BaseModel):
    """Ad-hoc distribution preview for a date range."""

    start_date: date
    end_date: date
    allocations: LeaveAllocations = Field(default_factory=LeaveAllocations)


class DistributionResponse(BaseModel):
    """Per-month portions, rounded to two decimals for display."""

    leave_id: uuid.UUID | None = None
    start_date: date
    end_date: date
    months: dict[str, MonthPortion]
