# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from leave_engine.api.deps import AuthDep, PayrollDep, validate_company_scope
from leave_engine.db import SessionDep
from leave_engine.models.enums import LedgerScope
from leave_engine.schemas.unpaid import (
    LedgerMonthResponse,
    SaveDeductionRequest,
    SaveDeductionResponse,
    UnpaidTakenResponse,
)
from leave_engine.services import unpaid as unpaid_service

unpaid_taken_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/unpaid-taken",
    tags=["unpaid"],
    dependencies=[Depends(validate_company_scope)],
)

unpaid_adjustments_router = APIRouter(
    prefix="/companies/{company_id}/unpaid-leaves/adjustments",
    tags=["unpaid"],
    dependencies=[Depends(validate_company_scope)],
)


@unpaid_taken_router.get("", response_model=UnpaidTakenResponse)
async def get_unpaid_taken(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    month: str = Query(),
) -> UnpaidTakenResponse:
    """Unpaid days attributable to one payroll month for an employee."""
    return await unpaid_service.get_unpaid_taken(session, auth.company_id, employee_id, month)


@unpaid_adjustments_router.get("", response_model=LedgerMonthResponse)
async def get_unpaid_adjustments(
    session: SessionDep,
    auth: PayrollDep,
    month: str | None = Query(default=None),
    employee_id: uuid.UUID | None = Query(default=None),
    scope: LedgerScope = Query(default=LedgerScope.MONTH),
) -> LedgerMonthResponse:
    """Unpaid deduction ledger for a month, or cumulative deductions with ``scope=all``."""
    if scope == LedgerScope.ALL:
        return await unpaid_service.get_all_time_deductions(session, auth.company_id)
    return await unpaid_service.get_month_ledger(session, auth.company_id, month, employee_id)


@unpaid_adjustments_router.post("", response_model=SaveDeductionResponse)
async def save_unpaid_adjustment(
    payload: SaveDeductionRequest,
    session: SessionDep,
    auth: PayrollDep,
) -> SaveDeductionResponse:
    """Save the deduction for an employee-month."""
    return await unpaid_service.save_deduction(session, auth, payload)
