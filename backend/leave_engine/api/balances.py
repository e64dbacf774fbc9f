# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from leave_engine.api.deps import AdminDep, AuthDep, validate_company_scope
from leave_engine.db import SessionDep
from leave_engine.schemas.balance import EmployeeLeaveBalanceResponse, ManualAdjustmentRequest
from leave_engine.services import balance as balance_service

employee_balance_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/leave-balances",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)

employee_accrual_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/leave-accrual",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)


@employee_balance_router.get("", response_model=EmployeeLeaveBalanceResponse)
async def get_leave_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> EmployeeLeaveBalanceResponse:
    """Accrue up to today and return the employee's balances."""
    response = await balance_service.sync_leave_balances(session, auth.company_id, employee_id)
    await session.commit()
    return response


@employee_accrual_router.put("", response_model=EmployeeLeaveBalanceResponse)
async def put_manual_adjustment(
    employee_id: uuid.UUID,
    payload: ManualAdjustmentRequest,
    session: SessionDep,
    auth: AdminDep,
) -> EmployeeLeaveBalanceResponse:
    """Set the admin adjustment added on top of accrued leave."""
    return await balance_service.set_manual_adjustment(session, auth, employee_id, payload)
