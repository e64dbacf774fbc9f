# ruff: noqa: TC001, TC003
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from leave_engine.api.deps import AdminDep, AuthDep, validate_company_scope
from leave_engine.db import SessionDep
from leave_engine.schemas.policy import LeavePolicyResponse, LeavePolicyUpdate
from leave_engine.services import balance as balance_service
from leave_engine.services import company as company_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/companies/{company_id}/leave-policy",
    tags=["leave-policy"],
    dependencies=[Depends(validate_company_scope)],
)


@router.get("", response_model=LeavePolicyResponse)
async def get_leave_policy(
    session: SessionDep,
    auth: AuthDep,
) -> LeavePolicyResponse:
    """Get the company's leave policy."""
    company = await company_service.get_company(session, auth.company_id)
    return company_service.build_policy_response(company)


@router.put("", response_model=LeavePolicyResponse)
async def put_leave_policy(
    payload: LeavePolicyUpdate,
    session: SessionDep,
    auth: AdminDep,
) -> LeavePolicyResponse:
    """Replace the leave policy and re-accrue every active employee."""
    company = await company_service.update_leave_policy(session, auth, payload)
    await session.commit()

    run = await balance_service.refresh_company_accruals(session, auth.company_id)
    logger.info(
        "Leave policy updated company=%s processed=%d accrued=%d errors=%d",
        auth.company_id,
        run.processed,
        run.accrued,
        run.errors,
    )
    return company_service.build_policy_response(company)
