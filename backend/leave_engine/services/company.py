# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import NotFoundError
from leave_engine.models.company import Company
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.schemas.policy import LeavePolicy, LeavePolicyResponse
from leave_engine.services.audit import write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.policy import LeavePolicyUpdate

logger = logging.getLogger(__name__)


def read_leave_policy(company: Company | None) -> LeavePolicy | None:
    """Parse the stored policy; None when absent, unreadable or non-accruing."""
    if company is None or not company.leave_policy_json:
        return None
    try:
        policy = LeavePolicy.model_validate(company.leave_policy_json)
    except ValidationError:
        logger.warning("Ignoring unreadable leave policy on company=%s", company.id)
        return None
    if not policy.accrues:
        return None
    return policy


def read_type_caps(company: Company | None) -> LeavePolicy:
    """Policy view used for per-type caps, even when accrual is disabled."""
    if company is None or not company.leave_policy_json:
        return LeavePolicy()
    try:
        return LeavePolicy.model_validate(company.leave_policy_json)
    except ValidationError:
        return LeavePolicy()


async def get_company(session: AsyncSession, company_id: uuid.UUID, *, for_update: bool = False) -> Company:
    """Fetch a company or raise NotFoundError."""
    query = select(Company).where(col(Company.id) == company_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFoundError("Company not found")
    return company


def build_policy_response(company: Company) -> LeavePolicyResponse:
    policy = read_type_caps(company)
    return LeavePolicyResponse(
        company_id=company.id,
        rate_per_month=policy.rate_per_month,
        total_annual=policy.total_annual,
        applicable_from=policy.applicable_from,
        type_caps=policy.type_caps,
        accrues=policy.accrues,
    )


async def update_leave_policy(
    session: AsyncSession,
    auth: AuthContext,
    payload: LeavePolicyUpdate,
) -> Company:
    """Replace the company's leave policy and record the change.

    The caller commits and is expected to refresh employee accruals afterwards.
    """
    company = await get_company(session, auth.company_id, for_update=True)
    before = dict(company.leave_policy_json) if company.leave_policy_json else None

    company.leave_policy_json = payload.model_dump(mode="json")
    session.add(company)
    await session.flush()

    await write_audit_log(
        session,
        company_id=company.id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_POLICY,
        entity_id=company.id,
        action=AuditAction.UPDATE if before is not None else AuditAction.CREATE,
        before_json=before,
        after_json=company.leave_policy_json,
    )
    return company
