"""Tests for reading and replacing the company leave policy."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError
from sqlalchemy import select
from sqlmodel import col

from leave_engine.models.audit import AuditLog
from leave_engine.models.company import Company
from leave_engine.models.employee import Employee
from leave_engine.models.enums import AuditAction, AuditEntityType
from leave_engine.schemas.policy import LeavePolicyUpdate
from leave_engine.services.company import read_leave_policy, read_type_caps

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
USER_ID = uuid.uuid4()

AUTH_HEADERS = {"X-Company-Id": str(COMPANY_ID), "X-User-Id": str(USER_ID), "X-Role": "admin"}
EMPLOYEE_HEADERS = {"X-Company-Id": str(COMPANY_ID), "X-User-Id": str(USER_ID), "X-Role": "employee"}
POLICY_URL = f"/companies/{COMPANY_ID}/leave-policy"

VALID_POLICY = {
    "rate_per_month": 1.5,
    "total_annual": 18,
    "applicable_from": None,
    "type_caps": {"paid": 10, "casual": 5, "sick": 3},
}


# ---------------------------------------------------------------------------
# Reading stored documents
# ---------------------------------------------------------------------------


def test_read_leave_policy_lenient() -> None:
    company = Company(
        name="Acme",
        leave_policy_json={"rate_per_month": "1.5", "total_annual": 18, "applicable_from": "bad date"},
    )
    policy = read_leave_policy(company)
    assert policy is not None
    assert policy.rate_per_month == 1.5
    assert policy.applicable_from is None
    assert policy.type_caps.paid == 0


def test_non_accruing_policy_still_exposes_caps() -> None:
    company = Company(name="Acme", leave_policy_json={"rate_per_month": 0, "type_caps": {"sick": 4}})
    assert read_leave_policy(company) is None
    assert read_type_caps(company).type_caps.sick == 4


def test_unreadable_policy_is_ignored() -> None:
    company = Company(name="Acme", leave_policy_json=["not", "a", "policy"])  # type: ignore[arg-type]
    assert read_leave_policy(company) is None
    assert read_type_caps(company).total_annual == 0


@pytest.mark.parametrize("type_caps", [None, "nope", 7, ["paid"]])
def test_malformed_type_caps_keep_policy_accruing(type_caps: object) -> None:
    company = Company(
        name="Acme",
        leave_policy_json={"rate_per_month": 1.5, "total_annual": 18, "type_caps": type_caps},
    )
    policy = read_leave_policy(company)
    assert policy is not None
    assert policy.accrues
    assert policy.type_caps.model_dump() == {"paid": 0.0, "casual": 0.0, "sick": 0.0}


def test_update_rejects_caps_above_annual_total() -> None:
    with pytest.raises(ValidationError, match="Type caps cannot exceed total annual leaves"):
        LeavePolicyUpdate(rate_per_month=1, total_annual=10, type_caps={"paid": 8, "casual": 3})


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_get_policy_when_unset(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    await db_session.flush()

    response = await async_client.get(POLICY_URL, headers=EMPLOYEE_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["accrues"] is False
    assert data["rate_per_month"] == 0


async def test_get_policy_unknown_company(async_client: AsyncClient) -> None:
    response = await async_client.get(POLICY_URL, headers=EMPLOYEE_HEADERS)
    assert response.status_code == 404


async def test_put_policy_refreshes_employees(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    employee = Employee(company_id=COMPANY_ID, name="Asha", joining_date=date.today(), used_casual=2)
    db_session.add(employee)
    await db_session.flush()

    response = await async_client.put(POLICY_URL, json=VALID_POLICY, headers=AUTH_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["accrues"] is True
    assert data["type_caps"] == {"paid": 10.0, "casual": 5.0, "sick": 3.0}

    assert employee.total_leave_available == pytest.approx(1.5)
    assert employee.balance_casual == 3

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_type) == AuditEntityType.LEAVE_POLICY.value)
    )
    audit = result.scalar_one()
    assert audit.action == AuditAction.CREATE.value
    assert audit.after_json["total_annual"] == 18


async def test_put_policy_validation(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    await db_session.flush()

    bad = {**VALID_POLICY, "type_caps": {"paid": 20}}
    response = await async_client.put(POLICY_URL, json=bad, headers=AUTH_HEADERS)
    assert response.status_code == 422

    negative = {**VALID_POLICY, "rate_per_month": -1}
    response = await async_client.put(POLICY_URL, json=negative, headers=AUTH_HEADERS)
    assert response.status_code == 422


async def test_put_policy_requires_admin(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    await db_session.flush()

    response = await async_client.put(POLICY_URL, json=VALID_POLICY, headers=EMPLOYEE_HEADERS)
    assert response.status_code == 403
