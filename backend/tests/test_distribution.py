"""Tests for working-day proration of leaves across months."""

from __future__ import annotations

import math
import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import text

from leave_engine.models.company import Company
from leave_engine.models.enums import LeaveStatus
from leave_engine.models.leave import Leave
from leave_engine.services.distribution import (
    count_working_days_by_month,
    distribute,
    distribute_range,
    round_portions,
)

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
USER_ID = uuid.uuid4()
AUTH_HEADERS = {"X-Company-Id": str(COMPANY_ID), "X-User-Id": str(USER_ID), "X-Role": "employee"}
LEAVES_URL = f"/companies/{COMPANY_ID}/leaves"


# ---------------------------------------------------------------------------
# Pure distribution
# ---------------------------------------------------------------------------


def test_month_boundary_split() -> None:
    """Mon 2024-01-29 to Fri 2024-02-02: three working days in January, two in February."""
    portions = distribute_range(date(2024, 1, 29), date(2024, 2, 2), {"paid": 5})

    assert set(portions) == {"2024-01", "2024-02"}
    assert portions["2024-01"].paid == pytest.approx(3.0)
    assert portions["2024-01"].total == pytest.approx(3.0)
    assert portions["2024-02"].paid == pytest.approx(2.0)
    assert portions["2024-02"].total == pytest.approx(2.0)
    assert portions["2024-01"].unpaid == 0.0


def test_weekends_are_not_counted() -> None:
    assert count_working_days_by_month(date(2024, 2, 1), date(2024, 2, 29)) == {"2024-02": 21}
    assert count_working_days_by_month(date(2024, 2, 3), date(2024, 2, 4)) == {}


def test_weekend_only_leave_goes_to_start_month() -> None:
    portions = distribute_range(date(2024, 2, 3), date(2024, 2, 3), {"unpaid": 1})
    assert list(portions) == ["2024-02"]
    assert portions["2024-02"].unpaid == 1.0
    assert portions["2024-02"].total == 1.0


def test_weekend_only_leave_without_allocation_is_empty() -> None:
    assert distribute_range(date(2024, 2, 3), date(2024, 2, 4), {}) == {}


def test_distribution_conserves_each_type() -> None:
    allocations = {"paid": 4.5, "casual": 1, "sick": 2, "unpaid": 3.25}
    portions = distribute_range(date(2024, 1, 17), date(2024, 3, 8), allocations)

    assert len(portions) == 3
    for field_name, allocated in allocations.items():
        assert math.isclose(sum(getattr(p, field_name) for p in portions.values()), allocated)
    assert math.isclose(sum(p.total for p in portions.values()), sum(allocations.values()))


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (date(2024, 2, 10), date(2024, 2, 1)),
        ("garbage", date(2024, 2, 1)),
        (None, None),
    ],
)
def test_invalid_range_is_empty(start: object, end: object) -> None:
    assert distribute_range(start, end, {"paid": 1}) == {}


def test_lenient_allocations() -> None:
    portions = distribute_range("2024-03-04", "2024-03-04", {"paid": "2", "sick": None, "unpaid": float("nan")})
    assert portions["2024-03"].paid == 2.0
    assert portions["2024-03"].sick == 0.0
    assert portions["2024-03"].unpaid == 0.0


def test_round_portions_orders_and_rounds() -> None:
    portions = distribute_range(date(2024, 1, 31), date(2024, 2, 2), {"unpaid": 1})
    rounded = round_portions(portions)
    assert list(rounded) == ["2024-01", "2024-02"]
    assert rounded["2024-01"].unpaid == 0.33
    assert rounded["2024-02"].unpaid == 0.67


def test_distribute_reads_leave_columns() -> None:
    leave = Leave(
        company_id=COMPANY_ID,
        employee_id=uuid.uuid4(),
        start_date=date(2024, 1, 29),
        end_date=date(2024, 2, 2),
        alloc_casual=5,
    )
    portions = distribute(leave)
    assert portions["2024-01"].casual == pytest.approx(3.0)
    assert portions["2024-02"].casual == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_preview_distribution(async_client: AsyncClient) -> None:
    response = await async_client.post(
        f"{LEAVES_URL}/distribution",
        json={"start_date": "2024-01-29", "end_date": "2024-02-02", "allocations": {"paid": 5}},
        headers=AUTH_HEADERS,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["leave_id"] is None
    assert data["months"]["2024-01"]["paid"] == 3.0
    assert data["months"]["2024-02"]["total"] == 2.0


async def test_preview_rejects_other_company(async_client: AsyncClient) -> None:
    response = await async_client.post(
        f"/companies/{uuid.uuid4()}/leaves/distribution",
        json={"start_date": "2024-01-29", "end_date": "2024-02-02"},
        headers=AUTH_HEADERS,
    )
    assert response.status_code == 403


async def test_stored_leave_distribution(async_client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    leave = Leave(
        company_id=COMPANY_ID,
        employee_id=uuid.uuid4(),
        start_date=date(2024, 1, 31),
        end_date=date(2024, 2, 1),
        status=LeaveStatus.APPROVED,
        alloc_unpaid=2,
    )
    db_session.add(leave)
    await db_session.flush()

    response = await async_client.get(f"{LEAVES_URL}/{leave.id}/distribution", headers=AUTH_HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert data["leave_id"] == str(leave.id)
    assert data["months"]["2024-01"]["unpaid"] == 1.0
    assert data["months"]["2024-02"]["unpaid"] == 1.0


async def test_leaves_are_stored_in_leave_request_table(db_session: AsyncSession) -> None:
    db_session.add(Company(id=COMPANY_ID, name="Acme"))
    db_session.add(
        Leave(
            company_id=COMPANY_ID,
            employee_id=uuid.uuid4(),
            start_date=date(2024, 3, 4),
            end_date=date(2024, 3, 4),
            status=LeaveStatus.APPROVED,
            alloc_paid=1,
        )
    )
    await db_session.flush()

    count = await db_session.scalar(text("SELECT count(*) FROM leave_request"))
    assert Leave.__tablename__ == "leave_request"
    assert count == 1


async def test_stored_leave_distribution_not_found(async_client: AsyncClient) -> None:
    response = await async_client.get(f"{LEAVES_URL}/{uuid.uuid4()}/distribution", headers=AUTH_HEADERS)
    assert response.status_code == 404
