# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from leave_engine.api.deps import AuthDep, validate_company_scope
from leave_engine.db import SessionDep
from leave_engine.schemas.leave import DistributionRequest, DistributionResponse
from leave_engine.services import distribution as distribution_service

leaves_router = APIRouter(
    prefix="/companies/{company_id}/leaves",
    tags=["leaves"],
    dependencies=[Depends(validate_company_scope)],
)


@leaves_router.post("/distribution", response_model=DistributionResponse)
async def preview_distribution(payload: DistributionRequest) -> DistributionResponse:
    """Preview how an allocation over a date range splits across months."""
    portions = distribution_service.distribute_range(payload.start_date, payload.end_date, payload.allocations)
    return DistributionResponse(
        start_date=payload.start_date,
        end_date=payload.end_date,
        months=distribution_service.round_portions(portions),
    )


@leaves_router.get("/{leave_id}/distribution", response_model=DistributionResponse)
async def get_leave_distribution(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> DistributionResponse:
    """Month distribution of a stored leave."""
    return await distribution_service.get_leave_distribution(session, auth.company_id, leave_id)
