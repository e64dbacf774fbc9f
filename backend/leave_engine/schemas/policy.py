# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date
from typing import Annotated, Self

from pydantic import BaseModel, BeforeValidator, Field, model_validator

from leave_engine.services.dates import coerce_date, coerce_number

# Stored documents are read leniently: absent, null or non-finite numbers
# count as zero and unparseable dates count as absent.
Days = Annotated[float, BeforeValidator(coerce_number)]
OptionalDate = Annotated[date | None, BeforeValidator(coerce_date)]


def _mapping_or_empty(value: object) -> object:
    """Null or non-object nested documents read as empty."""
    if isinstance(value, (Mapping, BaseModel)):
        return value
    return {}


# ---------------------------------------------------------------------------
# Per-type day records
# ---------------------------------------------------------------------------


class TypeCaps(BaseModel):
    """Per-type yearly caps configured on the company policy."""

    paid: Days = 0.0
    casual: Days = 0.0
    sick: Days = 0.0


class LeaveUsage(BaseModel):
    """Cumulative days consumed by an employee, per leave type."""

    paid: Days = 0.0
    casual: Days = 0.0
    sick: Days = 0.0
    unpaid: Days = 0.0

    @property
    def entitlement_used(self) -> float:
        """Days that consume the annual entitlement; unpaid leave does not."""
        return self.paid + self.casual + self.sick


class LeaveAllocations(BaseModel):
    """Days assigned to one leave request per type, decided at approval."""

    paid: Days = 0.0
    casual: Days = 0.0
    sick: Days = 0.0
    unpaid: Days = 0.0

    @property
    def total(self) -> float:
        return self.paid + self.casual + self.sick + self.unpaid


class LeaveBalances(BaseModel):
    """UI-facing per-type balances.

    ``unpaid`` is the number of unpaid days already taken, not a remaining
    capacity.
    """

    paid: float = 0.0
    casual: float = 0.0
    sick: float = 0.0
    unpaid: float = 0.0


# ---------------------------------------------------------------------------
# Company leave policy
# ---------------------------------------------------------------------------


class LeavePolicy(BaseModel):
    """Leave policy as stored on the company record."""

    rate_per_month: Days = 0.0
    total_annual: Days = 0.0
    applicable_from: OptionalDate = None
    type_caps: Annotated[TypeCaps, BeforeValidator(_mapping_or_empty)] = Field(default_factory=TypeCaps)

    @property
    def accrues(self) -> bool:
        """A non-positive rate or annual total disables automatic accrual."""
        return self.rate_per_month > 0 and self.total_annual > 0


class TypeCapsUpdate(BaseModel):
    """Strict per-type caps accepted on policy updates."""

    paid: float = Field(default=0, ge=0, allow_inf_nan=False)
    casual: float = Field(default=0, ge=0, allow_inf_nan=False)
    sick: float = Field(default=0, ge=0, allow_inf_nan=False)


class LeavePolicyUpdate(BaseModel):
    """Request body for replacing a company's leave policy."""

    rate_per_month: float = Field(ge=0, allow_inf_nan=False)
    total_annual: float = Field(ge=0, allow_inf_nan=False)
    applicable_from: date | None = None
    type_caps: TypeCapsUpdate = Field(default_factory=TypeCapsUpdate)

    @model_validator(mode="after")
    def _validate_caps(self) -> Self:
        caps = self.type_caps
        if caps.paid + caps.casual + caps.sick > self.total_annual:
            msg = "Type caps cannot exceed total annual leaves"
            raise ValueError(msg)
        return self


class LeavePolicyResponse(BaseModel):
    """Company leave policy as returned by the API."""

    company_id: uuid.UUID
    rate_per_month: float
    total_annual: float
    applicable_from: date | None
    type_caps: TypeCaps
    accrues: bool
