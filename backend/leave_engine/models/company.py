# ruff: noqa: TC003
from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase


class Company(UUIDBase, TimestampMixin, table=True):
    """A tenant; owns the leave policy that drives accrual."""

    __tablename__ = "company"

    name: str = Field(max_length=255)
    leave_policy_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
