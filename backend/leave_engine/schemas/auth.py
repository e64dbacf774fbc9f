# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

_PAYROLL_ROLES = frozenset({"admin", "hr"})


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: str = "employee"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def can_adjust_unpaid(self) -> bool:
        """Admins and HR may read and edit the unpaid deduction ledger."""
        return self.role in _PAYROLL_ROLES
