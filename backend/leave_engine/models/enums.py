from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """Approval state of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LedgerScope(enum.StrEnum):
    """Which view of the unpaid deduction ledger to read."""

    MONTH = "month"
    ALL = "all"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_POLICY = "LEAVE_POLICY"
    LEAVE_ACCRUAL = "LEAVE_ACCRUAL"
    UNPAID_ADJUSTMENT = "UNPAID_ADJUSTMENT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
