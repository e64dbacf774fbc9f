from sqlmodel import SQLModel

from leave_engine.models.audit import AuditLog
from leave_engine.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_engine.models.company import Company
from leave_engine.models.employee import Employee
from leave_engine.models.enums import AuditAction, AuditEntityType, LeaveStatus, LedgerScope
from leave_engine.models.leave import Leave
from leave_engine.models.unpaid_adjustment import UnpaidLeaveAdjustment

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Company",
    "Employee",
    "Leave",
    "LeaveStatus",
    "LedgerScope",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UnpaidLeaveAdjustment",
    "UpdatedAtMixin",
]
