from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from leave_engine.models.audit import AuditLog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from leave_engine.models.enums import AuditAction, AuditEntityType


def _json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def model_to_audit_dict(model: SQLModel, include: Iterable[str] | None = None) -> dict[str, Any]:
    """Serialize a SQLModel instance (optionally a subset of fields) for audit logging."""
    dumped = model.model_dump(include=set(include) if include is not None else None)
    return {key: _json_safe(value) for key, value in dumped.items()}


async def write_audit_log(
    session: AsyncSession,
    *,
    company_id: uuid.UUID,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        company_id=company_id,
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry
