from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from app.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from app.models.enums import AuditAction, AuditEntityType

_REDACTED_FIELDS = frozenset({"password_hash", "refresh_token_hash"})


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict, dropping secrets."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if key in _REDACTED_FIELDS:
            continue
        if isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


def write_audit_log(
    session: AsyncSession,
    *,
    actor_id: int | None,
    entity_type: AuditEntityType,
    entity_id: int | str | None,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=None if entity_id is None else str(entity_id),
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry
