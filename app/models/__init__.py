from sqlmodel import SQLModel

from app.models.audit import AuditLog
from app.models.base import IntIdBase, TimestampMixin, as_utc
from app.models.enums import (
    AccessLevel,
    AuditAction,
    AuditEntityType,
    HRStatus,
    LeaveType,
    RequestStatus,
    Transition,
)
from app.models.request import LeaveRequest
from app.models.revoked_token import RevokedToken
from app.models.user import User

__all__ = [
    "AccessLevel",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "HRStatus",
    "IntIdBase",
    "LeaveRequest",
    "LeaveType",
    "RequestStatus",
    "RevokedToken",
    "SQLModel",
    "TimestampMixin",
    "Transition",
    "User",
    "as_utc",
]
