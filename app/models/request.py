from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import IntIdBase, TimestampMixin
from app.models.enums import HRStatus, RequestStatus


class LeaveRequest(IntIdBase, TimestampMixin, table=True):
    """A leave submission moving through manager then HR approval."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_request_status", "status", "hr_status"),)

    owner_id: int = Field(
        sa_column=sa.Column(sa.Integer, sa.ForeignKey("app_user.id"), nullable=False, index=True),
    )
    department: str | None = Field(default=None, max_length=255)
    # Lower-cased copy of department, matched by the scoped list queries.
    department_key: str | None = Field(default=None, max_length=255, index=True)
    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    number_of_days: int = 0
    reason: str | None = None

    status: str = Field(default=RequestStatus.PENDING, max_length=50, sa_column_kwargs={"server_default": "PENDING"})
    hr_status: str = Field(default=HRStatus.PENDING, max_length=50, sa_column_kwargs={"server_default": "PENDING"})

    manager_remarks: str | None = None
    manager_approver_id: int | None = None
    manager_decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    hr_remarks: str | None = None
    hr_approver_id: int | None = None
    hr_decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    updated_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
