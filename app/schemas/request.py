from __future__ import annotations

from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from app.models.enums import HRStatus, LeaveType, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class _LeaveDetails(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class CreateRequestPayload(_LeaveDetails):
    """Request body for submitting a new leave request."""


class UpdateRequestPayload(_LeaveDetails):
    """Request body for editing a leave request that nobody has acted on."""


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    remarks: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: int
    owner_id: int
    department: str | None
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: int
    reason: str | None
    status: RequestStatus
    hr_status: HRStatus
    manager_remarks: str | None
    manager_approver_id: int | None
    manager_decided_at: datetime | None
    hr_remarks: str | None
    hr_approver_id: int | None
    hr_decided_at: datetime | None
    created_at: datetime
    updated_at: datetime | None


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int
