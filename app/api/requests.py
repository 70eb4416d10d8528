# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from app.api.deps import ApproverDep, AuthDep
from app.db import SessionDep
from app.models.enums import HRStatus, RequestStatus
from app.schemas.request import (
    CreateRequestPayload,
    DecisionPayload,
    RequestListResponse,
    RequestResponse,
    UpdateRequestPayload,
)
from app.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a new leave request."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    hr_status_filter: HRStatus | None = Query(default=None, alias="hr_status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List leave requests within the caller's access level."""
    return await request_service.list_requests(session, auth, status_filter, hr_status_filter, offset, limit)


@requests_router.get("/pending", response_model=RequestListResponse)
async def list_pending_requests(
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List requests waiting on the caller."""
    return await request_service.list_pending_requests(session, auth, offset, limit)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(session, auth, request_id)


@requests_router.put("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: int,
    payload: UpdateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Edit a leave request nobody has acted on yet."""
    return await request_service.update_request(session, auth, request_id, payload)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    """Delete a leave request nobody has acted on yet."""
    await request_service.delete_request(session, auth, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@requests_router.post("/{request_id}/manager-approve", response_model=RequestResponse)
async def manager_approve(
    request_id: int,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve on the manager track."""
    return await request_service.manager_approve(session, auth, request_id, payload)


@requests_router.post("/{request_id}/manager-reject", response_model=RequestResponse)
async def manager_reject(
    request_id: int,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject on the manager track. The request is closed."""
    return await request_service.manager_reject(session, auth, request_id, payload)


@requests_router.post("/{request_id}/hr-approve", response_model=RequestResponse)
async def hr_approve(
    request_id: int,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve on the HR track once the manager has approved."""
    return await request_service.hr_approve(session, auth, request_id, payload)


@requests_router.post("/{request_id}/hr-reject", response_model=RequestResponse)
async def hr_reject(
    request_id: int,
    session: SessionDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject on the HR track once the manager has approved."""
    return await request_service.hr_reject(session, auth, request_id, payload)
