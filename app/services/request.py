"""Leave request service: creation, scoped reads and listings, owner edits,
and the manager and HR decisions.

Every write is a conditional UPDATE or DELETE guarded by the state the caller
loaded; losing that race raises ``ConcurrentUpdateError``.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Literal

import sqlalchemy as sa
from sqlalchemy import and_, delete, func, or_, select, update
from sqlmodel import col

from app.exceptions import (
    ConcurrentUpdateError,
    NotFoundError,
    OverlappingRequestError,
    PermissionDeniedError,
    StateConflictError,
)
from app.models.enums import AccessLevel, AuditAction, AuditEntityType, HRStatus, LeaveType, RequestStatus, Transition
from app.models.request import LeaveRequest
from app.schemas.request import RequestListResponse, RequestResponse
from app.services import lifecycle
from app.services.audit import model_to_audit_dict, write_audit_log
from app.services.authorization import access_level, can_delete, can_edit, can_view, is_untouched
from app.services.clock import get_clock
from app.services.credentials import get_user_by_id
from app.services.departments import department_key

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.request import CreateRequestPayload, DecisionPayload, UpdateRequestPayload

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS: dict[Transition, AuditAction] = {
    Transition.MANAGER_APPROVE: AuditAction.MANAGER_APPROVE,
    Transition.MANAGER_REJECT: AuditAction.MANAGER_REJECT,
    Transition.HR_APPROVE: AuditAction.HR_APPROVE,
    Transition.HR_REJECT: AuditAction.HR_REJECT,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def count_business_days(start: date, end: date) -> int:
    """Count Monday-Friday days in the inclusive range."""
    if end < start:
        return 0
    full_weeks, remainder = divmod((end - start).days + 1, 7)
    days = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            days += 1
    return days


def _build_request_response(request: LeaveRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    if request.id is None:
        raise ValueError("request must be persisted")
    return RequestResponse(
        id=request.id,
        owner_id=request.owner_id,
        department=request.department,
        leave_type=LeaveType(request.leave_type),
        start_date=request.start_date,
        end_date=request.end_date,
        number_of_days=request.number_of_days,
        reason=request.reason,
        status=RequestStatus(request.status),
        hr_status=HRStatus(request.hr_status),
        manager_remarks=request.manager_remarks,
        manager_approver_id=request.manager_approver_id,
        manager_decided_at=request.manager_decided_at,
        hr_remarks=request.hr_remarks,
        hr_approver_id=request.hr_approver_id,
        hr_decided_at=request.hr_decided_at,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: int) -> LeaveRequest:
    """Fetch a request by ID with fresh column values. Raises 404 if not found."""
    request = await session.get(LeaveRequest, request_id, populate_existing=True)
    if request is None:
        raise NotFoundError("Request not found")
    return request


async def _get_visible_request(session: AsyncSession, actor: AuthContext, request_id: int) -> LeaveRequest:
    """Like ``_get_request_or_404`` but hides requests the actor may not view."""
    request = await _get_request_or_404(session, request_id)
    if not can_view(request, actor):
        raise NotFoundError("Request not found")
    return request


def _department_clause(department: str | None) -> sa.ColumnElement[bool]:
    """SQL form of ``department_contains(department, LeaveRequest.department)``."""
    prefix = department_key(department)
    if prefix is None:
        return sa.false()
    stored = col(LeaveRequest.department_key)
    return or_(stored == prefix, stored.startswith(f"{prefix}-", autoescape=True))


def _scope_clause(actor: AuthContext) -> sa.ColumnElement[bool]:
    """Rows visible to ``actor`` under its access level."""
    level = access_level(actor)
    if level == AccessLevel.ALL:
        return sa.true()
    own = col(LeaveRequest.owner_id) == actor.user_id
    if level == AccessLevel.DEPARTMENT:
        return or_(own, _department_clause(actor.department))
    return own


def _pending_clause(actor: AuthContext) -> sa.ColumnElement[bool]:
    """SQL form of ``lifecycle.is_pending_for``."""
    awaiting_manager = and_(
        col(LeaveRequest.status) == RequestStatus.PENDING.value,
        col(LeaveRequest.hr_status) == HRStatus.PENDING.value,
    )
    awaiting_hr = and_(
        col(LeaveRequest.status) == RequestStatus.MANAGER_APPROVED.value,
        col(LeaveRequest.hr_status) == HRStatus.PENDING.value,
    )
    clauses = [and_(col(LeaveRequest.owner_id) == actor.user_id, or_(awaiting_manager, awaiting_hr))]
    if actor.is_admin:
        clauses.append(or_(awaiting_manager, awaiting_hr))
    if actor.is_hr:
        clauses.append(awaiting_hr)
    if actor.is_manager:
        clauses.append(and_(awaiting_manager, _department_clause(actor.department)))
    return or_(*clauses)


async def _check_request_overlap(
    session: AsyncSession,
    owner_id: int,
    start_date: date,
    end_date: date,
    exclude_request_id: int | None = None,
) -> None:
    """Raise 409 if a request of the owner that was not rejected overlaps the range."""
    query = select(LeaveRequest.id).where(
        col(LeaveRequest.owner_id) == owner_id,
        col(LeaveRequest.status) != RequestStatus.MANAGER_REJECTED.value,
        col(LeaveRequest.hr_status) != HRStatus.REJECTED.value,
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise OverlappingRequestError("Request overlaps with an existing request that has not been rejected")


def _guarded_by_state(request: LeaveRequest) -> list[sa.ColumnElement[bool]]:
    """WHERE terms matching the request only while both tracks are unchanged."""
    return [
        col(LeaveRequest.id) == request.id,
        col(LeaveRequest.status) == request.status,
        col(LeaveRequest.hr_status) == request.hr_status,
    ]


async def _apply_status_update(
    session: AsyncSession,
    request: LeaveRequest,
    rule: lifecycle.TransitionRule,
    values: dict[str, Any],
) -> None:
    """Write a transition only if the stored state is still the rule's pre-state."""
    expected_status, expected_hr_status = rule.from_state
    result = await session.execute(
        update(LeaveRequest)
        .where(
            col(LeaveRequest.id) == request.id,
            col(LeaveRequest.status) == expected_status.value,
            col(LeaveRequest.hr_status) == expected_hr_status.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await session.rollback()
        raise ConcurrentUpdateError("Request was decided by someone else in the meantime")


def _ensure_modifiable(request: LeaveRequest, actor: AuthContext, action: Literal["edit", "delete"]) -> None:
    """Raise 403 for strangers and 409 for owners once an approval stage has acted."""
    is_owner = actor.user_id == request.owner_id
    check = can_edit if action == "edit" else can_delete
    if check(request, actor.is_admin, is_owner):
        return
    if is_owner and not is_untouched(request):
        raise StateConflictError(f"Cannot {action} a request after an approval stage has acted")
    raise PermissionDeniedError(f"Not authorized to {action} this request")


async def _decide(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    transition: Transition,
    payload: DecisionPayload | None,
) -> RequestResponse:
    """Shared flow for the four approval transitions.

    1. Load the request, hiding it if the actor may not view it.
    2. Check actor standing, then legality from the current state.
    3. Conditional update guarded by the pre-transition state.
    4. Audit log with before/after.
    5. Commit and return.
    """
    request = await _get_visible_request(session, actor, request_id)
    rule = lifecycle.ensure_transition_allowed(actor, request, transition)

    before_dict = model_to_audit_dict(request)
    old_state = f"{request.status}/{request.hr_status}"
    now = get_clock().now()
    values = lifecycle.transition_values(rule, actor, now, payload.remarks if payload else None)

    await _apply_status_update(session, request, rule, values)
    await session.refresh(request)

    write_audit_log(
        session,
        actor_id=actor.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=_AUDIT_ACTIONS[transition],
        before_json=before_dict,
        after_json=model_to_audit_dict(request),
    )
    await session.commit()
    logger.info(
        "Request %s transitioned %s -> %s/%s by user_id=%s",
        request.id,
        old_state,
        request.status,
        request.hr_status,
        actor.user_id,
    )
    return _build_request_response(request)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    actor: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Submit a leave request owned by the actor, pending on both tracks.

    The owner's department is read from storage, not from token claims, and
    frozen on the request.
    """
    owner = await get_user_by_id(session, actor.user_id)
    if owner is None:
        raise NotFoundError("User not found")

    end_date = payload.end_date or payload.start_date
    await _check_request_overlap(session, actor.user_id, payload.start_date, end_date)

    leave_request = LeaveRequest(
        owner_id=actor.user_id,
        department=owner.department,
        department_key=department_key(owner.department),
        leave_type=payload.leave_type.value,
        start_date=payload.start_date,
        end_date=end_date,
        number_of_days=count_business_days(payload.start_date, end_date),
        reason=payload.reason,
        status=RequestStatus.PENDING.value,
        hr_status=HRStatus.PENDING.value,
        created_at=get_clock().now(),
    )
    session.add(leave_request)
    await session.flush()

    write_audit_log(
        session,
        actor_id=actor.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=leave_request.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave_request),
    )
    await session.commit()
    await session.refresh(leave_request)
    logger.info("Request %s created by user_id=%s", leave_request.id, actor.user_id)
    return _build_request_response(leave_request)


async def get_request(session: AsyncSession, actor: AuthContext, request_id: int) -> RequestResponse:
    """Get a single request the actor is allowed to view."""
    request = await _get_visible_request(session, actor, request_id)
    return _build_request_response(request)


async def list_requests(
    session: AsyncSession,
    actor: AuthContext,
    status_filter: RequestStatus | None = None,
    hr_status_filter: HRStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests within the actor's access level, newest first."""
    base_filters = [_scope_clause(actor)]
    if status_filter is not None:
        base_filters.append(col(LeaveRequest.status) == status_filter.value)
    if hr_status_filter is not None:
        base_filters.append(col(LeaveRequest.hr_status) == hr_status_filter.value)
    return await _paginate(session, base_filters, offset, limit)


async def list_pending_requests(
    session: AsyncSession,
    actor: AuthContext,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """Requests awaiting something from the actor (or, for owners, still open)."""
    return await _paginate(session, [_pending_clause(actor)], offset, limit)


async def _paginate(
    session: AsyncSession,
    filters: list[sa.ColumnElement[bool]],
    offset: int,
    limit: int,
) -> RequestListResponse:
    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc(), col(LeaveRequest.id).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())
    return RequestListResponse(items=[_build_request_response(r) for r in requests], total=total)


async def update_request(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    payload: UpdateRequestPayload,
) -> RequestResponse:
    """Edit type, dates and reason. Status fields are never touched here."""
    request = await _get_visible_request(session, actor, request_id)
    _ensure_modifiable(request, actor, "edit")

    end_date = payload.end_date or payload.start_date
    await _check_request_overlap(session, request.owner_id, payload.start_date, end_date, exclude_request_id=request.id)

    before_dict = model_to_audit_dict(request)
    result = await session.execute(
        update(LeaveRequest)
        .where(*_guarded_by_state(request))
        .values(
            leave_type=payload.leave_type.value,
            start_date=payload.start_date,
            end_date=end_date,
            number_of_days=count_business_days(payload.start_date, end_date),
            reason=payload.reason,
            updated_at=get_clock().now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await session.rollback()
        raise ConcurrentUpdateError
    await session.refresh(request)

    write_audit_log(
        session,
        actor_id=actor.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(request),
    )
    await session.commit()
    return _build_request_response(request)


async def delete_request(session: AsyncSession, actor: AuthContext, request_id: int) -> None:
    """Delete a request nobody has acted on (or any request, for admins)."""
    request = await _get_visible_request(session, actor, request_id)
    _ensure_modifiable(request, actor, "delete")

    before_dict = model_to_audit_dict(request)
    result = await session.execute(
        delete(LeaveRequest).where(*_guarded_by_state(request)).execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await session.rollback()
        raise ConcurrentUpdateError

    write_audit_log(
        session,
        actor_id=actor.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    session.expunge(request)
    await session.commit()
    logger.info("Request %s deleted by user_id=%s", request_id, actor.user_id)


async def manager_approve(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    return await _decide(session, actor, request_id, Transition.MANAGER_APPROVE, payload)


async def manager_reject(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    return await _decide(session, actor, request_id, Transition.MANAGER_REJECT, payload)


async def hr_approve(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    return await _decide(session, actor, request_id, Transition.HR_APPROVE, payload)


async def hr_reject(
    session: AsyncSession,
    actor: AuthContext,
    request_id: int,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    return await _decide(session, actor, request_id, Transition.HR_REJECT, payload)
