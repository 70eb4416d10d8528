"""Two-track approval state machine for leave requests.

A request carries a manager track (``status``) and an HR track
(``hr_status``). All legal moves live in ``TRANSITIONS``; anything not listed
there is rejected. The HR track may only move once the manager track has
reached ``MANAGER_APPROVED``.

    (PENDING, PENDING) --manager approve--> (MANAGER_APPROVED, PENDING)
    (PENDING, PENDING) --manager reject---> (MANAGER_REJECTED, PENDING)   terminal
    (MANAGER_APPROVED, PENDING) --HR approve--> (MANAGER_APPROVED, APPROVED) terminal
    (MANAGER_APPROVED, PENDING) --HR reject---> (MANAGER_APPROVED, REJECTED) terminal
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from app.exceptions import InvariantViolationError, PermissionDeniedError, TransitionNotAllowedError
from app.models.enums import HRStatus, RequestStatus, Transition
from app.services.authorization import can_manage_department
from app.services.departments import department_contains

if TYPE_CHECKING:
    from datetime import datetime

    from app.models.request import LeaveRequest
    from app.schemas.auth import AuthContext

State = tuple[RequestStatus, HRStatus]


@dataclass(frozen=True)
class TransitionRule:
    """Pre-state a transition requires and the track value it writes."""

    stage: Literal["manager", "hr"]
    from_state: State
    to_state: State

    @property
    def label(self) -> str:
        return f"{self.from_state[0]}/{self.from_state[1]} -> {self.to_state[0]}/{self.to_state[1]}"


INITIAL_STATE: State = (RequestStatus.PENDING, HRStatus.PENDING)

TRANSITIONS: dict[Transition, TransitionRule] = {
    Transition.MANAGER_APPROVE: TransitionRule(
        stage="manager",
        from_state=INITIAL_STATE,
        to_state=(RequestStatus.MANAGER_APPROVED, HRStatus.PENDING),
    ),
    Transition.MANAGER_REJECT: TransitionRule(
        stage="manager",
        from_state=INITIAL_STATE,
        to_state=(RequestStatus.MANAGER_REJECTED, HRStatus.PENDING),
    ),
    Transition.HR_APPROVE: TransitionRule(
        stage="hr",
        from_state=(RequestStatus.MANAGER_APPROVED, HRStatus.PENDING),
        to_state=(RequestStatus.MANAGER_APPROVED, HRStatus.APPROVED),
    ),
    Transition.HR_REJECT: TransitionRule(
        stage="hr",
        from_state=(RequestStatus.MANAGER_APPROVED, HRStatus.PENDING),
        to_state=(RequestStatus.MANAGER_APPROVED, HRStatus.REJECTED),
    ),
}

TERMINAL_STATES: frozenset[State] = frozenset(
    {
        (RequestStatus.MANAGER_REJECTED, HRStatus.PENDING),
        (RequestStatus.MANAGER_APPROVED, HRStatus.APPROVED),
        (RequestStatus.MANAGER_APPROVED, HRStatus.REJECTED),
    }
)

_REACHABLE_STATES: frozenset[State] = TERMINAL_STATES | {
    INITIAL_STATE,
    (RequestStatus.MANAGER_APPROVED, HRStatus.PENDING),
}


def current_state(request: LeaveRequest) -> State:
    """Parse both tracks, failing loudly on values no transition can produce."""
    try:
        state = (RequestStatus(request.status), HRStatus(request.hr_status))
    except ValueError as exc:
        msg = f"Request {request.id} has unknown status values {request.status!r}/{request.hr_status!r}"
        raise InvariantViolationError(msg) from exc
    if state not in _REACHABLE_STATES:
        msg = f"Request {request.id} is in unreachable state {state[0]}/{state[1]}: HR track moved before manager approval"
        raise InvariantViolationError(msg)
    return state


def is_terminal(request: LeaveRequest) -> bool:
    return current_state(request) in TERMINAL_STATES


def is_transition_legal(request: LeaveRequest, transition: Transition) -> bool:
    return current_state(request) == TRANSITIONS[transition].from_state


def is_actor_eligible(actor: AuthContext, request: LeaveRequest, transition: Transition) -> bool:
    """Role and department standing for a transition, ignoring current state."""
    if actor.user_id == request.owner_id:
        return False
    if TRANSITIONS[transition].stage == "manager":
        return can_manage_department(actor, request.department)
    return actor.is_hr or actor.is_admin


def can_actor_transition(actor: AuthContext, request: LeaveRequest, transition: Transition) -> bool:
    """Whether ``actor`` may trigger ``transition`` on ``request`` right now."""
    return is_actor_eligible(actor, request, transition) and is_transition_legal(request, transition)


def ensure_transition_allowed(actor: AuthContext, request: LeaveRequest, transition: Transition) -> TransitionRule:
    """Return the rule for ``transition`` or raise the matching failure.

    Authorization is checked before legality so that an ineligible actor
    always gets a denial, never a hint about the request's state.
    """
    rule = TRANSITIONS[transition]
    state = current_state(request)
    if not is_actor_eligible(actor, request, transition):
        if actor.user_id == request.owner_id:
            raise PermissionDeniedError("You cannot decide your own request")
        raise PermissionDeniedError("Not authorized to perform this action on the request")
    if state != rule.from_state:
        if state in TERMINAL_STATES:
            msg = f"Request has already been decided ({state[0]}/{state[1]})"
        elif rule.stage == "hr":
            msg = f"Request is awaiting manager approval ({state[0]}); HR cannot act yet"
        else:
            msg = f"Manager decision already recorded ({state[0]})"
        raise TransitionNotAllowedError(msg)
    return rule


def transition_values(
    rule: TransitionRule,
    actor: AuthContext,
    now: datetime,
    remarks: str | None = None,
) -> dict[str, Any]:
    """Column values written by a transition."""
    new_status, new_hr_status = rule.to_state
    if rule.stage == "manager":
        return {
            "status": new_status.value,
            "manager_approver_id": actor.user_id,
            "manager_decided_at": now,
            "manager_remarks": remarks,
            "updated_at": now,
        }
    return {
        "hr_status": new_hr_status.value,
        "hr_approver_id": actor.user_id,
        "hr_decided_at": now,
        "hr_remarks": remarks,
        "updated_at": now,
    }


def apply_transition(
    request: LeaveRequest,
    actor: AuthContext,
    transition: Transition,
    now: datetime,
    remarks: str | None = None,
) -> TransitionRule:
    """Check and apply ``transition`` to an in-memory request."""
    rule = ensure_transition_allowed(actor, request, transition)
    for key, value in transition_values(rule, actor, now, remarks).items():
        setattr(request, key, value)
    return rule


def is_pending_for(actor: AuthContext, request: LeaveRequest) -> bool:
    """Dashboard projection: does this request await something from ``actor``?

    Multi-role actors see the union of what each of their roles would see.
    """
    state = current_state(request)
    awaiting_hr = state == (RequestStatus.MANAGER_APPROVED, HRStatus.PENDING)
    awaiting_manager = state == INITIAL_STATE

    if request.owner_id == actor.user_id:
        return awaiting_manager or awaiting_hr
    if actor.is_admin and (awaiting_manager or awaiting_hr):
        return True
    if actor.is_hr and awaiting_hr:
        return True
    return actor.is_manager and awaiting_manager and department_contains(actor.department, request.department)
