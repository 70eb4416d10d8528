"""Permission decisions for leave requests.

Every function here is a pure predicate: it returns a bool and never raises.
Callers translate ``False`` into the appropriate denial. Role flags are
independent, so each rule checks them one by one rather than assuming a user
holds a single role.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.enums import AccessLevel, HRStatus, RequestStatus
from app.services.departments import department_contains

if TYPE_CHECKING:
    from app.models.request import LeaveRequest
    from app.schemas.auth import AuthContext


def access_level(actor: AuthContext) -> AccessLevel:
    """Scope of the request list an actor is allowed to see."""
    if actor.is_admin or actor.is_hr:
        return AccessLevel.ALL
    if actor.is_manager:
        return AccessLevel.DEPARTMENT
    return AccessLevel.OWN


def can_manage_requests(actor: AuthContext) -> bool:
    """Coarse gate applied before any per-request approval check."""
    return actor.is_admin or actor.is_manager or actor.is_hr


def can_manage_department(actor: AuthContext, target_department: str | None) -> bool:
    """Admins manage every department; managers manage their own subtree."""
    if actor.is_admin:
        return True
    if not actor.is_manager:
        return False
    return department_contains(actor.department, target_department)


def can_view(request: LeaveRequest, actor: AuthContext) -> bool:
    if actor.user_id == request.owner_id or actor.is_admin or actor.is_hr:
        return True
    return actor.is_manager and department_contains(actor.department, request.department)


def is_untouched(request: LeaveRequest) -> bool:
    """True while neither approval stage has acted on the request."""
    return request.status == RequestStatus.PENDING and request.hr_status == HRStatus.PENDING


def can_edit(request: LeaveRequest, is_admin: bool, is_owner: bool) -> bool:
    """Admins may always edit; owners only before any decision was made."""
    if is_admin:
        return True
    return is_owner and is_untouched(request)


def can_delete(request: LeaveRequest, is_admin: bool, is_owner: bool) -> bool:
    return can_edit(request, is_admin, is_owner)
