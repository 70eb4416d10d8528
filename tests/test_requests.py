"""Tests for the leave request workflow: creation, visibility, the two approval
tracks, edit/delete rules, pending dashboards, concurrency and audit.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from app.exceptions import (
    ConcurrentUpdateError,
    NotFoundError,
    OverlappingRequestError,
    PermissionDeniedError,
    StateConflictError,
    TransitionNotAllowedError,
)
from app.models.audit import AuditLog
from app.models.enums import AuditAction, HRStatus, LeaveType, RequestStatus
from app.models.request import LeaveRequest
from app.schemas.auth import AuthContext
from app.schemas.request import CreateRequestPayload, DecisionPayload, UpdateRequestPayload
from app.services import request as request_service
from app.services.request import count_business_days

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from app.models.user import User

MONDAY = date(2026, 3, 9)


def _ctx(user: User) -> AuthContext:
    assert user.id is not None
    return AuthContext(
        user_id=user.id,
        username=user.username,
        is_admin=user.is_admin,
        is_manager=user.is_manager,
        is_hr=user.is_hr,
        department=user.department,
    )


def _payload(start: date = MONDAY, end: date | None = None, **kwargs: Any) -> CreateRequestPayload:
    return CreateRequestPayload(leave_type=LeaveType.ANNUAL, start_date=start, end_date=end, **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def people(make_user: Callable[..., Awaitable[User]]) -> dict[str, AuthContext]:
    """Sales org with an east/west split, an IT branch, HR and an admin."""
    return {
        "alice": _ctx(await make_user("alice", "Sales-East")),
        "bob": _ctx(await make_user("bob", "Sales-West")),
        "carol": _ctx(await make_user("carol", "IT-Support")),
        "sales_manager": _ctx(await make_user("sam", "Sales", is_manager=True)),
        "east_manager": _ctx(await make_user("erin", "Sales-East", is_manager=True)),
        "it_manager": _ctx(await make_user("ian", "IT", is_manager=True)),
        "hr": _ctx(await make_user("harper", "HR", is_hr=True)),
        "admin": _ctx(await make_user("ada", is_admin=True)),
    }


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def test_count_business_days() -> None:
    assert count_business_days(MONDAY, MONDAY) == 1
    assert count_business_days(date(2026, 3, 6), MONDAY) == 2  # Fri..Mon
    assert count_business_days(MONDAY, date(2026, 3, 22)) == 10
    assert count_business_days(date(2026, 3, 7), date(2026, 3, 8)) == 0
    assert count_business_days(MONDAY, date(2026, 3, 1)) == 0


class TestCreate:
    async def test_new_request_is_pending_on_both_tracks(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        result = await request_service.create_request(
            db_session, people["alice"], _payload(end=date(2026, 3, 13), reason="Trip")
        )

        assert result.status == RequestStatus.PENDING
        assert result.hr_status == HRStatus.PENDING
        assert result.owner_id == people["alice"].user_id
        assert result.department == "Sales-East"
        assert result.number_of_days == 5
        assert result.manager_approver_id is None

    async def test_single_day_defaults_end_to_start(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        result = await request_service.create_request(db_session, people["alice"], _payload())
        assert result.end_date == MONDAY
        assert result.number_of_days == 1

    async def test_department_comes_from_storage_not_token(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        stale = people["alice"].model_copy(update={"department": "IT"})
        result = await request_service.create_request(db_session, stale, _payload())
        assert result.department == "Sales-East"

    async def test_overlap_with_open_request_is_rejected(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        await request_service.create_request(db_session, people["alice"], _payload(end=date(2026, 3, 11)))
        with pytest.raises(OverlappingRequestError):
            await request_service.create_request(
                db_session, people["alice"], _payload(start=date(2026, 3, 11), end=date(2026, 3, 12))
            )

    async def test_overlap_with_rejected_request_is_allowed(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        first = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.manager_reject(db_session, people["sales_manager"], first.id)

        second = await request_service.create_request(db_session, people["alice"], _payload())
        assert second.id != first.id

    async def test_other_owners_do_not_overlap(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.create_request(db_session, people["bob"], _payload())

    async def test_creation_is_audited(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        result = await db_session.execute(
            select(AuditLog).where(col(AuditLog.entity_id) == str(created.id), col(AuditLog.action) == "CREATE")
        )
        entry = result.scalar_one()
        assert entry.actor_id == people["alice"].user_id
        assert entry.after_json is not None
        assert entry.after_json["status"] == "PENDING"


def test_end_before_start_fails_validation() -> None:
    with pytest.raises(ValueError, match="end_date"):
        CreateRequestPayload(leave_type=LeaveType.ANNUAL, start_date=MONDAY, end_date=date(2026, 3, 1))


# ---------------------------------------------------------------------------
# Approval flow
# ---------------------------------------------------------------------------


class TestApprovalFlow:
    async def test_manager_then_hr_reject_then_hr_approve_conflicts(
        self, db_session: AsyncSession, people: dict[str, AuthContext], clock: Any
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())

        approved = await request_service.manager_approve(
            db_session, people["sales_manager"], created.id, DecisionPayload(remarks="Fine by me")
        )
        assert approved.status == RequestStatus.MANAGER_APPROVED
        assert approved.hr_status == HRStatus.PENDING
        assert approved.manager_approver_id == people["sales_manager"].user_id
        assert approved.manager_remarks == "Fine by me"
        assert approved.manager_decided_at is not None

        rejected = await request_service.hr_reject(db_session, people["hr"], created.id)
        assert rejected.status == RequestStatus.MANAGER_APPROVED
        assert rejected.hr_status == HRStatus.REJECTED
        assert rejected.hr_approver_id == people["hr"].user_id

        with pytest.raises(StateConflictError, match="already been decided"):
            await request_service.hr_approve(db_session, people["hr"], created.id)

        current = await request_service.get_request(db_session, people["alice"], created.id)
        assert current.hr_status == HRStatus.REJECTED

    async def test_full_approval(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        created = await request_service.create_request(db_session, people["carol"], _payload())
        await request_service.manager_approve(db_session, people["it_manager"], created.id)
        final = await request_service.hr_approve(db_session, people["hr"], created.id)
        assert (final.status, final.hr_status) == (RequestStatus.MANAGER_APPROVED, HRStatus.APPROVED)

    async def test_sub_department_manager_can_approve(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        result = await request_service.manager_approve(db_session, people["east_manager"], created.id)
        assert result.status == RequestStatus.MANAGER_APPROVED

    @pytest.mark.parametrize("second", ["manager_approve", "manager_reject"])
    async def test_manager_decision_on_decided_request_never_mutates(
        self, db_session: AsyncSession, people: dict[str, AuthContext], second: str
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.manager_reject(
            db_session, people["sales_manager"], created.id, DecisionPayload(remarks="No")
        )

        with pytest.raises(TransitionNotAllowedError):
            await getattr(request_service, second)(db_session, people["east_manager"], created.id)

        current = await request_service.get_request(db_session, people["alice"], created.id)
        assert current.status == RequestStatus.MANAGER_REJECTED
        assert current.manager_approver_id == people["sales_manager"].user_id
        assert current.manager_remarks == "No"

    @pytest.mark.parametrize("action", ["hr_approve", "hr_reject"])
    async def test_hr_gated_on_manager_approval(
        self, db_session: AsyncSession, people: dict[str, AuthContext], action: str
    ) -> None:
        pending = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(TransitionNotAllowedError):
            await getattr(request_service, action)(db_session, people["hr"], pending.id)

        rejected = await request_service.create_request(db_session, people["bob"], _payload())
        await request_service.manager_reject(db_session, people["sales_manager"], rejected.id)
        with pytest.raises(TransitionNotAllowedError):
            await getattr(request_service, action)(db_session, people["hr"], rejected.id)

        current = await request_service.get_request(db_session, people["hr"], pending.id)
        assert current.hr_status == HRStatus.PENDING

    async def test_manager_outside_department_cannot_see_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(NotFoundError):
            await request_service.manager_approve(db_session, people["it_manager"], created.id)

    async def test_sibling_department_manager_cannot_approve(
        self, db_session: AsyncSession, people: dict[str, AuthContext], make_user: Callable[..., Awaitable[User]]
    ) -> None:
        west_manager = _ctx(await make_user("wes", "Sales-West", is_manager=True))
        created = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(NotFoundError):
            await request_service.manager_approve(db_session, west_manager, created.id)

    async def test_hr_cannot_take_manager_decision(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(PermissionDeniedError):
            await request_service.manager_approve(db_session, people["hr"], created.id)

    async def test_manager_cannot_decide_own_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["east_manager"], _payload())
        with pytest.raises(PermissionDeniedError):
            await request_service.manager_approve(db_session, people["east_manager"], created.id)
        result = await request_service.manager_approve(db_session, people["sales_manager"], created.id)
        assert result.status == RequestStatus.MANAGER_APPROVED

    async def test_admin_can_take_both_decisions(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["carol"], _payload())
        await request_service.manager_approve(db_session, people["admin"], created.id)
        final = await request_service.hr_approve(db_session, people["admin"], created.id)
        assert final.hr_approver_id == people["admin"].user_id

    async def test_transitions_are_audited(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.manager_approve(db_session, people["sales_manager"], created.id)
        await request_service.hr_approve(db_session, people["hr"], created.id)

        result = await db_session.execute(
            select(AuditLog).where(col(AuditLog.entity_id) == str(created.id)).order_by(col(AuditLog.id))
        )
        entries = result.scalars().all()
        assert [e.action for e in entries] == [AuditAction.CREATE, AuditAction.MANAGER_APPROVE, AuditAction.HR_APPROVE]
        manager_entry = entries[1]
        assert manager_entry.before_json is not None
        assert manager_entry.after_json is not None
        assert manager_entry.before_json["status"] == "PENDING"
        assert manager_entry.after_json["status"] == "MANAGER_APPROVED"

    async def test_concurrent_decision_loses_cleanly(
        self,
        db_session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        people: dict[str, AuthContext],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        original = request_service._get_visible_request

        async def _load_then_lose_race(session: AsyncSession, actor: AuthContext, request_id: int) -> LeaveRequest:
            stale = await original(session, actor, request_id)
            async with session_factory() as other:
                monkeypatch.setattr(request_service, "_get_visible_request", original)
                await request_service.manager_reject(other, people["east_manager"], request_id)
            return stale

        monkeypatch.setattr(request_service, "_get_visible_request", _load_then_lose_race)

        with pytest.raises(ConcurrentUpdateError):
            await request_service.manager_approve(db_session, people["sales_manager"], created.id)

        current = await request_service.get_request(db_session, people["alice"], created.id)
        assert current.status == RequestStatus.MANAGER_REJECTED
        assert current.manager_approver_id == people["east_manager"].user_id


# ---------------------------------------------------------------------------
# Visibility and listing
# ---------------------------------------------------------------------------


class TestVisibility:
    async def test_other_employee_gets_not_found(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(NotFoundError):
            await request_service.get_request(db_session, people["bob"], created.id)

    async def test_missing_request_is_not_found(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        with pytest.raises(NotFoundError):
            await request_service.get_request(db_session, people["admin"], 9999)

    async def test_list_is_scoped_by_access_level(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        for name in ("alice", "bob", "carol", "sales_manager"):
            await request_service.create_request(db_session, people[name], _payload())

        def owners(listing: Any) -> set[int]:
            return {item.owner_id for item in listing.items}

        own = await request_service.list_requests(db_session, people["alice"])
        assert owners(own) == {people["alice"].user_id}

        sales = await request_service.list_requests(db_session, people["sales_manager"])
        assert owners(sales) == {people["alice"].user_id, people["bob"].user_id, people["sales_manager"].user_id}
        assert sales.total == 3

        east = await request_service.list_requests(db_session, people["east_manager"])
        assert owners(east) == {people["alice"].user_id}

        for name in ("hr", "admin"):
            everything = await request_service.list_requests(db_session, people[name])
            assert everything.total == 4

    async def test_list_filters_and_paginates(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        first = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.create_request(db_session, people["bob"], _payload())
        await request_service.manager_approve(db_session, people["sales_manager"], first.id)

        approved = await request_service.list_requests(
            db_session, people["hr"], status_filter=RequestStatus.MANAGER_APPROVED
        )
        assert [item.id for item in approved.items] == [first.id]

        page = await request_service.list_requests(db_session, people["hr"], limit=1)
        assert page.total == 2
        assert len(page.items) == 1

    async def test_pending_projection_per_role(self, db_session: AsyncSession, people: dict[str, AuthContext]) -> None:
        awaiting_manager = await request_service.create_request(db_session, people["alice"], _payload())
        awaiting_hr = await request_service.create_request(db_session, people["bob"], _payload())
        closed = await request_service.create_request(db_session, people["carol"], _payload())
        await request_service.manager_approve(db_session, people["sales_manager"], awaiting_hr.id)
        await request_service.manager_reject(db_session, people["it_manager"], closed.id)

        async def pending_ids(name: str) -> set[int]:
            listing = await request_service.list_pending_requests(db_session, people[name])
            return {item.id for item in listing.items}

        assert await pending_ids("sales_manager") == {awaiting_manager.id}
        assert await pending_ids("east_manager") == {awaiting_manager.id}
        assert await pending_ids("it_manager") == set()
        assert await pending_ids("hr") == {awaiting_hr.id}
        assert await pending_ids("admin") == {awaiting_manager.id, awaiting_hr.id}
        assert await pending_ids("alice") == {awaiting_manager.id}
        assert await pending_ids("bob") == {awaiting_hr.id}
        assert await pending_ids("carol") == set()

    async def test_listing_matches_view_rules_for_non_ascii_departments(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        manager = _ctx(await make_user("oskar", "ÉDITION", is_manager=True))
        writer = _ctx(await make_user("zoe", "Édition-Paris"))
        outsider = _ctx(await make_user("ulla", "Éditions"))
        created = await request_service.create_request(db_session, writer, _payload())
        await request_service.create_request(db_session, outsider, _payload())

        viewed = await request_service.get_request(db_session, manager, created.id)
        assert viewed.department == "Édition-Paris"

        listing = await request_service.list_requests(db_session, manager)
        assert [item.id for item in listing.items] == [created.id]
        pending = await request_service.list_pending_requests(db_session, manager)
        assert [item.id for item in pending.items] == [created.id]


# ---------------------------------------------------------------------------
# Edit and delete
# ---------------------------------------------------------------------------


class TestEditDelete:
    async def test_owner_edits_untouched_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        update = UpdateRequestPayload(
            leave_type=LeaveType.EMERGENCY, start_date=MONDAY, end_date=date(2026, 3, 10), reason="Changed"
        )
        result = await request_service.update_request(db_session, people["alice"], created.id, update)

        assert result.leave_type == LeaveType.EMERGENCY
        assert result.number_of_days == 2
        assert result.reason == "Changed"
        assert result.status == RequestStatus.PENDING
        assert result.updated_at is not None

    @pytest.mark.parametrize("leave_type", list(LeaveType))
    async def test_owner_cannot_edit_or_delete_after_manager_acted(
        self, db_session: AsyncSession, people: dict[str, AuthContext], leave_type: LeaveType
    ) -> None:
        created = await request_service.create_request(
            db_session, people["alice"], CreateRequestPayload(leave_type=leave_type, start_date=MONDAY)
        )
        await request_service.manager_approve(db_session, people["sales_manager"], created.id)

        with pytest.raises(StateConflictError):
            await request_service.update_request(
                db_session,
                people["alice"],
                created.id,
                UpdateRequestPayload(leave_type=leave_type, start_date=MONDAY, reason="late change"),
            )
        with pytest.raises(StateConflictError):
            await request_service.delete_request(db_session, people["alice"], created.id)

    async def test_non_owner_manager_cannot_edit(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        with pytest.raises(PermissionDeniedError):
            await request_service.update_request(
                db_session,
                people["sales_manager"],
                created.id,
                UpdateRequestPayload(leave_type=LeaveType.ANNUAL, start_date=MONDAY),
            )

    async def test_edit_cannot_overlap_another_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        await request_service.create_request(db_session, people["alice"], _payload())
        second = await request_service.create_request(db_session, people["alice"], _payload(start=date(2026, 3, 16)))

        with pytest.raises(OverlappingRequestError):
            await request_service.update_request(
                db_session,
                people["alice"],
                second.id,
                UpdateRequestPayload(leave_type=LeaveType.ANNUAL, start_date=MONDAY),
            )

    async def test_admin_can_delete_decided_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.manager_approve(db_session, people["sales_manager"], created.id)
        await request_service.hr_approve(db_session, people["hr"], created.id)

        await request_service.delete_request(db_session, people["admin"], created.id)

        with pytest.raises(NotFoundError):
            await request_service.get_request(db_session, people["admin"], created.id)
        result = await db_session.execute(select(AuditLog).where(col(AuditLog.action) == AuditAction.DELETE))
        assert result.scalar_one().before_json is not None

    async def test_owner_deletes_untouched_request(
        self, db_session: AsyncSession, people: dict[str, AuthContext]
    ) -> None:
        created = await request_service.create_request(db_session, people["alice"], _payload())
        await request_service.delete_request(db_session, people["alice"], created.id)
        listing = await request_service.list_requests(db_session, people["alice"])
        assert listing.total == 0


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------


class TestRequestsApi:
    async def test_scenario_over_http(
        self,
        async_client: AsyncClient,
        people: dict[str, AuthContext],
        login: Callable[..., Awaitable[dict[str, str]]],
    ) -> None:
        alice = await login("alice")
        manager = await login("sam")
        hr = await login("harper")

        created = await async_client.post(
            "/requests", json={"leave_type": "ANNUAL", "start_date": "2026-03-09", "reason": "Trip"}, headers=alice
        )
        assert created.status_code == 201
        request_id = created.json()["id"]

        approved = await async_client.post(f"/requests/{request_id}/manager-approve", json={}, headers=manager)
        assert approved.status_code == 200
        assert approved.json()["status"] == "MANAGER_APPROVED"

        rejected = await async_client.post(
            f"/requests/{request_id}/hr-reject", json={"remarks": "Blackout period"}, headers=hr
        )
        assert rejected.status_code == 200
        assert rejected.json()["hr_status"] == "REJECTED"
        assert rejected.json()["hr_remarks"] == "Blackout period"

        again = await async_client.post(f"/requests/{request_id}/hr-approve", headers=hr)
        assert again.status_code == 409
        assert again.json()["error"] == "TransitionNotAllowedError"

    async def test_plain_employee_cannot_call_approval_endpoints(
        self,
        async_client: AsyncClient,
        people: dict[str, AuthContext],
        login: Callable[..., Awaitable[dict[str, str]]],
    ) -> None:
        alice = await login("alice")
        bob = await login("bob")
        created = await async_client.post(
            "/requests", json={"leave_type": "ANNUAL", "start_date": "2026-03-09"}, headers=alice
        )

        resp = await async_client.post(f"/requests/{created.json()['id']}/manager-approve", headers=bob)
        assert resp.status_code == 403
        assert resp.json()["error"] == "PermissionDeniedError"

    async def test_unviewable_request_is_404(
        self,
        async_client: AsyncClient,
        people: dict[str, AuthContext],
        login: Callable[..., Awaitable[dict[str, str]]],
    ) -> None:
        alice = await login("alice")
        bob = await login("bob")
        created = await async_client.post(
            "/requests", json={"leave_type": "ANNUAL", "start_date": "2026-03-09"}, headers=alice
        )

        resp = await async_client.get(f"/requests/{created.json()['id']}", headers=bob)
        assert resp.status_code == 404
        missing = await async_client.get("/requests/9999", headers=bob)
        assert missing.status_code == 404
        assert resp.json() == missing.json()

    async def test_edit_delete_and_pending_endpoints(
        self,
        async_client: AsyncClient,
        people: dict[str, AuthContext],
        login: Callable[..., Awaitable[dict[str, str]]],
    ) -> None:
        alice = await login("alice")
        manager = await login("sam")
        created = await async_client.post(
            "/requests", json={"leave_type": "ANNUAL", "start_date": "2026-03-09"}, headers=alice
        )
        request_id = created.json()["id"]

        edited = await async_client.put(
            f"/requests/{request_id}",
            json={"leave_type": "UNPAID", "start_date": "2026-03-09", "end_date": "2026-03-10"},
            headers=alice,
        )
        assert edited.status_code == 200
        assert edited.json()["number_of_days"] == 2

        pending = await async_client.get("/requests/pending", headers=manager)
        assert pending.status_code == 200
        assert [item["id"] for item in pending.json()["items"]] == [request_id]

        await async_client.post(f"/requests/{request_id}/manager-approve", headers=manager)

        locked = await async_client.delete(f"/requests/{request_id}", headers=alice)
        assert locked.status_code == 409

        listing = await async_client.get("/requests", params={"status": "MANAGER_APPROVED"}, headers=manager)
        assert listing.json()["total"] == 1

    async def test_invalid_dates_are_422(
        self,
        async_client: AsyncClient,
        people: dict[str, AuthContext],
        login: Callable[..., Awaitable[dict[str, str]]],
    ) -> None:
        alice = await login("alice")
        resp = await async_client.post(
            "/requests",
            json={"leave_type": "ANNUAL", "start_date": "2026-03-10", "end_date": "2026-03-09"},
            headers=alice,
        )
        assert resp.status_code == 422

    async def test_requests_require_authentication(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/requests")
        assert resp.status_code == 401
