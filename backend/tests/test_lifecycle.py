"""Tests for the request lifecycle: review transitions, authorization, the
compare-and-set on concurrent reviews, employee notification and the listings.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest

from staffhub.exceptions import ExternalChannelError, Forbidden, InvalidState, NotFound, ValidationError
from staffhub.models.enums import RequestStatus, ReviewDecision
from staffhub.models.request import LeaveRequest
from staffhub.schemas.auth import Principal
from staffhub.services import request as request_service

from factories import create_request, headers_for

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from factories import Catalog, Tenant
    from staffhub.services.mailer import InMemoryMailer
    from staffhub.services.notification import NotificationDispatcher
    from staffhub.services.sheets import InMemorySheetsClient

VACATION_DAYS = [date(2026, 3, 13), date(2026, 3, 16), date(2026, 3, 17)]


def _review_url(tenant: Tenant, request_id: uuid.UUID, action: str) -> str:
    return f"/org/{tenant.slug}/admin/requests/{request_id}/{action}"


# ---------------------------------------------------------------------------
# Review transitions
# ---------------------------------------------------------------------------


async def test_approve_pending_request(
    async_client: AsyncClient,
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    sheets: InMemorySheetsClient,
    mailer: InMemoryMailer,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    response = await async_client.post(
        _review_url(acme, request.id, "approve"),
        json={"notes": "Enjoy"},
        headers=headers_for(acme.admin),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["reviewed_by"] == str(acme.admin.id)
    assert data["reviewed_at"] is not None
    assert data["admin_notes"] == "Enjoy"

    await dispatcher.drain()
    assert sheets.rows == []
    [(to, subject, html)] = mailer.sent
    assert to == ["staff@acme.test"]
    assert subject == "Time-Off Request Approved - Single Day Off"
    assert "Enjoy" in html


async def test_deny_without_body(
    async_client: AsyncClient,
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    mailer: InMemoryMailer,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.vacation, VACATION_DAYS)
    response = await async_client.post(_review_url(acme, request.id, "deny"), headers=headers_for(acme.admin))
    assert response.status_code == 200
    assert response.json()["status"] == "denied"
    assert response.json()["admin_notes"] is None

    await dispatcher.drain()
    assert mailer.sent[0][1] == "Time-Off Request Denied - Vacation"


@pytest.mark.parametrize("status", [RequestStatus.APPROVED, RequestStatus.DENIED])
@pytest.mark.parametrize("decision", list(ReviewDecision))
async def test_terminal_request_cannot_be_reviewed(
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    acme: Tenant,
    catalog: Catalog,
    status: RequestStatus,
    decision: ReviewDecision,
) -> None:
    request = await create_request(
        db_session,
        acme,
        catalog.single_day,
        [date(2026, 3, 9)],
        status=status,
        reviewed_by=acme.admin.id,
        admin_notes="first decision",
    )
    with pytest.raises(InvalidState):
        await request_service.review_request(
            db_session, Principal(user_id=acme.admin.id), request.id, decision, "second decision", dispatcher
        )

    await db_session.refresh(request)
    assert request.status == status
    assert request.admin_notes == "first decision"
    assert dispatcher.pending == 0


async def test_terminal_request_is_409_over_http(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    first = await async_client.post(_review_url(acme, request.id, "approve"), headers=headers_for(acme.admin))
    second = await async_client.post(_review_url(acme, request.id, "deny"), headers=headers_for(acme.admin))
    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["error"] == "InvalidState"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("status", [RequestStatus.PENDING, RequestStatus.APPROVED])
async def test_foreign_admin_is_forbidden(
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    acme: Tenant,
    globex: Tenant,
    catalog: Catalog,
    status: RequestStatus,
) -> None:
    """Another tenant's admin gets 403 whatever the state, so the state is not revealed."""
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)], status=status)
    with pytest.raises(Forbidden):
        await request_service.approve_request(
            db_session, Principal(user_id=globex.admin.id), request.id, None, dispatcher
        )
    await db_session.refresh(request)
    assert request.status == status


async def test_foreign_admin_over_http(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    globex: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    response = await async_client.post(_review_url(globex, request.id, "approve"), headers=headers_for(globex.admin))
    assert response.status_code == 403


async def test_staff_cannot_review(
    async_client: AsyncClient,
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    response = await async_client.post(_review_url(acme, request.id, "approve"), headers=headers_for(acme.staff))
    assert response.status_code == 403

    with pytest.raises(Forbidden):
        await request_service.deny_request(db_session, Principal(user_id=acme.staff.id), request.id, None, dispatcher)


async def test_unknown_reviewer_is_forbidden(
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    stranger = Principal(user_id=uuid.uuid4())
    with pytest.raises(Forbidden):
        await request_service.approve_request(db_session, stranger, request.id, None, dispatcher)


async def test_unknown_request_is_404(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.post(
        f"/org/acme/admin/requests/{uuid.uuid4()}/approve", headers=headers_for(acme.admin)
    )
    assert response.status_code == 404


async def test_unknown_request_in_service(
    db_session: AsyncSession, dispatcher: NotificationDispatcher, acme: Tenant
) -> None:
    with pytest.raises(NotFound):
        await request_service.approve_request(
            db_session, Principal(user_id=acme.admin.id), uuid.uuid4(), None, dispatcher
        )


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


async def test_second_reviewer_with_stale_read_loses(
    db_session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: NotificationDispatcher,
    mailer: InMemoryMailer,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    """Both reviewers saw the request as pending; only the first conditional update lands."""
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    admin = Principal(user_id=acme.admin.id)

    async with session_factory() as other:
        stale = await other.get(LeaveRequest, request.id)
        assert stale is not None
        assert stale.status == RequestStatus.PENDING

        approved = await request_service.approve_request(db_session, admin, request.id, "first", dispatcher)
        assert approved.status == RequestStatus.APPROVED

        with pytest.raises(InvalidState, match="someone else"):
            await request_service.deny_request(other, admin, request.id, "second", dispatcher)
        await other.rollback()

    async with session_factory() as fresh:
        final = await fresh.get(LeaveRequest, request.id)
        assert final is not None
        assert final.status == RequestStatus.APPROVED
        assert final.admin_notes == "first"

    await dispatcher.drain()
    assert [subject for _, subject, _ in mailer.sent] == ["Time-Off Request Approved - Single Day Off"]


# ---------------------------------------------------------------------------
# Notification isolation
# ---------------------------------------------------------------------------


async def test_failing_mailer_does_not_fail_review(
    async_client: AsyncClient,
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    mailer: InMemoryMailer,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    mailer.fail_with = ExternalChannelError("email", "rate limited")
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])

    response = await async_client.post(_review_url(acme, request.id, "approve"), headers=headers_for(acme.admin))
    assert response.status_code == 200

    [result] = await dispatcher.drain()
    assert result.sheet_ok is True
    assert result.email_ok is False


async def test_dispatch_error_does_not_fail_review(
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    acme: Tenant,
    catalog: Catalog,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _explode(*args: Any, **kwargs: Any) -> bool:
        raise RuntimeError("event loop closed")

    monkeypatch.setattr(dispatcher, "dispatch", _explode)
    request = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])

    result = await request_service.approve_request(
        db_session, Principal(user_id=acme.admin.id), request.id, None, dispatcher
    )
    assert result.status == RequestStatus.APPROVED


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def test_review_queue_lists_pending_of_own_org(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    globex: Tenant,
    catalog: Catalog,
) -> None:
    first = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    second = await create_request(db_session, acme, catalog.vacation, VACATION_DAYS, user=acme.admin)
    await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 2)], status=RequestStatus.APPROVED)
    await create_request(db_session, globex, catalog.single_day, [date(2026, 3, 9)])

    response = await async_client.get("/org/acme/admin/requests", headers=headers_for(acme.admin))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {item["id"] for item in data["items"]} == {str(first.id), str(second.id)}
    assert all(item["status"] == "pending" for item in data["items"])


async def test_review_history_filters_by_status(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    approved = await create_request(
        db_session, acme, catalog.single_day, [date(2026, 3, 2)], status=RequestStatus.APPROVED
    )
    await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 3)], status=RequestStatus.DENIED)

    everything = await async_client.get("/org/acme/admin/requests/history", headers=headers_for(acme.admin))
    only_approved = await async_client.get(
        "/org/acme/admin/requests/history", params={"status": "approved"}, headers=headers_for(acme.admin)
    )
    assert everything.json()["total"] == 2
    assert [item["id"] for item in only_approved.json()["items"]] == [str(approved.id)]


async def test_review_history_rejects_pending_filter(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get(
        "/org/acme/admin/requests/history", params={"status": "pending"}, headers=headers_for(acme.admin)
    )
    assert response.status_code == 400


async def test_my_requests_only_lists_own(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    catalog: Catalog,
) -> None:
    mine = await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 10)], user=acme.admin)

    response = await async_client.get("/org/acme/requests/mine", headers=headers_for(acme.staff))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == str(mine.id)


async def test_team_calendar_shows_approved_days(
    async_client: AsyncClient,
    db_session: AsyncSession,
    acme: Tenant,
    globex: Tenant,
    catalog: Catalog,
) -> None:
    vacation = await create_request(
        db_session, acme, catalog.vacation, VACATION_DAYS, status=RequestStatus.APPROVED
    )
    await create_request(db_session, acme, catalog.single_day, [date(2026, 3, 9)])
    await create_request(db_session, globex, catalog.single_day, [date(2026, 3, 10)], status=RequestStatus.APPROVED)

    response = await async_client.get(
        "/org/acme/calendar",
        params={"start": "2026-03-01", "end": "2026-03-16"},
        headers=headers_for(acme.staff),
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["date"] for item in items] == ["2026-03-13", "2026-03-16"]
    assert {item["request_id"] for item in items} == {str(vacation.id)}


async def test_team_calendar_window_checks(db_session: AsyncSession, acme: Tenant) -> None:
    with pytest.raises(ValidationError):
        await request_service.team_calendar(db_session, acme.organization.id, date(2026, 3, 2), date(2026, 3, 1))
    with pytest.raises(ValidationError):
        await request_service.team_calendar(db_session, acme.organization.id, date(2026, 1, 1), date(2027, 1, 2))

    empty = await request_service.team_calendar(db_session, acme.organization.id, date(2026, 1, 1), date(2026, 1, 1))
    assert empty.items == []
