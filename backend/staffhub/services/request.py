# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from staffhub.exceptions import Forbidden, InvalidState, NotFound, ValidationError
from staffhub.models.enums import NotificationType, RequestStatus, ReviewDecision, UserRole
from staffhub.repositories import LeaveRequestRepository, LeaveTypeRepository, ProfileRepository
from staffhub.schemas.notification import NotificationEnvelope, StatusChangeEvent
from staffhub.schemas.request import CalendarEntry, CalendarResponse, LeaveRequestListResponse, LeaveRequestResponse
from staffhub.services.submission import DEFAULT_LEAVE_TYPE_LABEL

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from staffhub.models.request import LeaveRequest
    from staffhub.schemas.auth import Principal
    from staffhub.services.notification import NotificationDispatcher

logger = logging.getLogger(__name__)

# Longest window the team calendar serves in one call.
MAX_CALENDAR_DAYS = 366


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        user_id=request.user_id,
        organization_id=request.organization_id,
        leave_type_id=request.leave_type_id,
        pay_period_id=request.pay_period_id,
        submission_date=request.submission_date,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason,
        coverage_name=request.coverage_name,
        coverage_email=request.coverage_email,
        status=RequestStatus(request.status),
        reviewed_by=request.reviewed_by,
        reviewed_at=request.reviewed_at,
        admin_notes=request.admin_notes,
        created_at=request.created_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    request = await LeaveRequestRepository(session).get_by_id(request_id)
    if request is None:
        raise NotFound("Request not found")
    return request


async def _notify_status_change(
    session: AsyncSession,
    request: LeaveRequest,
    decision: ReviewDecision,
    dispatcher: NotificationDispatcher,
) -> None:
    """Tell the employee about the decision. Never raises."""
    try:
        employee = await ProfileRepository(session).get_by_id(request.user_id)
        if employee is None:
            logger.warning("No profile for user %s; skipping %s email for %s", request.user_id, decision, request.id)
            return
        leave_type = await LeaveTypeRepository(session).get_by_id(request.leave_type_id)
        event = StatusChangeEvent(
            type=NotificationType(decision.value),
            employee_name=employee.full_name,
            employee_email=employee.email,
            leave_type=leave_type.name if leave_type else DEFAULT_LEAVE_TYPE_LABEL,
            start_date=request.start_date,
            end_date=request.end_date,
            admin_notes=request.admin_notes,
            request_id=request.id,
        )
        dispatcher.dispatch(NotificationEnvelope(event=event, organization_id=request.organization_id))
    except Exception:
        logger.exception("Could not hand off %s notification for request %s", decision, request.id)


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


async def review_request(
    session: AsyncSession,
    reviewer: Principal,
    request_id: uuid.UUID,
    decision: ReviewDecision,
    notes: str | None,
    dispatcher: NotificationDispatcher,
) -> LeaveRequestResponse:
    """Move a pending request to approved or denied.

    1. Load the request (404).
    2. Reviewer must be an admin of the request's organization (403). This is
       checked before the status so other tenants learn nothing about it.
    3. Request must still be pending (409).
    4. Conditional update on ``status = 'pending'``; losing a race is a 409.
    5. Commit, then hand the employee notification to the dispatcher.
    """
    request = await _get_request_or_404(session, request_id)

    profile = await ProfileRepository(session).get_by_id(reviewer.user_id)
    if (
        profile is None
        or profile.role != UserRole.ADMIN
        or profile.organization_id is None
        or profile.organization_id != request.organization_id
    ):
        raise Forbidden("Only an admin of this organization can review its requests")

    if request.status != RequestStatus.PENDING:
        raise InvalidState(f"Request is already {request.status}")

    updated = await LeaveRequestRepository(session).conditional_update(
        request_id,
        RequestStatus.PENDING,
        {
            "status": RequestStatus(decision.value).value,
            "reviewed_by": reviewer.user_id,
            "reviewed_at": datetime.now(UTC),
            "admin_notes": notes,
        },
    )
    if not updated:
        raise InvalidState("Request was reviewed by someone else")

    await session.commit()
    await session.refresh(request)
    logger.info("Request %s %s by %s", request.id, decision, reviewer.user_id)

    await _notify_status_change(session, request, decision, dispatcher)
    return _build_request_response(request)


async def approve_request(
    session: AsyncSession,
    reviewer: Principal,
    request_id: uuid.UUID,
    notes: str | None,
    dispatcher: NotificationDispatcher,
) -> LeaveRequestResponse:
    return await review_request(session, reviewer, request_id, ReviewDecision.APPROVED, notes, dispatcher)


async def deny_request(
    session: AsyncSession,
    reviewer: Principal,
    request_id: uuid.UUID,
    notes: str | None,
    dispatcher: NotificationDispatcher,
) -> LeaveRequestResponse:
    return await review_request(session, reviewer, request_id, ReviewDecision.DENIED, notes, dispatcher)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def list_review_queue(
    session: AsyncSession,
    organization_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """Pending requests of one organization, newest first."""
    items, total = await LeaveRequestRepository(session).list_for_organization(
        organization_id, statuses=[RequestStatus.PENDING], offset=offset, limit=limit
    )
    return LeaveRequestListResponse(items=[_build_request_response(r) for r in items], total=total)


async def list_review_history(
    session: AsyncSession,
    organization_id: uuid.UUID,
    status: RequestStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """Reviewed requests of one organization. ``status`` narrows to approved or denied."""
    if status == RequestStatus.PENDING:
        raise ValidationError("status", "History only contains reviewed requests")
    statuses = [status] if status else [RequestStatus.APPROVED, RequestStatus.DENIED]
    items, total = await LeaveRequestRepository(session).list_for_organization(
        organization_id, statuses=statuses, offset=offset, limit=limit
    )
    return LeaveRequestListResponse(items=[_build_request_response(r) for r in items], total=total)


async def list_my_requests(
    session: AsyncSession,
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    items, total = await LeaveRequestRepository(session).list_for_organization(
        organization_id, user_id=user_id, offset=offset, limit=limit
    )
    return LeaveRequestListResponse(items=[_build_request_response(r) for r in items], total=total)


async def team_calendar(
    session: AsyncSession,
    organization_id: uuid.UUID,
    start: date,
    end: date,
) -> CalendarResponse:
    """Approved days off of one organization between ``start`` and ``end`` inclusive."""
    if end < start:
        raise ValidationError("end", "End date must be on or after the start date")
    if (end - start).days >= MAX_CALENDAR_DAYS:
        raise ValidationError("end", f"Calendar window is limited to {MAX_CALENDAR_DAYS} days")
    rows = await LeaveRequestRepository(session).approved_dates_between(organization_id, start, end)
    return CalendarResponse(
        items=[
            CalendarEntry(
                date=day,
                request_id=request.id,
                user_id=request.user_id,
                leave_type_id=request.leave_type_id,
            )
            for day, request in rows
        ]
    )
