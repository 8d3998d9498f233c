"""Staff form submission pipeline.

Every form goes through the same steps: validate, optionally persist a leave
request, build the notification event, hand it to the dispatcher. Only
signed-in staff submitting a day off or vacation get a tracked request;
everything else is notification only.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from staffhub.exceptions import NotFound, ValidationError
from staffhub.models.enums import FORM_NOTIFICATION_TYPES, PERSISTABLE_FORMS, FormType, NotificationType
from staffhub.models.request import LeaveRequest
from staffhub.repositories import (
    LeaveRequestRepository,
    LeaveTypeRepository,
    OrganizationRepository,
    PayPeriodRepository,
    ProfileRepository,
)
from staffhub.schemas.notification import (
    LeaveRequestEvent,
    NotificationEnvelope,
    NotificationEvent,
    OvertimeEvent,
    SickDayEvent,
    TimeClockEvent,
)
from staffhub.schemas.submission import (
    DayOffPayload,
    OvertimePayload,
    SickDayPayload,
    SubmissionPayload,
    SubmissionResult,
    TimeClockPayload,
    VacationPayload,
)
from staffhub.services.dates import local_today, pay_period_label, vacation_pay_period_label, weekday_dates_between
from staffhub.services.storage import check_document

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from staffhub.models.organization import Organization
    from staffhub.models.reference import LeaveType, PayPeriod
    from staffhub.schemas.auth import Principal
    from staffhub.services.notification import NotificationDispatcher
    from staffhub.services.storage import DocumentStorage

logger = logging.getLogger(__name__)

VACATION_LEAVE_TYPE = "Vacation"
DEFAULT_LEAVE_TYPE_LABEL = "Time Off"

_CLOCK_IN_FIELDS = ("clock_in_date", "clock_in_time", "clock_in_reason")
_CLOCK_OUT_FIELDS = ("clock_out_date", "clock_out_time", "clock_out_reason")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(payload: SubmissionPayload, *fields: str) -> None:
    for name in fields:
        if _missing(getattr(payload, name)):
            raise ValidationError(name)


def _validate_day_off(payload: DayOffPayload) -> None:
    _require(payload, "employee_name", "employee_email", "leave_type_id", "day_off_date", "reason")


def _vacation_range(payload: VacationPayload) -> tuple[date, date]:
    if payload.start_date is None:
        raise ValidationError("start_date")
    if payload.end_date is None:
        raise ValidationError("end_date")
    return payload.start_date, payload.end_date


def _validate_vacation(payload: VacationPayload) -> None:
    _require(payload, "employee_name", "employee_email")
    start, end = _vacation_range(payload)
    if end < start:
        raise ValidationError("end_date", "End date must be on or after the start date")
    if not payload.pay_period_ids:
        raise ValidationError("pay_period_ids", "Select at least one pay period")
    if not weekday_dates_between(start, end):
        raise ValidationError("start_date", "Vacation range contains no weekdays")


def _validate_time_clock(payload: TimeClockPayload) -> None:
    _require(payload, "employee_name", "employee_email")
    started_in = any(not _missing(getattr(payload, f)) for f in _CLOCK_IN_FIELDS)
    started_out = any(not _missing(getattr(payload, f)) for f in _CLOCK_OUT_FIELDS)
    if not started_in and not started_out:
        raise ValidationError("clock_in_date", "Provide a clock-in or clock-out correction")
    # A half-filled correction would land in the sheet without its time or reason.
    if started_in:
        _require(payload, *_CLOCK_IN_FIELDS)
    if started_out:
        _require(payload, *_CLOCK_OUT_FIELDS)


def _validate_overtime(payload: OvertimePayload) -> None:
    _require(payload, "employee_name", "employee_email", "overtime_date", "asked_doctor")
    if payload.asked_doctor is False:
        _require(payload, "senior_staff_name")


def _validate_sick_day(payload: SickDayPayload) -> None:
    _require(payload, "employee_name", "employee_email", "sick_date", "has_doctor_note")
    if payload.has_doctor_note:
        if payload.doctor_note is None:
            raise ValidationError("doctor_note")
        check_document(payload.doctor_note)


def validate_submission(form_type: FormType, payload: SubmissionPayload) -> None:
    """Raise ``ValidationError`` for the first missing or invalid field, in form order."""
    match form_type, payload:
        case FormType.DAY_OFF, DayOffPayload():
            _validate_day_off(payload)
        case FormType.VACATION, VacationPayload():
            _validate_vacation(payload)
        case FormType.TIME_CLOCK, TimeClockPayload():
            _validate_time_clock(payload)
        case FormType.OVERTIME, OvertimePayload():
            _validate_overtime(payload)
        case FormType.SICK_DAY, SickDayPayload():
            _validate_sick_day(payload)
        case _:
            raise ValidationError("form_type", f"Payload does not match form type {form_type}")


# ---------------------------------------------------------------------------
# Context resolution
# ---------------------------------------------------------------------------


@dataclass
class _Context:
    """Who submitted, on behalf of which organization, and the derived labels."""

    submission_date: date
    organization_id: uuid.UUID | None = None
    persist_for: uuid.UUID | None = None
    pay_period_label: str | None = None
    leave_type_id: uuid.UUID | None = None
    leave_type_name: str | None = None


async def _resolve_organization_id(
    session: AsyncSession,
    payload: SubmissionPayload,
    principal: Principal | None,
    organization: Organization | None,
) -> tuple[uuid.UUID | None, uuid.UUID | None]:
    """Return (organization for routing, organization to persist under).

    A signed-in member always routes to their own organization; the slug is
    only honoured for callers without one.
    """
    if organization is not None:
        routing = organization.id
    elif payload.organization_slug:
        found = await OrganizationRepository(session).get_by_slug(payload.organization_slug)
        if found is None:
            raise NotFound("Organization not found")
        routing = found.id
    else:
        routing = None

    if principal is None:
        return routing, None
    profile = await ProfileRepository(session).get_by_id(principal.user_id)
    if profile is None or profile.organization_id is None:
        return routing, None
    if routing is not None and routing != profile.organization_id:
        logger.info("Ignoring organization %s for member %s of %s", routing, principal.user_id, profile.organization_id)
    return profile.organization_id, profile.organization_id


def _apply_leave_type(context: _Context, leave_type: LeaveType | None) -> None:
    # Copied out so the values survive a rollback expiring the instance.
    if leave_type is not None:
        context.leave_type_id = leave_type.id
        context.leave_type_name = leave_type.name


async def _single_period_label(session: AsyncSession, pay_period_id: uuid.UUID | None) -> str | None:
    if pay_period_id is None:
        return None
    periods = await PayPeriodRepository(session).get_many([pay_period_id])
    return pay_period_label(periods[0]) if periods else None


async def _overlapping_periods(session: AsyncSession, payload: VacationPayload) -> list[PayPeriod]:
    """Resolve the chosen pay periods, keeping those that overlap the vacation range."""
    start, end = _vacation_range(payload)
    periods = await PayPeriodRepository(session).get_many(payload.pay_period_ids)
    overlapping = [p for p in periods if p.start_date <= end and p.end_date >= start]
    if not overlapping:
        raise ValidationError("pay_period_ids", "Select a pay period that overlaps the vacation dates")
    return overlapping


async def _build_context(
    session: AsyncSession,
    form_type: FormType,
    payload: SubmissionPayload,
    principal: Principal | None,
    organization: Organization | None,
) -> _Context:
    routing, persist_org = await _resolve_organization_id(session, payload, principal, organization)
    context = _Context(submission_date=payload.submission_date or local_today(), organization_id=routing)

    if isinstance(payload, VacationPayload):
        periods = await _overlapping_periods(session, payload)
        context.pay_period_label = vacation_pay_period_label(periods)
        _apply_leave_type(context, await LeaveTypeRepository(session).get_by_name(VACATION_LEAVE_TYPE))
    elif isinstance(payload, DayOffPayload):
        context.pay_period_label = await _single_period_label(session, payload.pay_period_id)
        if payload.leave_type_id is not None:
            _apply_leave_type(context, await LeaveTypeRepository(session).get_by_id(payload.leave_type_id))
    elif isinstance(payload, TimeClockPayload | OvertimePayload | SickDayPayload):
        context.pay_period_label = await _single_period_label(session, payload.pay_period_id)

    if form_type in PERSISTABLE_FORMS and persist_org is not None and context.leave_type_id is not None:
        context.persist_for = persist_org
    return context


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Span:
    start: date
    end: date
    dates: list[date]
    reason: str
    pay_period_id: uuid.UUID | None


def _request_span(payload: DayOffPayload | VacationPayload) -> _Span:
    """Range, stored dates, reason and pay period of a leave request."""
    if isinstance(payload, VacationPayload):
        start, end = _vacation_range(payload)
        # A vacation may span several periods; the label carries them instead.
        return _Span(start, end, weekday_dates_between(start, end), payload.notes or "", None)
    if payload.day_off_date is None:
        raise ValidationError("day_off_date")
    day = payload.day_off_date
    return _Span(day, day, [day], payload.reason or "", payload.pay_period_id)


async def _persist_leave_request(
    session: AsyncSession,
    payload: DayOffPayload | VacationPayload,
    principal: Principal,
    *,
    organization_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    submission_date: date,
) -> uuid.UUID | None:
    """Insert the pending request and its dates. Returns None (and rolls back) on a database error."""
    span = _request_span(payload)
    dates = span.dates
    request = LeaveRequest(
        user_id=principal.user_id,
        leave_type_id=leave_type_id,
        organization_id=organization_id,
        pay_period_id=span.pay_period_id,
        submission_date=submission_date,
        start_date=span.start,
        end_date=span.end,
        reason=span.reason,
        coverage_name=payload.coverage_name,
        coverage_email=payload.coverage_email,
    )
    request_id = request.id
    try:
        await LeaveRequestRepository(session).insert(request, dates)
        await session.commit()
    except SQLAlchemyError:
        logger.exception("Could not save %s request for user %s", type(payload).__name__, principal.user_id)
        await session.rollback()
        return None
    logger.info("Saved leave request %s (%d day(s)) for user %s", request_id, len(dates), principal.user_id)
    return request_id


async def _store_doctor_note(payload: SickDayPayload, storage: DocumentStorage | None) -> str | None:
    """Upload the note if there is one. Failure leaves the link empty."""
    if not payload.has_doctor_note or payload.doctor_note is None:
        return None
    if storage is None:
        logger.warning("Document storage is not configured; doctor's note from %s not stored", payload.employee_email)
        return None
    try:
        return await storage.upload(payload.doctor_note)
    except Exception:
        logger.warning("Doctor's note upload failed for %s", payload.employee_email, exc_info=True)
        return None


# ---------------------------------------------------------------------------
# Event building
# ---------------------------------------------------------------------------


def _build_event(
    form_type: FormType,
    payload: SubmissionPayload,
    context: _Context,
    request_id: uuid.UUID | None,
    doctor_note_link: str | None,
) -> NotificationEvent:
    event_type = FORM_NOTIFICATION_TYPES[form_type]
    common = {
        "employee_name": payload.employee_name,
        "employee_email": payload.employee_email,
        "submission_date": context.submission_date,
        "pay_period_label": context.pay_period_label,
    }
    leave_type = context.leave_type_name or DEFAULT_LEAVE_TYPE_LABEL

    match payload:
        case DayOffPayload():
            return LeaveRequestEvent(
                type=NotificationType.NEW_REQUEST,
                start_date=payload.day_off_date,
                end_date=payload.day_off_date,
                total_days=1,
                reason=payload.reason,
                leave_type=leave_type,
                coverage_name=payload.coverage_name,
                coverage_email=payload.coverage_email,
                request_id=request_id,
                **common,
            )
        case VacationPayload():
            span = _request_span(payload)
            return LeaveRequestEvent(
                type=NotificationType.VACATION_REQUEST,
                start_date=span.start,
                end_date=span.end,
                total_days=len(span.dates),
                reason=span.reason,
                leave_type=VACATION_LEAVE_TYPE,
                coverage_name=payload.coverage_name,
                coverage_email=payload.coverage_email,
                request_id=request_id,
                **common,
            )
        case TimeClockPayload():
            return TimeClockEvent(
                clock_in_date=payload.clock_in_date,
                clock_in_time=payload.clock_in_time,
                clock_in_reason=payload.clock_in_reason,
                clock_out_date=payload.clock_out_date,
                clock_out_time=payload.clock_out_time,
                clock_out_reason=payload.clock_out_reason,
                **common,
            )
        case OvertimePayload():
            return OvertimeEvent(
                overtime_date=payload.overtime_date,
                asked_doctor=payload.asked_doctor,
                senior_staff_name=payload.senior_staff_name,
                **common,
            )
        case SickDayPayload():
            return SickDayEvent(
                sick_date=payload.sick_date,
                has_doctor_note=payload.has_doctor_note,
                doctor_note_link=doctor_note_link,
                **common,
            )
    msg = f"No event for {event_type}"
    raise TypeError(msg)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def submit(
    session: AsyncSession,
    form_type: FormType,
    payload: SubmissionPayload,
    *,
    principal: Principal | None,
    dispatcher: NotificationDispatcher,
    storage: DocumentStorage | None = None,
    organization: Organization | None = None,
) -> SubmissionResult:
    """Validate, persist when allowed, then notify.

    ``organization`` is the tenant already resolved by the caller (tenant-scoped
    form pages); anonymous public forms may name one through
    ``payload.organization_slug`` instead. The result's ``request_id`` is set
    only for a signed-in member's day off or vacation that was saved.
    """
    validate_submission(form_type, payload)
    context = await _build_context(session, form_type, payload, principal, organization)

    request_id: uuid.UUID | None = None
    if (
        principal is not None
        and context.persist_for is not None
        and context.leave_type_id is not None
        and isinstance(payload, DayOffPayload | VacationPayload)
    ):
        request_id = await _persist_leave_request(
            session,
            payload,
            principal,
            organization_id=context.persist_for,
            leave_type_id=context.leave_type_id,
            submission_date=context.submission_date,
        )

    doctor_note_link = None
    if isinstance(payload, SickDayPayload):
        doctor_note_link = await _store_doctor_note(payload, storage)

    event = _build_event(form_type, payload, context, request_id, doctor_note_link)
    notified = dispatcher.dispatch(
        NotificationEnvelope(event=event, organization_id=context.organization_id, form_type=form_type)
    )
    return SubmissionResult(request_id=request_id, notified=notified)
