# ruff: noqa: B008, TC001, TC003
"""Staff form endpoints.

``/forms/...`` are the public pages: anonymous callers allowed, optionally
naming an organization by slug. ``/org/{slug}/forms/...`` are the signed-in
pages of one organization; only these can create a tracked leave request.
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, File, Form, UploadFile, status

from staffhub.api.deps import DispatcherDep, OptionalPrincipalDep, OrgAccessDep, StorageDep
from staffhub.db import SessionDep
from staffhub.models.enums import FormType
from staffhub.schemas.auth import Principal
from staffhub.schemas.submission import (
    DayOffPayload,
    OvertimePayload,
    SickDayPayload,
    SubmissionResult,
    TimeClockPayload,
    UploadedDocument,
    VacationPayload,
)
from staffhub.services import submission as submission_service
from staffhub.services.tenant import Allowed

public_forms_router = APIRouter(prefix="/forms", tags=["forms"])
org_forms_router = APIRouter(prefix="/org/{slug}/forms", tags=["forms"])


async def _read_upload(upload: UploadFile | None) -> UploadedDocument | None:
    # Browsers send an empty part with no filename when the file input is left blank.
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    return UploadedDocument(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
    )


async def _sick_day_payload(
    employee_name: str | None,
    employee_email: str | None,
    sick_date: date | None,
    has_doctor_note: bool | None,
    pay_period_id: uuid.UUID | None,
    submission_date: date | None,
    organization_slug: str | None,
    doctor_note: UploadFile | None,
) -> SickDayPayload:
    return SickDayPayload(
        employee_name=employee_name,
        employee_email=employee_email,
        sick_date=sick_date,
        has_doctor_note=has_doctor_note,
        pay_period_id=pay_period_id,
        submission_date=submission_date,
        organization_slug=organization_slug,
        doctor_note=await _read_upload(doctor_note),
    )


# ---------------------------------------------------------------------------
# Public forms
# ---------------------------------------------------------------------------


@public_forms_router.post("/day-off", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_day_off(
    payload: DayOffPayload,
    session: SessionDep,
    principal: OptionalPrincipalDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit a single day off."""
    return await submission_service.submit(
        session, FormType.DAY_OFF, payload, principal=principal, dispatcher=dispatcher
    )


@public_forms_router.post("/vacation", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_vacation(
    payload: VacationPayload,
    session: SessionDep,
    principal: OptionalPrincipalDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit a multi-day vacation."""
    return await submission_service.submit(
        session, FormType.VACATION, payload, principal=principal, dispatcher=dispatcher
    )


@public_forms_router.post("/time-clock", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_time_clock(
    payload: TimeClockPayload,
    session: SessionDep,
    principal: OptionalPrincipalDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit a clock-in and/or clock-out correction."""
    return await submission_service.submit(
        session, FormType.TIME_CLOCK, payload, principal=principal, dispatcher=dispatcher
    )


@public_forms_router.post("/overtime", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_overtime(
    payload: OvertimePayload,
    session: SessionDep,
    principal: OptionalPrincipalDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit an overtime shift."""
    return await submission_service.submit(
        session, FormType.OVERTIME, payload, principal=principal, dispatcher=dispatcher
    )


@public_forms_router.post("/sick-day", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_sick_day(
    session: SessionDep,
    principal: OptionalPrincipalDep,
    dispatcher: DispatcherDep,
    storage: StorageDep,
    employee_name: str | None = Form(default=None),
    employee_email: str | None = Form(default=None),
    sick_date: date | None = Form(default=None),
    has_doctor_note: bool | None = Form(default=None),
    pay_period_id: uuid.UUID | None = Form(default=None),
    submission_date: date | None = Form(default=None),
    organization_slug: str | None = Form(default=None),
    doctor_note: UploadFile | None = File(default=None),
) -> SubmissionResult:
    """Submit a sick day, with the doctor's note as a file part when there is one."""
    payload = await _sick_day_payload(
        employee_name,
        employee_email,
        sick_date,
        has_doctor_note,
        pay_period_id,
        submission_date,
        organization_slug,
        doctor_note,
    )
    return await submission_service.submit(
        session, FormType.SICK_DAY, payload, principal=principal, dispatcher=dispatcher, storage=storage
    )


# ---------------------------------------------------------------------------
# Organization forms
# ---------------------------------------------------------------------------


def _member(access: Allowed) -> Principal:
    return Principal(user_id=access.profile.id)


@org_forms_router.post("/day-off", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_org_day_off(
    payload: DayOffPayload,
    session: SessionDep,
    access: OrgAccessDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit a single day off as a member; creates a pending request."""
    return await submission_service.submit(
        session,
        FormType.DAY_OFF,
        payload,
        principal=_member(access),
        dispatcher=dispatcher,
        organization=access.organization,
    )


@org_forms_router.post("/vacation", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_org_vacation(
    payload: VacationPayload,
    session: SessionDep,
    access: OrgAccessDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    """Submit a vacation as a member; creates a pending request covering its weekdays."""
    return await submission_service.submit(
        session,
        FormType.VACATION,
        payload,
        principal=_member(access),
        dispatcher=dispatcher,
        organization=access.organization,
    )


@org_forms_router.post("/time-clock", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_org_time_clock(
    payload: TimeClockPayload,
    session: SessionDep,
    access: OrgAccessDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    return await submission_service.submit(
        session,
        FormType.TIME_CLOCK,
        payload,
        principal=_member(access),
        dispatcher=dispatcher,
        organization=access.organization,
    )


@org_forms_router.post("/overtime", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_org_overtime(
    payload: OvertimePayload,
    session: SessionDep,
    access: OrgAccessDep,
    dispatcher: DispatcherDep,
) -> SubmissionResult:
    return await submission_service.submit(
        session,
        FormType.OVERTIME,
        payload,
        principal=_member(access),
        dispatcher=dispatcher,
        organization=access.organization,
    )


@org_forms_router.post("/sick-day", response_model=SubmissionResult, status_code=status.HTTP_202_ACCEPTED)
async def submit_org_sick_day(
    session: SessionDep,
    access: OrgAccessDep,
    dispatcher: DispatcherDep,
    storage: StorageDep,
    employee_name: str | None = Form(default=None),
    employee_email: str | None = Form(default=None),
    sick_date: date | None = Form(default=None),
    has_doctor_note: bool | None = Form(default=None),
    pay_period_id: uuid.UUID | None = Form(default=None),
    submission_date: date | None = Form(default=None),
    doctor_note: UploadFile | None = File(default=None),
) -> SubmissionResult:
    payload = await _sick_day_payload(
        employee_name,
        employee_email,
        sick_date,
        has_doctor_note,
        pay_period_id,
        submission_date,
        None,
        doctor_note,
    )
    return await submission_service.submit(
        session,
        FormType.SICK_DAY,
        payload,
        principal=_member(access),
        dispatcher=dispatcher,
        storage=storage,
        organization=access.organization,
    )
