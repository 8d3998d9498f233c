# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from staffhub.models.enums import FormType

# ---------------------------------------------------------------------------
# Form payloads
#
# Every field is optional at the schema level: the pipeline checks required
# fields itself, in form order, and reports the first one missing.
# ---------------------------------------------------------------------------


class SubmissionPayload(BaseModel):
    """Fields shared by every staff form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    employee_name: str | None = Field(default=None, max_length=255)
    employee_email: str | None = Field(default=None, max_length=255)
    submission_date: date | None = None
    # Public form pages of an organization pass its slug; ignored for signed-in staff.
    organization_slug: str | None = Field(default=None, max_length=50)


class DayOffPayload(SubmissionPayload):
    leave_type_id: uuid.UUID | None = None
    day_off_date: date | None = None
    reason: str | None = None
    pay_period_id: uuid.UUID | None = None
    coverage_name: str | None = Field(default=None, max_length=255)
    coverage_email: str | None = Field(default=None, max_length=255)


class VacationPayload(SubmissionPayload):
    start_date: date | None = None
    end_date: date | None = None
    pay_period_ids: list[uuid.UUID] = Field(default_factory=list)
    coverage_name: str | None = Field(default=None, max_length=255)
    coverage_email: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class TimeClockPayload(SubmissionPayload):
    pay_period_id: uuid.UUID | None = None
    clock_in_date: date | None = None
    clock_in_time: str | None = Field(default=None, description="e.g. '08:05 AM'")
    clock_in_reason: str | None = None
    clock_out_date: date | None = None
    clock_out_time: str | None = None
    clock_out_reason: str | None = None


class OvertimePayload(SubmissionPayload):
    pay_period_id: uuid.UUID | None = None
    overtime_date: date | None = None
    asked_doctor: bool | None = None
    senior_staff_name: str | None = Field(default=None, max_length=255)


class UploadedDocument(BaseModel):
    """A file received with a form, held in memory until it is stored."""

    filename: str
    content_type: str
    content: bytes


class SickDayPayload(SubmissionPayload):
    pay_period_id: uuid.UUID | None = None
    sick_date: date | None = None
    has_doctor_note: bool | None = None
    doctor_note: UploadedDocument | None = Field(default=None, exclude=True)


PAYLOAD_TYPES: dict[FormType, type[SubmissionPayload]] = {
    FormType.DAY_OFF: DayOffPayload,
    FormType.VACATION: VacationPayload,
    FormType.TIME_CLOCK: TimeClockPayload,
    FormType.OVERTIME: OvertimePayload,
    FormType.SICK_DAY: SickDayPayload,
}


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SubmissionResult(BaseModel):
    """Outcome of a form submission.

    ``request_id`` is present only when a leave request row was written.
    ``notified`` means the notification event was handed off, not that it was delivered.
    """

    request_id: uuid.UUID | None = None
    notified: bool
