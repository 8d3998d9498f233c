# ruff: noqa: TC003
"""Notification event payloads.

These are the JSON shapes handed to the fan-out. Keys are camelCase on the
wire (``employeeName``, ``startDate`` ...); Python code uses snake_case.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from staffhub.models.enums import FormType, NotificationType


class NotificationEvent(BaseModel):
    """Fields common to every event."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: NotificationType
    employee_name: str
    employee_email: str

    def to_payload(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, ISO dates."""
        return self.model_dump(mode="json", by_alias=True)


class LeaveRequestEvent(NotificationEvent):
    """``new_request`` (single day off) and ``vacation_request``."""

    type: Literal[NotificationType.NEW_REQUEST, NotificationType.VACATION_REQUEST]
    start_date: date
    end_date: date
    total_days: int
    reason: str
    leave_type: str | None = None
    submission_date: date | None = None
    pay_period_label: str | None = None
    coverage_name: str | None = None
    coverage_email: str | None = None
    request_id: uuid.UUID | None = None


class TimeClockEvent(NotificationEvent):
    type: Literal[NotificationType.TIME_CLOCK_REQUEST] = NotificationType.TIME_CLOCK_REQUEST
    submission_date: date | None = None
    pay_period_label: str | None = None
    clock_in_date: date | None = None
    clock_in_time: str | None = None
    clock_in_reason: str | None = None
    clock_out_date: date | None = None
    clock_out_time: str | None = None
    clock_out_reason: str | None = None


class OvertimeEvent(NotificationEvent):
    type: Literal[NotificationType.OVERTIME_REQUEST] = NotificationType.OVERTIME_REQUEST
    overtime_date: date
    asked_doctor: bool
    senior_staff_name: str | None = None
    submission_date: date | None = None
    pay_period_label: str | None = None


class SickDayEvent(NotificationEvent):
    type: Literal[NotificationType.SICK_DAY_REQUEST] = NotificationType.SICK_DAY_REQUEST
    sick_date: date
    has_doctor_note: bool
    doctor_note_link: str | None = None
    submission_date: date | None = None
    pay_period_label: str | None = None


class StatusChangeEvent(NotificationEvent):
    """``approved`` / ``denied``: sent to the employee who asked."""

    type: Literal[NotificationType.APPROVED, NotificationType.DENIED]
    leave_type: str
    start_date: date
    end_date: date
    admin_notes: str | None = None
    request_id: uuid.UUID | None = None


def _now_utc() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class NotificationEnvelope:
    """An event plus the routing the fan-out needs to deliver it."""

    event: NotificationEvent
    organization_id: uuid.UUID | None = None
    form_type: FormType | None = None
    occurred_at: datetime = field(default_factory=_now_utc)


@dataclass
class FanoutResult:
    """Per-channel outcome of one fan-out. Only ever logged."""

    sheet_ok: bool = False
    email_ok: bool = False
    errors: list[str] = field(default_factory=list)
