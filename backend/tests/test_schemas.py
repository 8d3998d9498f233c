"""Unit tests for payload, event and settings schemas."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from pydantic import ValidationError

from staffhub.config import Settings
from staffhub.models.enums import FormType, NotificationType
from staffhub.schemas.notification import (
    FanoutResult,
    LeaveRequestEvent,
    NotificationEnvelope,
    SickDayEvent,
    StatusChangeEvent,
)
from staffhub.schemas.request import DecisionPayload
from staffhub.schemas.submission import PAYLOAD_TYPES, DayOffPayload, SickDayPayload, UploadedDocument

# ---------------------------------------------------------------------------
# Submission payloads
# ---------------------------------------------------------------------------


def test_payload_fields_are_optional() -> None:
    payload = DayOffPayload()
    assert payload.employee_name is None
    assert payload.day_off_date is None


def test_payload_strips_whitespace() -> None:
    payload = DayOffPayload(employee_name="  Sam  ", reason=" sick ")
    assert payload.employee_name == "Sam"
    assert payload.reason == "sick"


def test_payload_rejects_bad_date() -> None:
    with pytest.raises(ValidationError):
        DayOffPayload(day_off_date="next tuesday")


def test_every_form_has_a_payload_type() -> None:
    assert set(PAYLOAD_TYPES) == set(FormType)


def test_doctor_note_excluded_from_dump() -> None:
    payload = SickDayPayload(
        employee_name="Sam",
        has_doctor_note=True,
        doctor_note=UploadedDocument(filename="note.pdf", content_type="application/pdf", content=b"%PDF"),
    )
    assert "doctor_note" not in payload.model_dump()


def test_decision_notes_length_limit() -> None:
    with pytest.raises(ValidationError):
        DecisionPayload(notes="x" * 2001)


# ---------------------------------------------------------------------------
# Notification events
# ---------------------------------------------------------------------------


def test_event_payload_uses_camel_case() -> None:
    event = LeaveRequestEvent(
        type=NotificationType.NEW_REQUEST,
        employee_name="Sam Staff",
        employee_email="sam@acme.test",
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 2),
        total_days=1,
        reason="Dentist",
        pay_period_label="Period 6 (Mar 1 - Mar 15, 2026)",
    )
    payload = event.to_payload()
    assert payload["type"] == "new_request"
    assert payload["employeeName"] == "Sam Staff"
    assert payload["startDate"] == "2026-03-02"
    assert payload["totalDays"] == 1
    assert payload["payPeriodLabel"] == "Period 6 (Mar 1 - Mar 15, 2026)"
    assert "employee_name" not in payload


def test_event_accepts_camel_case_input() -> None:
    event = SickDayEvent.model_validate(
        {
            "employeeName": "Sam",
            "employeeEmail": "sam@acme.test",
            "sickDate": "2026-03-04",
            "hasDoctorNote": False,
        }
    )
    assert event.type == NotificationType.SICK_DAY_REQUEST
    assert event.sick_date == date(2026, 3, 4)
    assert event.doctor_note_link is None


def test_status_event_rejects_request_type() -> None:
    with pytest.raises(ValidationError):
        StatusChangeEvent(
            type=NotificationType.NEW_REQUEST,
            employee_name="Sam",
            employee_email="sam@acme.test",
            leave_type="Vacation",
            start_date=date(2026, 3, 2),
            end_date=date(2026, 3, 6),
        )


def test_envelope_stamps_occurred_at() -> None:
    event = SickDayEvent(
        employee_name="Sam", employee_email="sam@acme.test", sick_date=date(2026, 3, 4), has_doctor_note=False
    )
    envelope = NotificationEnvelope(event=event, organization_id=uuid.uuid4(), form_type=FormType.SICK_DAY)
    assert envelope.occurred_at.tzinfo is not None


def test_fanout_result_defaults() -> None:
    result = FanoutResult()
    assert result.sheet_ok is False
    assert result.email_ok is False
    assert result.errors == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_notify_emails_split_from_comma_list() -> None:
    settings = Settings(_env_file=None, notify_emails=" a@x.test, ,b@x.test ")  # ty: ignore[unknown-argument]
    assert settings.notify_emails == ["a@x.test", "b@x.test"]


def test_private_key_newlines_unescaped() -> None:
    settings = Settings(
        _env_file=None,  # ty: ignore[unknown-argument]
        google_private_key="-----BEGIN\\nKEY\\n-----END",
    )
    assert settings.google_private_key == "-----BEGIN\nKEY\n-----END"
