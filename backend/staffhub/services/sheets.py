"""Spreadsheet channel: fixed tab layouts, row builders and the Sheets client.

Tab names and column order are a compatibility contract with spreadsheets
staff already maintain. Append-only; the header row is pasted by an admin.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from staffhub.exceptions import ExternalChannelError
from staffhub.models.enums import FormType
from staffhub.schemas.notification import (
    LeaveRequestEvent,
    NotificationEvent,
    OvertimeEvent,
    SickDayEvent,
    TimeClockEvent,
)
from staffhub.services.dates import local_stamp

if TYPE_CHECKING:
    from datetime import date, datetime

    from staffhub.config import Settings

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
EMPTY_CELL = "N/A"

SHEET_TABS: dict[FormType, str] = {
    FormType.DAY_OFF: "Day Off Requests",
    FormType.VACATION: "Vacation Requests",
    FormType.TIME_CLOCK: "Time Clock Adjustments",
    FormType.OVERTIME: "Overtime Requests",
    FormType.SICK_DAY: "Sick Days",
}

SHEET_COLUMNS: dict[FormType, tuple[str, ...]] = {
    FormType.DAY_OFF: (
        "Submission Date",
        "Time of Day",
        "Day of Week",
        "Type",
        "Name",
        "Email",
        "Leave Type",
        "Start Date",
        "End Date",
        "Total Days",
        "Reason",
        "Pay Period",
        "Coverage Name",
        "Coverage Person's Email",
    ),
    FormType.VACATION: (
        "Submission Date",
        "Time",
        "Day of Week",
        "Type",
        "Name",
        "Email",
        "Start Date Vacation",
        "End Date Vacation",
        "# of Days",
        "Pay Period",
        "Cover Name",
        "Cover Email",
        "Notes / Reason (optional)",
    ),
    FormType.TIME_CLOCK: (
        "Submission Date",
        "Time of Day",
        "Day of Week",
        "Type",
        "Name",
        "Email",
        "Clock In",
        "Clock Out",
        "Reason In",
        "Reason Out",
        "Pay Period",
    ),
    FormType.OVERTIME: (
        "Submission Date",
        "Time of Day",
        "Day of Week",
        "Type",
        "Name",
        "Email",
        "Overtime Date",
        "Asked Doctor?",
        "Asked Senior Staff Name",
        "Pay Period",
    ),
    FormType.SICK_DAY: (
        "Submission Date",
        "Time of Day",
        "Day of Week",
        "Name",
        "Email",
        "Pay Period",
        "Date Sick",
        "Doc Note?",
        "Link to PDF of Doc's Note",
    ),
}


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------


def _cell(value: object) -> str:
    """Render one cell. Missing and blank values become ``N/A``."""
    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return "Yes" if value else "No"
    text = value.isoformat() if hasattr(value, "isoformat") else str(value)
    return text if text.strip() else EMPTY_CELL


def _clock_cell(day: date | None, time: str | None) -> str:
    if day is None or not time:
        return EMPTY_CELL
    return f"{day.isoformat()} {time}"


def _prefix(occurred_at: datetime, submission_date: date | None) -> list[str]:
    stamp = local_stamp(occurred_at)
    return [
        submission_date.isoformat() if submission_date else stamp.date,
        stamp.time,
        stamp.day_of_week,
    ]


def build_day_off_row(event: LeaveRequestEvent, occurred_at: datetime) -> list[str]:
    return [
        *_prefix(occurred_at, event.submission_date),
        "Leave Request",
        _cell(event.employee_name),
        _cell(event.employee_email),
        _cell(event.leave_type),
        _cell(event.start_date),
        _cell(event.end_date),
        _cell(event.total_days),
        _cell(event.reason),
        _cell(event.pay_period_label),
        _cell(event.coverage_name),
        _cell(event.coverage_email),
    ]


def build_vacation_row(event: LeaveRequestEvent, occurred_at: datetime) -> list[str]:
    return [
        *_prefix(occurred_at, event.submission_date),
        "Vacation Request",
        _cell(event.employee_name),
        _cell(event.employee_email),
        _cell(event.start_date),
        _cell(event.end_date),
        _cell(event.total_days),
        _cell(event.pay_period_label),
        _cell(event.coverage_name),
        _cell(event.coverage_email),
        _cell(event.reason),
    ]


def build_time_clock_row(event: TimeClockEvent, occurred_at: datetime) -> list[str]:
    return [
        *_prefix(occurred_at, event.submission_date),
        "Time Clock Request",
        _cell(event.employee_name),
        _cell(event.employee_email),
        _clock_cell(event.clock_in_date, event.clock_in_time),
        _clock_cell(event.clock_out_date, event.clock_out_time),
        _cell(event.clock_in_reason),
        _cell(event.clock_out_reason),
        _cell(event.pay_period_label),
    ]


def build_overtime_row(event: OvertimeEvent, occurred_at: datetime) -> list[str]:
    return [
        *_prefix(occurred_at, event.submission_date),
        "Overtime Request",
        _cell(event.employee_name),
        _cell(event.employee_email),
        _cell(event.overtime_date),
        _cell(event.asked_doctor),
        _cell(event.senior_staff_name),
        _cell(event.pay_period_label),
    ]


def build_sick_day_row(event: SickDayEvent, occurred_at: datetime) -> list[str]:
    return [
        *_prefix(occurred_at, event.submission_date),
        _cell(event.employee_name),
        _cell(event.employee_email),
        _cell(event.pay_period_label),
        _cell(event.sick_date),
        _cell(event.has_doctor_note),
        _cell(event.doctor_note_link),
    ]


def build_row(form_type: FormType, event: NotificationEvent, occurred_at: datetime) -> list[str]:
    """Build the row for ``form_type``. Raises ``TypeError`` when the event does not fit the tab."""
    match form_type, event:
        case FormType.DAY_OFF, LeaveRequestEvent():
            return build_day_off_row(event, occurred_at)
        case FormType.VACATION, LeaveRequestEvent():
            return build_vacation_row(event, occurred_at)
        case FormType.TIME_CLOCK, TimeClockEvent():
            return build_time_clock_row(event, occurred_at)
        case FormType.OVERTIME, OvertimeEvent():
            return build_overtime_row(event, occurred_at)
        case FormType.SICK_DAY, SickDayEvent():
            return build_sick_day_row(event, occurred_at)
    msg = f"{type(event).__name__} cannot be written to the {form_type} tab"
    raise TypeError(msg)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@runtime_checkable
class SheetsClient(Protocol):
    """Appends rows to a named tab of a spreadsheet."""

    async def append_row(self, spreadsheet_id: str, tab: str, values: list[str]) -> None: ...


class GoogleSheetsClient:
    """Google Sheets REST client authenticated with a service account."""

    def __init__(self, service_account_email: str, private_key: str, *, timeout: float = 10.0) -> None:
        self._credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": service_account_email,
                "private_key": private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=SHEETS_SCOPES,
        )
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> GoogleSheetsClient | None:
        if not settings.google_service_account_email or not settings.google_private_key:
            return None
        return cls(
            settings.google_service_account_email,
            settings.google_private_key,
            timeout=settings.channel_timeout_seconds,
        )

    async def _token(self) -> str:
        if not self._credentials.valid:
            # google-auth refreshes synchronously over requests
            await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
        return self._credentials.token

    async def append_row(self, spreadsheet_id: str, tab: str, values: list[str]) -> None:
        token = await self._token()
        url = f"{SHEETS_API}/{spreadsheet_id}/values/{quote(f'{tab}!A:A')}:append"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                params={"valueInputOption": "USER_ENTERED"},
                headers={"Authorization": f"Bearer {token}"},
                json={"values": [values]},
            )
        if response.status_code >= 400:
            raise ExternalChannelError("sheets", f"append to {tab!r} failed with {response.status_code}")
        logger.info("Appended row to %r (%d columns)", tab, len(values))


class InMemorySheetsClient:
    """Records appended rows. ``fail_with`` makes every append raise."""

    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0) -> None:
        self.rows: list[tuple[str, str, list[str]]] = []
        self.fail_with = fail_with
        self.delay = delay

    async def append_row(self, spreadsheet_id: str, tab: str, values: list[str]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.rows.append((spreadsheet_id, tab, values))
