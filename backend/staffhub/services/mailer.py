"""Email channel: subject/HTML rendering per event type and the Resend client."""

from __future__ import annotations

import asyncio
import logging
from html import escape
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import resend

from staffhub.exceptions import ExternalChannelError
from staffhub.schemas.notification import (
    LeaveRequestEvent,
    NotificationEvent,
    OvertimeEvent,
    SickDayEvent,
    StatusChangeEvent,
    TimeClockEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from staffhub.config import Settings

logger = logging.getLogger(__name__)

_HEADER_COLORS = {
    "request": "#2563eb",
    "approved": "#16a34a",
    "denied": "#dc2626",
}


# ---------------------------------------------------------------------------
# Message formatting
# ---------------------------------------------------------------------------


def _rows(fields: Sequence[tuple[str, object]]) -> str:
    cells = []
    for label, value in fields:
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "Yes" if value else "No"
        cells.append(
            f'<tr><td style="padding: 6px 12px 6px 0; color: #6b7280;">{escape(label)}</td>'
            f'<td style="padding: 6px 0;">{escape(str(value))}</td></tr>'
        )
    return "".join(cells)


def _layout(title: str, tone: str, fields: Sequence[tuple[str, object]], link: str, link_text: str) -> str:
    color = _HEADER_COLORS[tone]
    return f"""
    <div style="font-family: -apple-system, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background: {color}; padding: 20px; border-radius: 12px 12px 0 0;">
            <h2 style="color: white; margin: 0;">{escape(title)}</h2>
        </div>
        <div style="background: #ffffff; color: #111827; padding: 24px; border: 1px solid #e5e7eb;
                    border-radius: 0 0 12px 12px;">
            <table style="width: 100%; border-collapse: collapse;">{_rows(fields)}</table>
            <a href="{escape(link, quote=True)}" style="display: inline-block; margin-top: 16px; padding: 10px 20px;
               background: {color}; color: white; border-radius: 8px; text-decoration: none;">
                {escape(link_text)}
            </a>
        </div>
    </div>
    """


def _date_range(start: object, end: object) -> str:
    return str(start) if start == end else f"{start} to {end}"


def format_leave_request_email(event: LeaveRequestEvent, app_url: str) -> tuple[str, str]:
    """Return (subject, html) for a new day-off or vacation request."""
    is_vacation = event.type == "vacation_request"
    subject = (
        f"Vacation Request from {event.employee_name}"
        if is_vacation
        else f"New Time-Off Request from {event.employee_name}"
    )
    html = _layout(
        "New Vacation Request" if is_vacation else "New Time-Off Request",
        "request",
        [
            ("Employee", event.employee_name),
            ("Email", event.employee_email),
            ("Leave Type", event.leave_type),
            ("Dates", _date_range(event.start_date, event.end_date)),
            ("Total Days", event.total_days),
            ("Reason", event.reason),
            ("Submitted", event.submission_date),
            ("Pay Period", event.pay_period_label),
            ("Coverage", event.coverage_name),
            ("Coverage Email", event.coverage_email),
        ],
        f"{app_url}/admin",
        "Review in StaffHub",
    )
    return subject, html


def format_time_clock_email(event: TimeClockEvent, app_url: str) -> tuple[str, str]:
    subject = f"Time Clock Adjustment Request from {event.employee_name}"
    clock_in = f"{event.clock_in_date} {event.clock_in_time}" if event.clock_in_date else None
    clock_out = f"{event.clock_out_date} {event.clock_out_time}" if event.clock_out_date else None
    html = _layout(
        "Time Clock Adjustment Request",
        "request",
        [
            ("Employee", event.employee_name),
            ("Email", event.employee_email),
            ("Clock In", clock_in),
            ("Clock In Reason", event.clock_in_reason),
            ("Clock Out", clock_out),
            ("Clock Out Reason", event.clock_out_reason),
            ("Submitted", event.submission_date),
            ("Pay Period", event.pay_period_label),
        ],
        f"{app_url}/admin",
        "Open StaffHub",
    )
    return subject, html


def format_overtime_email(event: OvertimeEvent, app_url: str) -> tuple[str, str]:
    subject = f"Overtime Submission from {event.employee_name}"
    html = _layout(
        "Overtime Submission",
        "request",
        [
            ("Employee", event.employee_name),
            ("Email", event.employee_email),
            ("Overtime Date", event.overtime_date),
            ("Asked Doctor", event.asked_doctor),
            ("Senior Staff Asked", event.senior_staff_name),
            ("Submitted", event.submission_date),
            ("Pay Period", event.pay_period_label),
        ],
        f"{app_url}/admin",
        "Open StaffHub",
    )
    return subject, html


def format_sick_day_email(event: SickDayEvent, app_url: str) -> tuple[str, str]:
    subject = f"Sick Day Submission from {event.employee_name}"
    html = _layout(
        "Sick Day Submission",
        "request",
        [
            ("Employee", event.employee_name),
            ("Email", event.employee_email),
            ("Date Sick", event.sick_date),
            ("Doctor's Note", event.has_doctor_note),
            ("Note Link", event.doctor_note_link),
            ("Submitted", event.submission_date),
            ("Pay Period", event.pay_period_label),
        ],
        event.doctor_note_link or f"{app_url}/admin",
        "View Doctor's Note" if event.doctor_note_link else "Open StaffHub",
    )
    return subject, html


def format_status_email(event: StatusChangeEvent, app_url: str) -> tuple[str, str]:
    """Return (subject, html) for the approval or denial sent to the employee."""
    approved = event.type == "approved"
    verdict = "Approved" if approved else "Denied"
    subject = f"Time-Off Request {verdict} - {event.leave_type}"
    html = _layout(
        f"Your Time-Off Request was {verdict}",
        "approved" if approved else "denied",
        [
            ("Employee", event.employee_name),
            ("Leave Type", event.leave_type),
            ("Dates", _date_range(event.start_date, event.end_date)),
            ("Admin Notes", event.admin_notes),
        ],
        f"{app_url}/dashboard",
        "View My Requests",
    )
    return subject, html


def format_email(event: NotificationEvent, app_url: str) -> tuple[str, str]:
    match event:
        case LeaveRequestEvent():
            return format_leave_request_email(event, app_url)
        case TimeClockEvent():
            return format_time_clock_email(event, app_url)
        case OvertimeEvent():
            return format_overtime_email(event, app_url)
        case SickDayEvent():
            return format_sick_day_email(event, app_url)
        case StatusChangeEvent():
            return format_status_email(event, app_url)
    msg = f"No email template for {type(event).__name__}"
    raise TypeError(msg)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@runtime_checkable
class Mailer(Protocol):
    async def send(self, to: Sequence[str], subject: str, html: str) -> str | None: ...


class ResendMailer:
    """Sends through the Resend API. The SDK is synchronous, so calls run in a worker thread."""

    def __init__(self, api_key: str, from_email: str) -> None:
        self._api_key = api_key
        self._from = f"StaffHub <{from_email}>"

    @classmethod
    def from_settings(cls, settings: Settings) -> ResendMailer | None:
        if not settings.resend_api_key:
            return None
        return cls(settings.resend_api_key, settings.notification_from_email)

    def _send_sync(self, to: list[str], subject: str, html: str) -> str | None:
        resend.api_key = self._api_key
        result = resend.Emails.send({"from": self._from, "to": to, "subject": subject, "html": html})
        return result.get("id")

    async def send(self, to: Sequence[str], subject: str, html: str) -> str | None:
        try:
            message_id = await asyncio.to_thread(self._send_sync, list(to), subject, html)
        except Exception as exc:
            raise ExternalChannelError("email", str(exc)) from exc
        logger.info("Email sent to %d recipient(s): %s", len(to), subject)
        return message_id


class InMemoryMailer:
    """Records sent messages. ``fail_with`` makes every send raise."""

    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0) -> None:
        self.sent: list[tuple[list[str], str, str]] = []
        self.fail_with = fail_with
        self.delay = delay

    async def send(self, to: Sequence[str], subject: str, html: str) -> str | None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((list(to), subject, html))
        return f"mem-{len(self.sent)}"
