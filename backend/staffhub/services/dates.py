from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from collections.abc import Sequence

    from staffhub.models.reference import PayPeriod

# Spreadsheet timestamps and default submission dates are in Pacific time.
PORTAL_TZ = ZoneInfo("America/Los_Angeles")


@dataclass(frozen=True)
class LocalStamp:
    """Submission timestamp split the way the spreadsheet columns expect it."""

    date: str  # 2026-01-05
    time: str  # 09:14:03 AM
    day_of_week: str  # Monday


def local_stamp(moment: datetime | None = None) -> LocalStamp:
    """Render ``moment`` (default: now) in portal local time."""
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    local = moment.astimezone(PORTAL_TZ)
    return LocalStamp(
        date=local.strftime("%Y-%m-%d"),
        time=local.strftime("%I:%M:%S %p"),
        day_of_week=local.strftime("%A"),
    )


def local_today() -> date:
    return datetime.now(PORTAL_TZ).date()


def weekday_dates_between(start: date, end: date) -> list[date]:
    """Monday-Friday dates in ``[start, end]``. Empty when end precedes start."""
    days: list[date] = []
    current = start
    while current <= end:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


def _short(d: date) -> str:
    return f"{d:%b} {d.day}"


def pay_period_label(period: PayPeriod) -> str:
    """Label for a single pay period: ``Period 3 (Jan 16 - Jan 31, 2026)``."""
    end = period.end_date
    return f"Period {period.period_number} ({_short(period.start_date)} - {_short(end)}, {end.year})"


def vacation_pay_period_label(periods: Sequence[PayPeriod]) -> str | None:
    """Label for the periods a vacation touches: ``PP3 (ending 2026-01-31); PP4 (ending 2026-02-15)``."""
    if not periods:
        return None
    return "; ".join(f"PP{p.period_number} (ending {p.end_date.isoformat()})" for p in periods)
