from __future__ import annotations

import calendar
from datetime import date
from typing import TYPE_CHECKING

from staffhub.models.reference import PayPeriod
from staffhub.repositories import LeaveTypeRepository, PayPeriodRepository
from staffhub.schemas.reference import (
    LeaveTypeListResponse,
    LeaveTypeResponse,
    PayPeriodListResponse,
    PayPeriodResponse,
    SheetColumnsResponse,
    SheetTabColumns,
)
from staffhub.services.dates import pay_period_label
from staffhub.services.sheets import SHEET_COLUMNS, SHEET_TABS

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def list_leave_types(session: AsyncSession) -> LeaveTypeListResponse:
    items = await LeaveTypeRepository(session).list_all()
    return LeaveTypeListResponse(
        items=[
            LeaveTypeResponse(id=t.id, name=t.name, color=t.color, is_single_day=t.is_single_day) for t in items
        ],
        total=len(items),
    )


async def list_pay_periods(session: AsyncSession, t4_year: int | None = None) -> PayPeriodListResponse:
    items = await PayPeriodRepository(session).list_for_year(t4_year)
    return PayPeriodListResponse(
        items=[
            PayPeriodResponse(
                id=p.id,
                period_number=p.period_number,
                start_date=p.start_date,
                end_date=p.end_date,
                t4_year=p.t4_year,
                label=pay_period_label(p),
            )
            for p in items
        ],
        total=len(items),
    )


def sheet_columns() -> SheetColumnsResponse:
    """Header rows for every tab, in the order rows are appended."""
    return SheetColumnsResponse(
        items=[
            SheetTabColumns(form_type=form_type.value, tab_name=SHEET_TABS[form_type], columns=list(columns))
            for form_type, columns in SHEET_COLUMNS.items()
        ]
    )


def t4_pay_periods(t4_year: int) -> list[PayPeriod]:
    """Semi-monthly calendar of a T4 year: Dec 16 of the prior year through Dec 15.

    Periods run 1st-15th and 16th-end of month; period 1 is Dec 16-31.
    """
    periods: list[PayPeriod] = []
    year, month, first_half = t4_year - 1, 12, False
    for number in range(1, 25):
        if first_half:
            start, end = date(year, month, 1), date(year, month, 15)
        else:
            last_day = calendar.monthrange(year, month)[1]
            start, end = date(year, month, 16), date(year, month, last_day)
        periods.append(PayPeriod(period_number=number, start_date=start, end_date=end, t4_year=t4_year))
        if not first_half:
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        first_half = not first_half
    return periods
