# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class LeaveTypeResponse(BaseModel):
    id: uuid.UUID
    name: str
    color: str
    is_single_day: bool


class LeaveTypeListResponse(BaseModel):
    items: list[LeaveTypeResponse]
    total: int


class PayPeriodResponse(BaseModel):
    id: uuid.UUID
    period_number: int
    start_date: date
    end_date: date
    t4_year: int
    label: str


class PayPeriodListResponse(BaseModel):
    items: list[PayPeriodResponse]
    total: int


class SheetTabColumns(BaseModel):
    """Header row an admin pastes into one tab of the linked spreadsheet."""

    form_type: str
    tab_name: str
    columns: list[str]


class SheetColumnsResponse(BaseModel):
    items: list[SheetTabColumns]
