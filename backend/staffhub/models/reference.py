from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from staffhub.models.base import TimestampMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """Catalog entry for a kind of leave. Reference data, never edited by staff."""

    __tablename__ = "leave_type"

    name: str = Field(max_length=100, unique=True)
    color: str = Field(max_length=20)
    is_single_day: bool = False


class PayPeriod(UUIDBase, TimestampMixin, table=True):
    """Fixed payroll window used for labeling submissions."""

    __tablename__ = "pay_period"
    __table_args__ = (
        sa.UniqueConstraint("period_number", "t4_year", name="uq_pay_period_number_year"),
        sa.Index("ix_pay_period_dates", "start_date", "end_date"),
    )

    period_number: int = Field(ge=1, le=24)
    start_date: datetime.date
    end_date: datetime.date
    t4_year: int
