# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from staffhub.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from staffhub.models.enums import RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A staff member's leave request with its review state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_org_status", "organization_id", "status"),
        sa.Index("ix_leave_request_dates", "start_date", "end_date"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_request_date_range"),
    )

    user_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False),
    )
    organization_id: uuid.UUID = Field(index=True)
    pay_period_id: uuid.UUID | None = None
    submission_date: datetime.date
    start_date: datetime.date
    end_date: datetime.date
    reason: str
    coverage_name: str | None = Field(default=None, max_length=255)
    coverage_email: str | None = Field(default=None, max_length=255)
    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    admin_notes: str | None = None


class LeaveRequestDate(UUIDBase, TimestampMixin, table=True):
    """One calendar date covered by a leave request. Written with the request, never edited."""

    __tablename__ = "leave_request_date"
    __table_args__ = (sa.UniqueConstraint("request_id", "date", name="uq_leave_request_date"),)

    request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    date: datetime.date = Field(index=True)
