# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from staffhub.models.enums import RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class DecisionPayload(BaseModel):
    """Request body for approve/deny actions."""

    notes: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    leave_type_id: uuid.UUID
    pay_period_id: uuid.UUID | None
    submission_date: date
    start_date: date
    end_date: date
    reason: str
    coverage_name: str | None
    coverage_email: str | None
    status: RequestStatus
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    admin_notes: str | None
    created_at: datetime


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class CalendarEntry(BaseModel):
    """One approved day off on the team calendar."""

    date: date
    request_id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID


class CalendarResponse(BaseModel):
    items: list[CalendarEntry]
