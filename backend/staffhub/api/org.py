# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from staffhub.api.deps import OrgAccessDep
from staffhub.db import SessionDep
from staffhub.schemas.organization import OrganizationContextResponse
from staffhub.schemas.request import CalendarResponse, LeaveRequestListResponse
from staffhub.services import organization as organization_service
from staffhub.services import request as request_service

org_router = APIRouter(prefix="/org/{slug}", tags=["organization"])


@org_router.get("", response_model=OrganizationContextResponse)
async def get_organization_context(access: OrgAccessDep) -> OrganizationContextResponse:
    """Organization and profile of a member."""
    return organization_service.build_context_response(access.organization, access.profile)


@org_router.get("/requests/mine", response_model=LeaveRequestListResponse)
async def list_my_requests(
    session: SessionDep,
    access: OrgAccessDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """The caller's own leave requests in this organization."""
    return await request_service.list_my_requests(
        session, access.organization.id, access.profile.id, offset, limit
    )


@org_router.get("/calendar", response_model=CalendarResponse)
async def get_team_calendar(
    session: SessionDep,
    access: OrgAccessDep,
    start: date = Query(),
    end: date = Query(),
) -> CalendarResponse:
    """Approved days off of the whole team in a date window."""
    return await request_service.team_calendar(session, access.organization.id, start, end)
