# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from staffhub.api.deps import DispatcherDep, OrgAdminDep
from staffhub.db import SessionDep
from staffhub.models.enums import RequestStatus
from staffhub.schemas.auth import Principal
from staffhub.schemas.organization import (
    LinkSheetPayload,
    OrganizationResponse,
    RecipientCreatePayload,
    RecipientListResponse,
    RecipientResponse,
    RecipientUpdatePayload,
)
from staffhub.schemas.request import DecisionPayload, LeaveRequestListResponse, LeaveRequestResponse
from staffhub.services import organization as organization_service
from staffhub.services import request as request_service

admin_router = APIRouter(prefix="/org/{slug}/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------


@admin_router.get("/requests", response_model=LeaveRequestListResponse)
async def list_pending_requests(
    session: SessionDep,
    access: OrgAdminDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """Requests waiting for a decision."""
    return await request_service.list_review_queue(session, access.organization.id, offset, limit)


@admin_router.get("/requests/history", response_model=LeaveRequestListResponse)
async def list_reviewed_requests(
    session: SessionDep,
    access: OrgAdminDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """Approved and denied requests."""
    return await request_service.list_review_history(
        session, access.organization.id, status_filter, offset, limit
    )


@admin_router.post("/requests/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    access: OrgAdminDep,
    dispatcher: DispatcherDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending request (admin only)."""
    notes = payload.notes if payload else None
    return await request_service.approve_request(
        session, Principal(user_id=access.profile.id), request_id, notes, dispatcher
    )


@admin_router.post("/requests/{request_id}/deny", response_model=LeaveRequestResponse)
async def deny_request(
    request_id: uuid.UUID,
    session: SessionDep,
    access: OrgAdminDep,
    dispatcher: DispatcherDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Deny a pending request (admin only)."""
    notes = payload.notes if payload else None
    return await request_service.deny_request(
        session, Principal(user_id=access.profile.id), request_id, notes, dispatcher
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@admin_router.put("/sheet", response_model=OrganizationResponse)
async def link_sheet(
    payload: LinkSheetPayload,
    session: SessionDep,
    access: OrgAdminDep,
) -> OrganizationResponse:
    """Link the spreadsheet that receives form rows."""
    return await organization_service.link_sheet(session, access.organization, payload.sheet)


@admin_router.get("/recipients", response_model=RecipientListResponse)
async def list_recipients(session: SessionDep, access: OrgAdminDep) -> RecipientListResponse:
    return await organization_service.list_recipients(session, access.organization.id)


@admin_router.post("/recipients", response_model=RecipientResponse, status_code=status.HTTP_201_CREATED)
async def add_recipient(
    payload: RecipientCreatePayload,
    session: SessionDep,
    access: OrgAdminDep,
) -> RecipientResponse:
    """Add an address that receives new-request emails."""
    return await organization_service.add_recipient(session, access.organization.id, payload, access.profile.id)


@admin_router.patch("/recipients/{recipient_id}", response_model=RecipientResponse)
async def update_recipient(
    recipient_id: uuid.UUID,
    payload: RecipientUpdatePayload,
    session: SessionDep,
    access: OrgAdminDep,
) -> RecipientResponse:
    """Pause or resume emails to a recipient."""
    return await organization_service.set_recipient_active(
        session, access.organization.id, recipient_id, payload.is_active
    )


@admin_router.delete("/recipients/{recipient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_recipient(
    recipient_id: uuid.UUID,
    session: SessionDep,
    access: OrgAdminDep,
) -> Response:
    await organization_service.remove_recipient(session, access.organization.id, recipient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
