from __future__ import annotations

from fastapi import APIRouter, status

from staffhub.api.deps import PrincipalDep
from staffhub.db import SessionDep
from staffhub.schemas.organization import OrganizationContextResponse, RegisterOrganizationPayload
from staffhub.services import organization as organization_service

organizations_router = APIRouter(prefix="/organizations", tags=["organizations"])


@organizations_router.post("", response_model=OrganizationContextResponse, status_code=status.HTTP_201_CREATED)
async def register_organization(
    payload: RegisterOrganizationPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> OrganizationContextResponse:
    """Create an organization and make the caller its admin."""
    return await organization_service.register_organization(session, principal, payload)
