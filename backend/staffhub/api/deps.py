# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path

from staffhub.db import SessionDep
from staffhub.exceptions import Forbidden, NotFound, RedirectRequired, Unauthorized
from staffhub.models.enums import UserRole
from staffhub.repositories import OrganizationRepository, ProfileRepository
from staffhub.schemas.auth import Principal
from staffhub.services.notification import NotificationDispatcher, get_dispatcher
from staffhub.services.storage import DocumentStorage, get_document_storage
from staffhub.services.tenant import Allowed, OrganizationMissing, Redirect, resolve_access


async def get_principal(x_user_id: uuid.UUID | None = Header(default=None)) -> Principal | None:
    """Extract the dev principal from the request headers. Absent header means anonymous."""
    if x_user_id is None:
        return None
    return Principal(user_id=x_user_id)


OptionalPrincipalDep = Annotated[Principal | None, Depends(get_principal)]


async def require_principal(principal: OptionalPrincipalDep) -> Principal:
    if principal is None:
        raise Unauthorized()
    return principal


PrincipalDep = Annotated[Principal, Depends(require_principal)]


async def get_org_access(
    session: SessionDep,
    principal: OptionalPrincipalDep,
    slug: str = Path(max_length=50),
) -> Allowed:
    """Guard for every ``/org/{slug}`` route."""
    verdict = await resolve_access(principal, slug, ProfileRepository(session), OrganizationRepository(session))
    match verdict:
        case Allowed():
            return verdict
        case Redirect(to=location):
            raise RedirectRequired(location)
        case OrganizationMissing():
            raise NotFound("Organization not found")


OrgAccessDep = Annotated[Allowed, Depends(get_org_access)]


async def require_org_admin(access: OrgAccessDep) -> Allowed:
    """Require the admin role inside the resolved organization."""
    if access.profile.role != UserRole.ADMIN:
        raise Forbidden("Admin access required")
    return access


OrgAdminDep = Annotated[Allowed, Depends(require_org_admin)]

DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
StorageDep = Annotated[DocumentStorage | None, Depends(get_document_storage)]
