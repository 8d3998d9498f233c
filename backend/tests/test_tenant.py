"""Tests for tenant access resolution: the pure resolver and the /org/{slug} guard."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from staffhub.models.enums import UserRole
from staffhub.models.organization import Organization, Profile
from staffhub.repositories import OrganizationRepository, ProfileRepository
from staffhub.schemas.auth import Principal
from staffhub.services.tenant import (
    LOGIN_PATH,
    Allowed,
    InMemoryTenantDirectory,
    OrganizationMissing,
    Redirect,
    dashboard_path,
    resolve_access,
)

from factories import headers_for

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from factories import Tenant

ORG_456 = uuid.UUID(int=0x456)
ORG_4567 = uuid.UUID(int=0x4567)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def directory() -> InMemoryTenantDirectory:
    """Two organizations whose ids differ only by a trailing digit."""
    directory = InMemoryTenantDirectory()
    directory.seed_organization(Organization(id=ORG_456, slug="north", name="North", admin_email="a@north.test"))
    directory.seed_organization(Organization(id=ORG_4567, slug="north-1", name="North 1", admin_email="a@n1.test"))
    return directory


def _member(directory: InMemoryTenantDirectory, organization_id: uuid.UUID | None) -> Principal:
    profile = Profile(
        id=uuid.uuid4(),
        email="m@north.test",
        full_name="Member",
        role=UserRole.STAFF,
        organization_id=organization_id,
    )
    directory.seed_profile(profile)
    return Principal(user_id=profile.id)


async def _resolve(directory: InMemoryTenantDirectory, principal: Principal | None, slug: str) -> object:
    return await resolve_access(principal, slug, directory.profiles, directory.organizations)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


async def test_anonymous_goes_to_login(directory: InMemoryTenantDirectory) -> None:
    assert await _resolve(directory, None, "north") == Redirect(LOGIN_PATH)


async def test_principal_without_profile_goes_to_login(directory: InMemoryTenantDirectory) -> None:
    assert await _resolve(directory, Principal(user_id=uuid.uuid4()), "north") == Redirect(LOGIN_PATH)


async def test_member_is_allowed(directory: InMemoryTenantDirectory) -> None:
    principal = _member(directory, ORG_456)
    verdict = await _resolve(directory, principal, "north")
    assert isinstance(verdict, Allowed)
    assert verdict.organization.id == ORG_456
    assert verdict.profile.id == principal.user_id


async def test_unknown_slug_is_missing(directory: InMemoryTenantDirectory) -> None:
    principal = _member(directory, ORG_456)
    assert await _resolve(directory, principal, "nowhere") == OrganizationMissing("nowhere")


async def test_member_of_other_org_goes_to_own_dashboard(directory: InMemoryTenantDirectory) -> None:
    principal = _member(directory, ORG_456)
    assert await _resolve(directory, principal, "north-1") == Redirect(dashboard_path("north"))


async def test_near_miss_organization_id_is_not_membership(directory: InMemoryTenantDirectory) -> None:
    """org 0x456 must not be treated as a member of org 0x4567 (or the other way round)."""
    principal = _member(directory, ORG_4567)
    verdict = await _resolve(directory, principal, "north")
    assert verdict == Redirect("/org/north-1/dashboard")


async def test_profile_without_org_goes_to_login(directory: InMemoryTenantDirectory) -> None:
    principal = _member(directory, None)
    assert await _resolve(directory, principal, "north") == Redirect(LOGIN_PATH)


async def test_profile_with_dangling_org_goes_to_login(directory: InMemoryTenantDirectory) -> None:
    principal = _member(directory, uuid.uuid4())
    assert await _resolve(directory, principal, "north") == Redirect(LOGIN_PATH)


async def test_resolver_against_database(db_session: AsyncSession, acme: Tenant, globex: Tenant) -> None:
    profiles, organizations = ProfileRepository(db_session), OrganizationRepository(db_session)
    own = await resolve_access(Principal(user_id=acme.staff.id), "acme", profiles, organizations)
    foreign = await resolve_access(Principal(user_id=acme.staff.id), "globex", profiles, organizations)
    assert isinstance(own, Allowed)
    assert own.organization.id == acme.organization.id
    assert foreign == Redirect("/org/acme/dashboard")


# ---------------------------------------------------------------------------
# HTTP guard
# ---------------------------------------------------------------------------


async def test_org_page_for_member(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get("/org/acme", headers=headers_for(acme.staff))
    assert response.status_code == 200
    data = response.json()
    assert data["organization"]["slug"] == "acme"
    assert data["profile"]["id"] == str(acme.staff.id)
    assert data["profile"]["role"] == "staff"


async def test_org_page_anonymous_redirects_to_login(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get("/org/acme")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


async def test_org_page_foreign_member_redirects_home(async_client: AsyncClient, acme: Tenant, globex: Tenant) -> None:
    response = await async_client.get("/org/globex", headers=headers_for(acme.admin))
    assert response.status_code == 303
    assert response.headers["location"] == "/org/acme/dashboard"


async def test_org_page_unknown_slug_is_404(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get("/org/nope", headers=headers_for(acme.staff))
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


async def test_unknown_principal_redirects_to_login(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get("/org/acme", headers={"X-User-Id": str(uuid.uuid4())})
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


async def test_admin_routes_forbid_staff(async_client: AsyncClient, acme: Tenant) -> None:
    response = await async_client.get("/org/acme/admin/requests", headers=headers_for(acme.staff))
    assert response.status_code == 403


async def test_admin_routes_redirect_foreign_admin(async_client: AsyncClient, acme: Tenant, globex: Tenant) -> None:
    response = await async_client.get("/org/acme/admin/requests", headers=headers_for(globex.admin))
    assert response.status_code == 303
    assert response.headers["location"] == "/org/globex/dashboard"
