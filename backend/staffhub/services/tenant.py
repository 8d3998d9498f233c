"""Tenant access decisions.

``resolve_access`` answers one question for every ``/org/{slug}/...`` page:
may this principal see this organization, and if not, where do they go?
It performs lookups only and has no side effects.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from staffhub.models.organization import Organization, Profile
    from staffhub.schemas.auth import Principal

LOGIN_PATH = "/login"


def dashboard_path(slug: str) -> str:
    return f"/org/{slug}/dashboard"


@runtime_checkable
class ProfileLookup(Protocol):
    async def get_by_id(self, profile_id: uuid.UUID) -> Profile | None: ...


@runtime_checkable
class OrganizationLookup(Protocol):
    async def get_by_id(self, organization_id: uuid.UUID) -> Organization | None: ...

    async def get_by_slug(self, slug: str) -> Organization | None: ...


@dataclass(frozen=True)
class Allowed:
    organization: Organization
    profile: Profile


@dataclass(frozen=True)
class Redirect:
    to: str


@dataclass(frozen=True)
class OrganizationMissing:
    slug: str


AccessVerdict = Allowed | Redirect | OrganizationMissing


async def resolve_access(
    principal: Principal | None,
    requested_slug: str,
    profiles: ProfileLookup,
    organizations: OrganizationLookup,
) -> AccessVerdict:
    """Decide whether ``principal`` may enter the organization at ``requested_slug``.

    A member of another organization is sent to their own dashboard rather
    than told the slug is foreign, so slugs of other tenants are never
    confirmed. Membership is strict id equality.
    """
    if principal is None:
        return Redirect(LOGIN_PATH)

    profile = await profiles.get_by_id(principal.user_id)
    if profile is None:
        return Redirect(LOGIN_PATH)

    organization = await organizations.get_by_slug(requested_slug)
    if organization is None:
        return OrganizationMissing(requested_slug)

    if profile.organization_id != organization.id:
        if profile.organization_id is not None:
            own = await organizations.get_by_id(profile.organization_id)
            if own is not None and own.slug:
                return Redirect(dashboard_path(own.slug))
        return Redirect(LOGIN_PATH)

    return Allowed(organization=organization, profile=profile)


class InMemoryTenantDirectory:
    """In-memory profile and organization lookups for tests and local wiring."""

    def __init__(self) -> None:
        self._profiles: dict[uuid.UUID, Profile] = {}
        self._organizations: dict[uuid.UUID, Organization] = {}

    def seed_profile(self, profile: Profile) -> None:
        self._profiles[profile.id] = profile

    def seed_organization(self, organization: Organization) -> None:
        self._organizations[organization.id] = organization

    async def get_profile(self, profile_id: uuid.UUID) -> Profile | None:
        return self._profiles.get(profile_id)

    async def get_organization(self, organization_id: uuid.UUID) -> Organization | None:
        return self._organizations.get(organization_id)

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        return next((o for o in self._organizations.values() if o.slug == slug), None)

    @property
    def profiles(self) -> ProfileLookup:
        return _ProfileView(self)

    @property
    def organizations(self) -> OrganizationLookup:
        return _OrganizationView(self)


class _ProfileView:
    def __init__(self, directory: InMemoryTenantDirectory) -> None:
        self._directory = directory

    async def get_by_id(self, profile_id: uuid.UUID) -> Profile | None:
        return await self._directory.get_profile(profile_id)


class _OrganizationView:
    def __init__(self, directory: InMemoryTenantDirectory) -> None:
        self._directory = directory

    async def get_by_id(self, organization_id: uuid.UUID) -> Organization | None:
        return await self._directory.get_organization(organization_id)

    async def get_by_slug(self, slug: str) -> Organization | None:
        return await self._directory.get_organization_by_slug(slug)
