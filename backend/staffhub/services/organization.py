# ruff: noqa: TC003
from __future__ import annotations

import logging
import re
import uuid
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from staffhub.exceptions import Conflict, NotFound, ValidationError
from staffhub.models.enums import UserRole
from staffhub.models.organization import NotificationRecipient, Organization, Profile
from staffhub.repositories import OrganizationRepository, ProfileRepository, RecipientRepository
from staffhub.schemas.organization import (
    OrganizationContextResponse,
    OrganizationResponse,
    ProfileResponse,
    RecipientListResponse,
    RecipientResponse,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from staffhub.schemas.auth import Principal
    from staffhub.schemas.organization import RecipientCreatePayload, RegisterOrganizationPayload

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 50
_SHEET_URL = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
_SHEET_ID = re.compile(r"^[a-zA-Z0-9-_]+$")


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------


def _build_organization_response(organization: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=organization.id,
        slug=organization.slug,
        name=organization.name,
        admin_email=organization.admin_email,
        google_sheet_id=organization.google_sheet_id,
    )


def _build_profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=UserRole(profile.role),
        organization_id=profile.organization_id,
    )


def _build_recipient_response(recipient: NotificationRecipient) -> RecipientResponse:
    return RecipientResponse(
        id=recipient.id,
        organization_id=recipient.organization_id,
        email=recipient.email,
        name=recipient.name,
        is_active=recipient.is_active,
        added_by=recipient.added_by,
        created_at=recipient.created_at,
    )


def build_context_response(organization: Organization, profile: Profile) -> OrganizationContextResponse:
    return OrganizationContextResponse(
        organization=_build_organization_response(organization),
        profile=_build_profile_response(profile),
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Lowercase, keep letters, digits, spaces and hyphens, join words with single hyphens."""
    kept = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"-{2,}", "-", re.sub(r"\s+", "-", kept.strip())).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-") or "org"


async def unique_slug(session: AsyncSession, name: str) -> str:
    """``slugify(name)``, suffixed ``-1``, ``-2`` ... until no organization uses it."""
    repo = OrganizationRepository(session)
    base = slugify(name)
    candidate = base
    counter = 0
    while await repo.slug_exists(candidate):
        counter += 1
        suffix = f"-{counter}"
        candidate = f"{base[: MAX_SLUG_LENGTH - len(suffix)].rstrip('-')}{suffix}"
    return candidate


async def register_organization(
    session: AsyncSession,
    principal: Principal,
    payload: RegisterOrganizationPayload,
) -> OrganizationContextResponse:
    """Create an organization with the caller as its admin and first notification recipient."""
    profiles = ProfileRepository(session)
    profile = await profiles.get_by_id(principal.user_id)
    if profile is not None and profile.organization_id is not None:
        raise Conflict("You already belong to an organization")

    slug = await unique_slug(session, payload.organization_name)
    organization = Organization(
        slug=slug,
        name=payload.organization_name.strip(),
        admin_email=payload.admin_email.strip(),
    )
    try:
        await OrganizationRepository(session).insert(organization)
        if profile is None:
            profile = await profiles.insert(
                Profile(
                    id=principal.user_id,
                    email=payload.admin_email.strip(),
                    full_name=payload.admin_name.strip(),
                    role=UserRole.ADMIN,
                    organization_id=organization.id,
                )
            )
        else:
            profile.role = UserRole.ADMIN
            profile.organization_id = organization.id
            session.add(profile)
        await RecipientRepository(session).insert(
            NotificationRecipient(
                organization_id=organization.id,
                email=payload.admin_email.strip().lower(),
                name=payload.admin_name.strip(),
                added_by=principal.user_id,
            )
        )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict(f"Organization slug '{slug}' is already taken") from None

    await session.refresh(organization)
    await session.refresh(profile)
    logger.info("Registered organization %s (%s) for %s", organization.slug, organization.id, principal.user_id)
    return build_context_response(organization, profile)


# ---------------------------------------------------------------------------
# Spreadsheet link
# ---------------------------------------------------------------------------


def parse_sheet_id(value: str) -> str:
    """Accept a bare spreadsheet id or any Google Sheets URL containing one."""
    value = value.strip()
    match = _SHEET_URL.search(value)
    if match:
        return match.group(1)
    if _SHEET_ID.match(value):
        return value
    raise ValidationError("sheet", "Not a Google Sheets id or URL")


async def link_sheet(session: AsyncSession, organization: Organization, sheet: str) -> OrganizationResponse:
    organization.google_sheet_id = parse_sheet_id(sheet)
    session.add(organization)
    await session.commit()
    await session.refresh(organization)
    logger.info("Organization %s linked to sheet %s", organization.slug, organization.google_sheet_id)
    return _build_organization_response(organization)


# ---------------------------------------------------------------------------
# Notification recipients
# ---------------------------------------------------------------------------


async def _get_recipient_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    recipient_id: uuid.UUID,
) -> NotificationRecipient:
    recipient = await RecipientRepository(session).get_by_id(organization_id, recipient_id)
    if recipient is None:
        raise NotFound("Recipient not found")
    return recipient


async def list_recipients(session: AsyncSession, organization_id: uuid.UUID) -> RecipientListResponse:
    items = await RecipientRepository(session).list_for_organization(organization_id)
    return RecipientListResponse(items=[_build_recipient_response(r) for r in items], total=len(items))


async def add_recipient(
    session: AsyncSession,
    organization_id: uuid.UUID,
    payload: RecipientCreatePayload,
    added_by: uuid.UUID,
) -> RecipientResponse:
    repo = RecipientRepository(session)
    email = payload.email.strip().lower()
    if await repo.get_by_email(organization_id, email) is not None:
        raise Conflict(f"{email} is already a recipient")

    recipient = NotificationRecipient(
        organization_id=organization_id,
        email=email,
        name=payload.name.strip() if payload.name else None,
        added_by=added_by,
    )
    try:
        await repo.insert(recipient)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict(f"{email} is already a recipient") from None
    await session.refresh(recipient)
    return _build_recipient_response(recipient)


async def set_recipient_active(
    session: AsyncSession,
    organization_id: uuid.UUID,
    recipient_id: uuid.UUID,
    is_active: bool,
) -> RecipientResponse:
    recipient = await _get_recipient_or_404(session, organization_id, recipient_id)
    recipient.is_active = is_active
    session.add(recipient)
    await session.commit()
    await session.refresh(recipient)
    return _build_recipient_response(recipient)


async def remove_recipient(session: AsyncSession, organization_id: uuid.UUID, recipient_id: uuid.UUID) -> None:
    recipient = await _get_recipient_or_404(session, organization_id, recipient_id)
    await RecipientRepository(session).delete(recipient)
    await session.commit()
