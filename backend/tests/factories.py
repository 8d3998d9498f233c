"""Seed helpers shared by the test modules."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from staffhub.models.enums import RequestStatus, UserRole
from staffhub.models.organization import NotificationRecipient, Organization, Profile
from staffhub.models.reference import LeaveType, PayPeriod
from staffhub.models.request import LeaveRequest, LeaveRequestDate
from staffhub.services.reference import t4_pay_periods

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

GLOBAL_SHEET_ID = "global-sheet"
FALLBACK_EMAIL = "fallback@example.com"


def headers_for(profile: Profile) -> dict[str, str]:
    return {"X-User-Id": str(profile.id)}


@dataclass
class Tenant:
    organization: Organization
    admin: Profile
    staff: Profile
    recipient: NotificationRecipient

    @property
    def slug(self) -> str:
        return self.organization.slug


@dataclass
class Catalog:
    single_day: LeaveType
    vacation: LeaveType
    pay_periods: list[PayPeriod]

    def period(self, number: int) -> PayPeriod:
        return self.pay_periods[number - 1]


async def create_tenant(
    session: AsyncSession,
    slug: str,
    *,
    sheet_id: str | None = None,
    recipient_email: str | None = None,
) -> Tenant:
    organization = Organization(
        slug=slug,
        name=slug.title(),
        admin_email=f"admin@{slug}.test",
        google_sheet_id=sheet_id,
    )
    session.add(organization)
    await session.flush()
    admin = Profile(
        id=uuid.uuid4(),
        email=f"admin@{slug}.test",
        full_name=f"{slug.title()} Admin",
        role=UserRole.ADMIN,
        organization_id=organization.id,
    )
    staff = Profile(
        id=uuid.uuid4(),
        email=f"staff@{slug}.test",
        full_name=f"{slug.title()} Staff",
        role=UserRole.STAFF,
        organization_id=organization.id,
    )
    recipient = NotificationRecipient(
        organization_id=organization.id,
        email=recipient_email or f"hr@{slug}.test",
        name="HR",
        added_by=admin.id,
    )
    session.add_all([admin, staff, recipient])
    await session.commit()
    return Tenant(organization=organization, admin=admin, staff=staff, recipient=recipient)


async def create_catalog(session: AsyncSession, t4_year: int = 2026) -> Catalog:
    single_day = LeaveType(name="Single Day Off", color="#f59e0b", is_single_day=True)
    vacation = LeaveType(name="Vacation", color="#10b981", is_single_day=False)
    periods = t4_pay_periods(t4_year)
    session.add_all([single_day, vacation, *periods])
    await session.commit()
    return Catalog(single_day=single_day, vacation=vacation, pay_periods=periods)


async def create_request(
    session: AsyncSession,
    tenant: Tenant,
    leave_type: LeaveType,
    days: list[date],
    *,
    user: Profile | None = None,
    status: RequestStatus = RequestStatus.PENDING,
    reason: str = "Out of office",
    reviewed_by: uuid.UUID | None = None,
    admin_notes: str | None = None,
) -> LeaveRequest:
    """Insert a request with one date row per day, bypassing the submission pipeline."""
    request = LeaveRequest(
        user_id=(user or tenant.staff).id,
        leave_type_id=leave_type.id,
        organization_id=tenant.organization.id,
        submission_date=days[0],
        start_date=days[0],
        end_date=days[-1],
        reason=reason,
        status=status,
        reviewed_by=reviewed_by,
        admin_notes=admin_notes,
    )
    session.add(request)
    await session.flush()
    session.add_all([LeaveRequestDate(request_id=request.id, date=day) for day in days])
    await session.commit()
    return request
