"""Typed repositories over the async session, one per entity.

Each repository exposes only the reads and writes the portal needs. Writes
``flush`` but never commit; the calling service owns the transaction.
"""

# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlmodel import col

from staffhub.models.enums import RequestStatus
from staffhub.models.organization import NotificationRecipient, Organization, Profile
from staffhub.models.reference import LeaveType, PayPeriod
from staffhub.models.request import LeaveRequest, LeaveRequestDate

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class OrganizationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, organization_id: uuid.UUID) -> Organization | None:
        return await self._session.get(Organization, organization_id)

    async def get_by_slug(self, slug: str) -> Organization | None:
        result = await self._session.execute(select(Organization).where(col(Organization.slug) == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        result = await self._session.execute(select(Organization.id).where(col(Organization.slug) == slug))
        return result.first() is not None

    async def insert(self, organization: Organization) -> Organization:
        self._session.add(organization)
        await self._session.flush()
        return organization


class ProfileRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, profile_id: uuid.UUID) -> Profile | None:
        return await self._session.get(Profile, profile_id)

    async def insert(self, profile: Profile) -> Profile:
        self._session.add(profile)
        await self._session.flush()
        return profile


class LeaveTypeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, leave_type_id: uuid.UUID) -> LeaveType | None:
        return await self._session.get(LeaveType, leave_type_id)

    async def get_by_name(self, name: str) -> LeaveType | None:
        result = await self._session.execute(select(LeaveType).where(col(LeaveType.name) == name))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[LeaveType]:
        result = await self._session.execute(select(LeaveType).order_by(col(LeaveType.name)))
        return list(result.scalars().all())


class PayPeriodRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_many(self, ids: Iterable[uuid.UUID]) -> list[PayPeriod]:
        """Return the periods for ``ids`` in the order the ids were given, skipping unknown ones."""
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        result = await self._session.execute(select(PayPeriod).where(col(PayPeriod.id).in_(wanted)))
        by_id = {p.id: p for p in result.scalars().all()}
        return [by_id[i] for i in wanted if i in by_id]

    async def list_for_year(self, t4_year: int | None = None) -> list[PayPeriod]:
        query = select(PayPeriod).order_by(col(PayPeriod.t4_year), col(PayPeriod.period_number))
        if t4_year is not None:
            query = query.where(col(PayPeriod.t4_year) == t4_year)
        result = await self._session.execute(query)
        return list(result.scalars().all())


class LeaveRequestRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, request_id: uuid.UUID) -> LeaveRequest | None:
        return await self._session.get(LeaveRequest, request_id)

    async def insert(self, request: LeaveRequest, dates: Sequence[datetime.date]) -> LeaveRequest:
        """Insert the request together with one LeaveRequestDate row per covered date."""
        self._session.add(request)
        await self._session.flush()
        for day in dates:
            self._session.add(LeaveRequestDate(request_id=request.id, date=day))
        await self._session.flush()
        return request

    async def conditional_update(
        self,
        request_id: uuid.UUID,
        expected_status: RequestStatus,
        values: dict[str, Any],
    ) -> bool:
        """Apply ``values`` only if the row still has ``expected_status``.

        Returns True when exactly one row changed. This is the compare-and-set
        that keeps two concurrent reviews from both succeeding.
        """
        result = await self._session.execute(
            update(LeaveRequest)
            .where(
                col(LeaveRequest.id) == request_id,
                col(LeaveRequest.status) == expected_status.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # ty: ignore[unresolved-attribute]

    async def list_for_organization(
        self,
        organization_id: uuid.UUID,
        *,
        statuses: Sequence[RequestStatus] | None = None,
        user_id: uuid.UUID | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[LeaveRequest], int]:
        filters = [col(LeaveRequest.organization_id) == organization_id]
        if statuses:
            filters.append(col(LeaveRequest.status).in_([s.value for s in statuses]))
        if user_id is not None:
            filters.append(col(LeaveRequest.user_id) == user_id)

        count_result = await self._session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
        total = count_result.scalar_one()

        result = await self._session.execute(
            select(LeaveRequest)
            .where(*filters)
            .order_by(col(LeaveRequest.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_dates(self, request_id: uuid.UUID) -> list[datetime.date]:
        result = await self._session.execute(
            select(LeaveRequestDate.date)
            .where(col(LeaveRequestDate.request_id) == request_id)
            .order_by(col(LeaveRequestDate.date))
        )
        return list(result.scalars().all())

    async def approved_dates_between(
        self,
        organization_id: uuid.UUID,
        start: datetime.date,
        end: datetime.date,
    ) -> list[tuple[datetime.date, LeaveRequest]]:
        """Calendar entries: (date, request) for approved requests of one organization."""
        result = await self._session.execute(
            select(LeaveRequestDate.date, LeaveRequest)
            .join(LeaveRequest, col(LeaveRequest.id) == col(LeaveRequestDate.request_id))
            .where(
                col(LeaveRequest.organization_id) == organization_id,
                col(LeaveRequest.status) == RequestStatus.APPROVED.value,
                col(LeaveRequestDate.date) >= start,
                col(LeaveRequestDate.date) <= end,
            )
            .order_by(col(LeaveRequestDate.date))
        )
        return [(row[0], row[1]) for row in result.all()]


class RecipientRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, organization_id: uuid.UUID, recipient_id: uuid.UUID) -> NotificationRecipient | None:
        result = await self._session.execute(
            select(NotificationRecipient).where(
                col(NotificationRecipient.id) == recipient_id,
                col(NotificationRecipient.organization_id) == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, organization_id: uuid.UUID, email: str) -> NotificationRecipient | None:
        result = await self._session.execute(
            select(NotificationRecipient).where(
                col(NotificationRecipient.organization_id) == organization_id,
                func.lower(col(NotificationRecipient.email)) == email.lower(),
            )
        )
        return result.scalar_one_or_none()

    async def list_for_organization(self, organization_id: uuid.UUID) -> list[NotificationRecipient]:
        result = await self._session.execute(
            select(NotificationRecipient)
            .where(col(NotificationRecipient.organization_id) == organization_id)
            .order_by(col(NotificationRecipient.created_at))
        )
        return list(result.scalars().all())

    async def active_emails(self, organization_id: uuid.UUID) -> list[str]:
        result = await self._session.execute(
            select(NotificationRecipient.email)
            .where(
                col(NotificationRecipient.organization_id) == organization_id,
                col(NotificationRecipient.is_active).is_(True),
            )
            .order_by(col(NotificationRecipient.created_at))
        )
        return list(result.scalars().all())

    async def insert(self, recipient: NotificationRecipient) -> NotificationRecipient:
        self._session.add(recipient)
        await self._session.flush()
        return recipient

    async def delete(self, recipient: NotificationRecipient) -> None:
        await self._session.delete(recipient)
        await self._session.flush()
