"""Seed script for development data.

Run with:  uv run python -m staffhub.seed
Inside Docker:  docker compose exec api uv run python -m staffhub.seed

Creates missing tables, then inserts the leave-type catalog, the T4 pay-period
calendar and a test organization with one admin and one notification
recipient. Safe to run repeatedly; existing rows are skipped.
"""

from __future__ import annotations

import asyncio
import sys
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from staffhub.db import dispose_engine, get_engine, get_session_factory
from staffhub.models.enums import UserRole
from staffhub.models.organization import NotificationRecipient, Organization, Profile
from staffhub.models.reference import LeaveType
from staffhub.repositories import (
    LeaveTypeRepository,
    OrganizationRepository,
    PayPeriodRepository,
    ProfileRepository,
    RecipientRepository,
)
from staffhub.services.reference import t4_pay_periods

T4_YEAR = 2026
TEST_ORG_SLUG = "testorg"
ADMIN_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
STAFF_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

LEAVE_TYPES = [
    {"name": "Vacation", "color": "#10b981", "is_single_day": False},
    {"name": "Single Day Off", "color": "#f59e0b", "is_single_day": True},
]


async def create_tables() -> None:
    print("\n--- Creating tables ---")
    async with get_engine().begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    print("  [OK] metadata")


async def seed_leave_types() -> None:
    print("\n--- Seeding leave types ---")
    async with get_session_factory()() as session:
        repo = LeaveTypeRepository(session)
        for data in LEAVE_TYPES:
            if await repo.get_by_name(data["name"]) is not None:
                print(f"  [SKIP] {data['name']} (already exists)")
                continue
            session.add(LeaveType(**data))
            print(f"  [OK] {data['name']}")
        await session.commit()


async def seed_pay_periods() -> None:
    print(f"\n--- Seeding {T4_YEAR} pay periods ---")
    async with get_session_factory()() as session:
        existing = {p.period_number for p in await PayPeriodRepository(session).list_for_year(T4_YEAR)}
        for period in t4_pay_periods(T4_YEAR):
            if period.period_number in existing:
                continue
            session.add(period)
        await session.commit()
        print(f"  [OK] {24 - len(existing)} added, {len(existing)} already present")


async def seed_test_organization() -> None:
    print("\n--- Seeding test organization ---")
    async with get_session_factory()() as session:
        organizations = OrganizationRepository(session)
        organization = await organizations.get_by_slug(TEST_ORG_SLUG)
        if organization is None:
            organization = await organizations.insert(
                Organization(slug=TEST_ORG_SLUG, name="Test Organization", admin_email="admin@example.com")
            )
            print(f"  [OK] organization {TEST_ORG_SLUG}")
        else:
            print(f"  [SKIP] organization {TEST_ORG_SLUG} (already exists)")

        profiles = ProfileRepository(session)
        for user_id, email, name, role in (
            (ADMIN_USER_ID, "admin@example.com", "Ada Admin", UserRole.ADMIN),
            (STAFF_USER_ID, "sam.staff@example.com", "Sam Staff", UserRole.STAFF),
        ):
            if await profiles.get_by_id(user_id) is not None:
                print(f"  [SKIP] profile {email} (already exists)")
                continue
            await profiles.insert(
                Profile(id=user_id, email=email, full_name=name, role=role, organization_id=organization.id)
            )
            print(f"  [OK] profile {email} ({role})")

        recipients = RecipientRepository(session)
        if await recipients.get_by_email(organization.id, "admin@example.com") is None:
            await recipients.insert(
                NotificationRecipient(
                    organization_id=organization.id,
                    email="admin@example.com",
                    name="Ada Admin",
                    added_by=ADMIN_USER_ID,
                )
            )
            print("  [OK] recipient admin@example.com")
        else:
            print("  [SKIP] recipient admin@example.com (already exists)")
        await session.commit()


async def main() -> None:
    try:
        await create_tables()
        await seed_leave_types()
        await seed_pay_periods()
        await seed_test_organization()
    except (OSError, SQLAlchemyError) as exc:
        print(f"\n  [ERROR] {exc}")
        sys.exit(1)
    finally:
        await dispose_engine()

    print("\nDone. Sign in as the admin with header X-User-Id: " + str(ADMIN_USER_ID))


if __name__ == "__main__":
    asyncio.run(main())
