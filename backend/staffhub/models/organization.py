# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from staffhub.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from staffhub.models.enums import UserRole


class Organization(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Tenant boundary. The slug is part of every tenant URL and never changes."""

    __tablename__ = "organization"

    slug: str = Field(max_length=50, unique=True, index=True)
    name: str = Field(max_length=255)
    admin_email: str = Field(max_length=255, index=True)
    google_sheet_id: str | None = Field(default=None, max_length=255)
    settings: dict[str, Any] = Field(default_factory=dict, sa_type=sa.JSON)


class Profile(TimestampMixin, UpdatedAtMixin, table=True):
    """A principal's membership record. The id is the authenticated principal id."""

    __tablename__ = "profile"

    id: uuid.UUID = Field(primary_key=True, sa_type=sa.Uuid)
    email: str = Field(max_length=255)
    full_name: str = Field(max_length=255)
    role: str = Field(default=UserRole.STAFF, max_length=20, sa_column_kwargs={"server_default": "staff"})
    organization_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("organization.id", ondelete="SET NULL"), nullable=True, index=True
        ),
    )


class NotificationRecipient(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Per-organization opt-in address for new-request emails."""

    __tablename__ = "notification_recipient"
    __table_args__ = (sa.UniqueConstraint("organization_id", "email", name="uq_recipient_org_email"),)

    organization_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    email: str = Field(max_length=255)
    name: str | None = Field(default=None, max_length=255)
    is_active: bool = Field(default=True, index=True)
    added_by: uuid.UUID | None = None
