# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from staffhub.models.enums import UserRole


class OrganizationResponse(BaseModel):
    id: uuid.UUID
    slug: str
    name: str
    admin_email: str
    google_sheet_id: str | None


class ProfileResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: UserRole
    organization_id: uuid.UUID | None


class OrganizationContextResponse(BaseModel):
    """What a tenant page needs after access has been granted."""

    organization: OrganizationResponse
    profile: ProfileResponse


class RegisterOrganizationPayload(BaseModel):
    """Request body for creating a new organization with the caller as its admin."""

    organization_name: str = Field(min_length=1, max_length=255)
    admin_name: str = Field(min_length=1, max_length=255)
    admin_email: str = Field(min_length=3, max_length=255)


class LinkSheetPayload(BaseModel):
    """A Google Sheet id, or the full URL of the sheet."""

    sheet: str = Field(min_length=1, max_length=500)


class RecipientCreatePayload(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    name: str | None = Field(default=None, max_length=255)


class RecipientUpdatePayload(BaseModel):
    is_active: bool


class RecipientResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    email: str
    name: str | None
    is_active: bool
    added_by: uuid.UUID | None
    created_at: datetime


class RecipientListResponse(BaseModel):
    items: list[RecipientResponse]
    total: int
