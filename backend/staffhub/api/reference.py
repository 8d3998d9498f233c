# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query

from staffhub.db import SessionDep
from staffhub.schemas.reference import LeaveTypeListResponse, PayPeriodListResponse, SheetColumnsResponse
from staffhub.services import reference as reference_service

reference_router = APIRouter(tags=["reference"])


@reference_router.get("/leave-types", response_model=LeaveTypeListResponse)
async def list_leave_types(session: SessionDep) -> LeaveTypeListResponse:
    return await reference_service.list_leave_types(session)


@reference_router.get("/pay-periods", response_model=PayPeriodListResponse)
async def list_pay_periods(
    session: SessionDep,
    t4_year: int | None = Query(default=None, ge=2000, le=2100),
) -> PayPeriodListResponse:
    """Pay periods, optionally for one T4 year."""
    return await reference_service.list_pay_periods(session, t4_year)


@reference_router.get("/sheet-columns", response_model=SheetColumnsResponse)
async def get_sheet_columns() -> SheetColumnsResponse:
    """Header row of every spreadsheet tab, for admins setting up a new sheet."""
    return reference_service.sheet_columns()
