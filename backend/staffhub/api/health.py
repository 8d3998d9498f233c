import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from staffhub.api.deps import DispatcherDep
from staffhub.config import get_settings
from staffhub.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: Literal["ok", "unreachable"]
    pending_notifications: int


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep, dispatcher: DispatcherDep) -> HealthResponse:
    """Report service status; degraded when the database is unreachable."""
    settings = get_settings()
    database: Literal["ok", "unreachable"] = "ok"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = "unreachable"

    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        pending_notifications=dispatcher.pending,
    )
