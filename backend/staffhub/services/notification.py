"""Notification fan-out to the spreadsheet and email channels.

Primary operations (submissions, reviews) hand an envelope to the dispatcher
and return. The fan-out runs detached; its per-channel outcome is logged and
never reaches the caller.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from staffhub.config import get_settings
from staffhub.db import get_session_factory
from staffhub.repositories import OrganizationRepository, RecipientRepository
from staffhub.schemas.notification import FanoutResult, NotificationEnvelope, StatusChangeEvent
from staffhub.services.mailer import Mailer, ResendMailer, format_email
from staffhub.services.sheets import SHEET_TABS, GoogleSheetsClient, SheetsClient, build_row

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from staffhub.config import Settings

logger = logging.getLogger(__name__)


class ChannelSkipped(Exception):
    """A channel had nothing to deliver to (missing configuration or recipients)."""


# ---------------------------------------------------------------------------
# Routing lookups
# ---------------------------------------------------------------------------


@runtime_checkable
class RecipientDirectory(Protocol):
    """Where an organization's notifications go."""

    async def recipient_emails(self, organization_id: uuid.UUID | None) -> list[str]: ...

    async def sheet_id(self, organization_id: uuid.UUID | None) -> str | None: ...


class SqlRecipientDirectory:
    """Reads recipients and the linked sheet in a session of its own.

    Falls back to the globally configured list and sheet when there is no
    organization, nothing is configured for it, or the lookup fails.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> None:
        self._session_factory = session_factory
        self._settings = settings

    async def recipient_emails(self, organization_id: uuid.UUID | None) -> list[str]:
        fallback = list(self._settings.notify_emails)
        if organization_id is None:
            return fallback
        try:
            async with self._session_factory() as session:
                emails = await RecipientRepository(session).active_emails(organization_id)
        except Exception:
            logger.exception("Recipient lookup failed for organization %s, using fallback list", organization_id)
            return fallback
        return emails or fallback

    async def sheet_id(self, organization_id: uuid.UUID | None) -> str | None:
        fallback = self._settings.google_sheet_id or None
        if organization_id is None:
            return fallback
        try:
            async with self._session_factory() as session:
                organization = await OrganizationRepository(session).get_by_id(organization_id)
        except Exception:
            logger.exception("Sheet lookup failed for organization %s, using fallback sheet", organization_id)
            return fallback
        if organization is not None and organization.google_sheet_id:
            return organization.google_sheet_id
        return fallback


class StaticRecipientDirectory:
    """Fixed routing, keyed by organization id. ``None`` keys hold the global fallback."""

    def __init__(
        self,
        recipients: dict[uuid.UUID | None, list[str]] | None = None,
        sheets: dict[uuid.UUID | None, str] | None = None,
    ) -> None:
        self.recipients = recipients or {}
        self.sheets = sheets or {}

    async def recipient_emails(self, organization_id: uuid.UUID | None) -> list[str]:
        return self.recipients.get(organization_id) or self.recipients.get(None, [])

    async def sheet_id(self, organization_id: uuid.UUID | None) -> str | None:
        return self.sheets.get(organization_id) or self.sheets.get(None)


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


class FanOut:
    """Delivers one envelope to both channels concurrently, each under its own timeout."""

    def __init__(
        self,
        directory: RecipientDirectory,
        sheets: SheetsClient | None,
        mailer: Mailer | None,
        *,
        app_url: str,
        channel_timeout: float = 10.0,
    ) -> None:
        self._directory = directory
        self._sheets = sheets
        self._mailer = mailer
        self._app_url = app_url.rstrip("/")
        self._channel_timeout = channel_timeout

    async def notify(self, envelope: NotificationEnvelope) -> FanoutResult:
        result = FanoutResult()
        if isinstance(envelope.event, StatusChangeEvent):
            # Employee-facing: no spreadsheet row is owed.
            result.sheet_ok = True
            email_error = await self._guard("email", self._email_employee(envelope))
        else:
            sheet_error, email_error = await asyncio.gather(
                self._guard("sheets", self._append_row(envelope)),
                self._guard("email", self._email_recipients(envelope)),
            )
            result.sheet_ok = sheet_error is None
            if sheet_error is not None:
                result.errors.append(sheet_error)

        result.email_ok = email_error is None
        if email_error is not None:
            result.errors.append(email_error)
        return result

    async def _guard(self, channel: str, operation: Awaitable[None]) -> str | None:
        """Run one channel. Returns an error message instead of raising."""
        try:
            await asyncio.wait_for(operation, timeout=self._channel_timeout)
        except TimeoutError:
            logger.warning("%s channel timed out after %.1fs", channel, self._channel_timeout)
            return f"{channel}: timed out after {self._channel_timeout:g}s"
        except ChannelSkipped as exc:
            logger.warning("%s channel skipped: %s", channel, exc)
            return f"{channel}: {exc}"
        except Exception as exc:
            logger.warning("%s channel failed: %s", channel, exc, exc_info=True)
            return f"{channel}: {exc}"
        return None

    async def _append_row(self, envelope: NotificationEnvelope) -> None:
        if envelope.form_type is None:
            raise ChannelSkipped("event has no form type")
        if self._sheets is None:
            raise ChannelSkipped("Google Sheets is not configured")
        spreadsheet_id = await self._directory.sheet_id(envelope.organization_id)
        if not spreadsheet_id:
            raise ChannelSkipped("no spreadsheet linked")
        row = build_row(envelope.form_type, envelope.event, envelope.occurred_at)
        await self._sheets.append_row(spreadsheet_id, SHEET_TABS[envelope.form_type], row)

    async def _email_recipients(self, envelope: NotificationEnvelope) -> None:
        if self._mailer is None:
            raise ChannelSkipped("email is not configured")
        recipients = await self._directory.recipient_emails(envelope.organization_id)
        if not recipients:
            raise ChannelSkipped("no notification recipients")
        subject, html = format_email(envelope.event, self._app_url)
        await self._mailer.send(recipients, subject, html)

    async def _email_employee(self, envelope: NotificationEnvelope) -> None:
        if self._mailer is None:
            raise ChannelSkipped("email is not configured")
        subject, html = format_email(envelope.event, self._app_url)
        await self._mailer.send([envelope.event.employee_email], subject, html)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """Schedules fan-outs as background tasks and keeps them alive until done."""

    def __init__(self, fanout: FanOut) -> None:
        self._fanout = fanout
        self._tasks: set[asyncio.Task[FanoutResult]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, envelope: NotificationEnvelope) -> bool:
        """Hand the envelope off. Returns True once the fan-out is scheduled."""
        task = asyncio.create_task(self._deliver(envelope))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _deliver(self, envelope: NotificationEnvelope) -> FanoutResult:
        result = await self._fanout.notify(envelope)
        level = logging.INFO if not result.errors else logging.WARNING
        logger.log(
            level,
            "Fan-out %s (org=%s): sheet_ok=%s email_ok=%s errors=%s",
            envelope.event.type,
            envelope.organization_id,
            result.sheet_ok,
            result.email_ok,
            result.errors,
        )
        return result

    async def drain(self) -> list[FanoutResult]:
        """Wait for every in-flight fan-out, including ones scheduled while waiting."""
        results: list[FanoutResult] = []
        while self._tasks:
            done = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for outcome in done:
                if isinstance(outcome, BaseException):
                    logger.error("Fan-out task crashed", exc_info=outcome)
                else:
                    results.append(outcome)
        return results


def build_default_dispatcher(settings: Settings | None = None) -> NotificationDispatcher:
    """Wire the production channels from settings. Unconfigured channels are left out."""
    settings = settings or get_settings()
    fanout = FanOut(
        SqlRecipientDirectory(get_session_factory(), settings),
        GoogleSheetsClient.from_settings(settings),
        ResendMailer.from_settings(settings),
        app_url=settings.app_url,
        channel_timeout=settings.channel_timeout_seconds,
    )
    return NotificationDispatcher(fanout)


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the current dispatcher, building the production one on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_default_dispatcher()
    return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    """Replace the dispatcher (for testing or alternative wiring)."""
    global _dispatcher
    _dispatcher = dispatcher
