from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from staffhub.config import Settings
from staffhub.db import get_session
from staffhub.main import app
from staffhub.models import SQLModel
from staffhub.services.mailer import InMemoryMailer
from staffhub.services.notification import FanOut, NotificationDispatcher, SqlRecipientDirectory, set_dispatcher
from staffhub.services.sheets import InMemorySheetsClient
from staffhub.services.storage import InMemoryDocumentStorage, set_document_storage

from factories import FALLBACK_EMAIL, GLOBAL_SHEET_ID, Catalog, Tenant, create_catalog, create_tenant

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Fresh file-backed SQLite database per test.

    A file (rather than ``:memory:``) gives every session its own connection,
    which the review race test relies on.
    """
    _engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'staffhub.db'}")
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Notification channels
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,  # ty: ignore[unknown-argument]
        app_url="http://portal.test",
        google_sheet_id=GLOBAL_SHEET_ID,
        notify_emails=[FALLBACK_EMAIL],
        channel_timeout_seconds=1.0,
    )


@pytest.fixture
def sheets() -> InMemorySheetsClient:
    return InMemorySheetsClient()


@pytest.fixture
def mailer() -> InMemoryMailer:
    return InMemoryMailer()


@pytest.fixture
def dispatcher(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
    sheets: InMemorySheetsClient,
    mailer: InMemoryMailer,
) -> Iterator[NotificationDispatcher]:
    """Dispatcher wired to in-memory channels and the test database."""
    fanout = FanOut(
        SqlRecipientDirectory(session_factory, test_settings),
        sheets,
        mailer,
        app_url=test_settings.app_url,
        channel_timeout=test_settings.channel_timeout_seconds,
    )
    _dispatcher = NotificationDispatcher(fanout)
    set_dispatcher(_dispatcher)
    yield _dispatcher
    set_dispatcher(None)


@pytest.fixture
def storage() -> Iterator[InMemoryDocumentStorage]:
    _storage = InMemoryDocumentStorage()
    set_document_storage(_storage)
    yield _storage
    set_document_storage(None)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    dispatcher: NotificationDispatcher,
    storage: InMemoryDocumentStorage,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    await dispatcher.drain()
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@pytest.fixture
async def catalog(db_session: AsyncSession) -> Catalog:
    return await create_catalog(db_session)


@pytest.fixture
async def acme(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, "acme", sheet_id="acme-sheet")


@pytest.fixture
async def globex(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, "globex", sheet_id="globex-sheet")
