"""Test fixtures for the backend test suite."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.api.config import Settings
from backend.api.db.database import get_db
from backend.api.db.models import Base, Destination, User
from backend.api.dependencies import (
    AuthenticatedUser,
    get_current_account,
    get_current_user,
    get_settings,
)
from backend.api.main import app
from backend.api.services.media_store import init_upload_dir

# In-memory SQLite for test isolation; JSONB columns become JSON below
_test_engine = create_async_engine("sqlite+aiosqlite:///", echo=False)


@event.listens_for(_test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_conn: object, connection_record: object) -> None:
    """Enable foreign keys for SQLite test database."""
    cursor = dbapi_conn.cursor()  # type: ignore[union-attr]
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Patch JSONB columns to use JSON for SQLite
for table in Base.metadata.tables.values():
    for column in table.columns:
        if isinstance(column.type, JSONB):
            column.type = JSON()
_test_session_factory = async_sessionmaker(
    bind=_test_engine, class_=AsyncSession, expire_on_commit=False
)

TEST_SECRET = "test-jwt-secret-for-unit-tests-0123456789"

ADMIN_USER = AuthenticatedUser(user_id="test-admin", role="admin")
MODERATOR_USER = AuthenticatedUser(user_id="test-moderator", role="moderator")
REGULAR_USER = AuthenticatedUser(user_id="test-user", role="user")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with a JWT secret and a per-test upload directory."""
    return Settings(
        jwt_secret=TEST_SECRET,
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://test",
    )


@pytest.fixture(autouse=True)
def _override_settings(test_settings: Settings) -> Generator[None, None, None]:
    """Route get_settings to the test settings and create the upload dir."""
    init_upload_dir(test_settings.upload_dir)
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield
    app.dependency_overrides.pop(get_settings, None)


@pytest.fixture
def act_as() -> Generator[Callable[[AuthenticatedUser], None], None, None]:
    """Switch the authenticated caller for subsequent requests."""

    def _set(user: AuthenticatedUser) -> None:
        app.dependency_overrides[get_current_user] = lambda: user
        app.dependency_overrides[get_current_account] = lambda: user

    yield _set


@pytest.fixture(autouse=True)
def _mock_auth() -> Generator[None, None, None]:
    """Authenticate every test request as admin without a users row or token.

    Tests that exercise the role reload remove the ``get_current_account``
    override themselves.
    """
    app.dependency_overrides[get_current_user] = lambda: ADMIN_USER
    app.dependency_overrides[get_current_account] = lambda: ADMIN_USER
    yield
    app.dependency_overrides.pop(get_current_user, None)
    app.dependency_overrides.pop(get_current_account, None)


@pytest_asyncio.fixture(autouse=True)
async def _test_db() -> AsyncGenerator[None, None]:
    """Create tables in in-memory SQLite and override get_db for each test."""
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with _test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.pop(get_db, None)

    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A session on the test database, for service-level tests."""
    async with _test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed_user() -> Callable[..., Awaitable[User]]:
    """Factory inserting a user row with an optional starting ledger."""

    async def _seed(
        user_id: str,
        username: str | None = None,
        *,
        role: str = "user",
        total_score: int = 0,
        submission_count: int = 0,
        approval_count: int = 0,
        medals: list[dict[str, object]] | None = None,
    ) -> User:
        user = User(
            id=user_id,
            username=username or user_id,
            email=f"{user_id}@example.com",
            password_hash="not-a-real-hash",
            role=role,
            total_score=total_score,
            submission_count=submission_count,
            approval_count=approval_count,
            medals=medals or [],
            version=0,
        )
        async with _test_session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _seed


@pytest_asyncio.fixture
async def seed_destination() -> Callable[..., Awaitable[int]]:
    """Factory inserting a destination row; returns its id."""

    async def _seed(
        name: str,
        *,
        created_by: str | None = None,
        status: str = "pending",
        province: str = "Cusco",
    ) -> int:
        dest = Destination(
            name=name,
            description=f"About {name}",
            province=province,
            images=[],
            status=status,
            created_by=created_by,
            is_public=True,
            categories=[],
        )
        async with _test_session_factory() as session:
            session.add(dest)
            await session.commit()
            return dest.id

    return _seed


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an async HTTP test client wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
