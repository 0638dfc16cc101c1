"""Async database engine and session factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from backend.api.config import Settings

_settings = Settings()


def _engine_options(url: str, debug: bool) -> dict[str, Any]:
    """Engine kwargs for *url*; SQLite (local dev) has no connection pool sizing."""
    options: dict[str, Any] = {"echo": debug}
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10, pool_pre_ping=True)
    return options


async_engine = create_async_engine(
    _settings.database_url,
    **_engine_options(_settings.database_url, _settings.debug),
)

async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for dependency injection.

    The whole request is one transaction: committed on success, rolled back
    if the handler raises.  Ledger writes made through ``SqlAccountStore``
    therefore land or vanish together with the rest of the request.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    await async_engine.dispose()
