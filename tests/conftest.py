"""Shared test fixtures for destinos tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from destinos.gamification import Account, Medal

# Type alias for the account_factory fixture
AccountFactory = Callable[..., Account]

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """A fixed timestamp so medal names and dates are deterministic."""
    return FIXED_NOW


@pytest.fixture
def account_factory() -> AccountFactory:
    """Build accounts with sensible defaults; pass ``medal_count`` for 100-point medals."""

    def _build(
        account_id: str = "user-1",
        *,
        medal_count: int = 0,
        **kwargs: object,
    ) -> Account:
        medals = tuple(
            Medal(name=f"🏅 Constancia {2020 + i}", value=100, awarded_at=FIXED_NOW)
            for i in range(medal_count)
        )
        kwargs.setdefault("medals", medals)
        return Account(id=account_id, **kwargs)  # type: ignore[arg-type]

    return _build
