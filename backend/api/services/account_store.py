"""Account ledger persistence.

``AccountStore`` is the storage seam the gamification engine depends on.
Two implementations are provided:

- ``SqlAccountStore`` reads and writes the ledger columns of the ``users``
  table through an ``AsyncSession``.
- ``InMemoryAccountStore`` keeps accounts in a dict; used by tests and
  anywhere a fake is handy.

Writes are compare-and-swap on ``Account.version``: an update only lands if
the stored version still equals the version the caller read, and every
successful write bumps it by one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.db.models import User
from destinos.errors import ConflictError, NotFoundError, PersistenceError
from destinos.gamification import Account, Medal

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """Keyed persistent store of gamification accounts."""

    async def get_account(self, account_id: str, *, for_update: bool = False) -> Account:
        """Return the account, raising ``NotFoundError`` if it does not exist.

        ``for_update`` asks the backend to lock the record until the
        surrounding transaction ends, where the backend supports it.
        """
        ...

    async def update_account(self, account: Account, expected_version: int) -> Account:
        """Persist *account* if the stored version equals *expected_version*.

        Returns the stored account (with its new version).  Raises
        ``ConflictError`` if another writer got there first.
        """
        ...

    async def list_account_ids(self) -> list[str]:
        """Return the ids of every account in the system."""
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


def medals_from_json(raw: list[Any] | None) -> tuple[Medal, ...]:
    """Decode the ``users.medals`` JSON column."""
    if not raw:
        return ()
    return tuple(Medal.from_record(r) for r in raw if isinstance(r, dict))


def medals_to_json(medals: Iterable[Medal]) -> list[dict[str, object]]:
    """Encode medals for the ``users.medals`` JSON column."""
    return [m.to_record() for m in medals]


class SqlAccountStore:
    """``AccountStore`` backed by the ``users`` table.

    The store never commits; the session owner (the request's ``get_db``
    dependency) decides the transaction boundary.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_account(self, account_id: str, *, for_update: bool = False) -> Account:
        stmt = select(
            User.id,
            User.total_score,
            User.submission_count,
            User.approval_count,
            User.medals,
            User.version,
        ).where(User.id == account_id)
        if for_update:
            stmt = stmt.with_for_update()

        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load account {account_id}") from exc

        row = result.one_or_none()
        if row is None:
            raise NotFoundError(account_id)

        return Account(
            id=row.id,
            total_score=row.total_score,
            submission_count=row.submission_count,
            approval_count=row.approval_count,
            medals=medals_from_json(row.medals),
            version=row.version,
        )

    async def update_account(self, account: Account, expected_version: int) -> Account:
        new_version = expected_version + 1
        stmt = (
            update(User)
            .where(User.id == account.id, User.version == expected_version)
            .values(
                total_score=account.total_score,
                submission_count=account.submission_count,
                approval_count=account.approval_count,
                medals=medals_to_json(account.medals),
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self._db.execute(stmt)
            if result.rowcount == 0:  # type: ignore[attr-defined]
                exists = await self._db.execute(select(User.id).where(User.id == account.id))
                if exists.scalar_one_or_none() is None:
                    raise NotFoundError(account.id)
                logger.debug("Version mismatch on account %s (expected %d)", account.id, expected_version)
                raise ConflictError(account.id, expected_version)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to update account {account.id}") from exc

        return replace(account, version=new_version)

    async def list_account_ids(self) -> list[str]:
        try:
            result = await self._db.execute(select(User.id).order_by(User.created_at, User.id))
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to list accounts") from exc
        return [row[0] for row in result.all()]


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryAccountStore:
    """Dict-backed ``AccountStore``.

    Accounts are immutable values, so handing them out needs no copying.
    The version check and the write happen under one lock.
    """

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._accounts: dict[str, Account] = {a.id: a for a in accounts}
        self._lock = asyncio.Lock()

    def get(self, account_id: str) -> Account | None:
        """Synchronous peek, for assertions."""
        return self._accounts.get(account_id)

    async def get_account(self, account_id: str, *, for_update: bool = False) -> Account:
        # Suspension point, as a real driver round-trip would have
        await asyncio.sleep(0)
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError(account_id)
        return account

    async def update_account(self, account: Account, expected_version: int) -> Account:
        async with self._lock:
            current = self._accounts.get(account.id)
            if current is None:
                raise NotFoundError(account.id)
            if current.version != expected_version:
                raise ConflictError(account.id, expected_version)
            stored = replace(account, version=expected_version + 1)
            self._accounts[account.id] = stored
            return stored

    async def list_account_ids(self) -> list[str]:
        return list(self._accounts)
