"""Gamification engine: applies scoring rules and season resets through an AccountStore.

Each operation is a read-modify-write of one account guarded by the store's
compare-and-swap on the account version.  A lost race re-reads the account
and re-applies the rule, up to ``max_attempts`` times, so concurrent actions
on the same user behave as if serialized and a threshold medal can never be
awarded twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from backend.api.services.account_store import AccountStore
from destinos.errors import ConflictError, NotFoundError, PersistenceError, SeasonResetError
from destinos.gamification import (
    Account,
    ActionKind,
    Medal,
    apply_action,
    parse_action_kind,
    reset_account,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class ActionResult:
    """Outcome of ``GamificationEngine.apply_action``."""

    user_id: str
    new_score: int
    new_medals: list[Medal]
    applied: bool
    medal_awarded: Medal | None = None


@dataclass(frozen=True)
class SeasonResetResult:
    """Outcome of ``GamificationEngine.reset_season``."""

    accounts_updated: int
    account_ids: list[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class GamificationEngine:
    """Scoring and season rollover over an injected ``AccountStore``."""

    def __init__(
        self,
        store: AccountStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._store = store
        self._max_attempts = max_attempts
        self._clock = clock

    async def apply_action(self, user_id: str, kind: ActionKind | str) -> ActionResult:
        """Apply a submission/approval/rejection to a user's account.

        Raises ``NotFoundError`` for unknown users, ``PersistenceError`` on
        storage failures and ``ConflictError`` once the retry budget is spent.
        """
        kind = parse_action_kind(kind)

        last_conflict: ConflictError | None = None
        for attempt in range(1, self._max_attempts + 1):
            account = await self._store.get_account(user_id, for_update=True)
            outcome = apply_action(account, kind, now=self._clock())

            if not outcome.applied:
                if kind is ActionKind.REJECTION:
                    logger.info("Rejection recorded for user %s: no points deducted", user_id)
                else:
                    logger.info("User %s already at the yearly %s limit", user_id, kind.value)
                return _to_result(account, applied=False)

            try:
                stored = await self._store.update_account(
                    outcome.account, expected_version=account.version
                )
            except ConflictError as exc:
                last_conflict = exc
                logger.warning(
                    "Concurrent update on user %s (%s), attempt %d/%d",
                    user_id,
                    kind.value,
                    attempt,
                    self._max_attempts,
                )
                continue

            logger.info(
                "User %s +%s: score %d, %s=%d",
                user_id,
                kind.value,
                stored.total_score,
                f"{kind.value}_count",
                stored.count_for(kind),
            )
            if outcome.medal is not None:
                logger.info("User %s awarded medal %r", user_id, outcome.medal.name)
            return _to_result(stored, applied=True, medal=outcome.medal)

        assert last_conflict is not None
        raise last_conflict

    async def reset_season(self) -> SeasonResetResult:
        """Reset every account to its medal baseline and zero its counters.

        Accounts are reset independently.  Failures do not stop the sweep;
        if any account failed a ``SeasonResetError`` is raised at the end,
        and rerunning the reset is safe.
        """
        account_ids = await self._store.list_account_ids()
        updated: list[str] = []
        failed: list[str] = []

        for account_id in account_ids:
            try:
                await self._reset_one(account_id)
            except NotFoundError:
                logger.info("Account %s disappeared during season reset, skipping", account_id)
                continue
            except (PersistenceError, ConflictError):
                logger.warning("Season reset failed for account %s", account_id, exc_info=True)
                failed.append(account_id)
                continue
            updated.append(account_id)

        if failed:
            raise SeasonResetError(len(updated), failed)

        logger.info("Season reset complete: %d account(s) updated", len(updated))
        return SeasonResetResult(accounts_updated=len(updated), account_ids=updated)

    async def _reset_one(self, account_id: str) -> Account:
        last_conflict: ConflictError | None = None
        for _ in range(self._max_attempts):
            account = await self._store.get_account(account_id, for_update=True)
            try:
                return await self._store.update_account(
                    reset_account(account), expected_version=account.version
                )
            except ConflictError as exc:
                last_conflict = exc

        assert last_conflict is not None
        raise last_conflict


def _to_result(account: Account, *, applied: bool, medal: Medal | None = None) -> ActionResult:
    return ActionResult(
        user_id=account.id,
        new_score=account.total_score,
        new_medals=list(account.medals),
        applied=applied,
        medal_awarded=medal,
    )
