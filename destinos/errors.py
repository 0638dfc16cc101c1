"""Error taxonomy for the account ledger and gamification engine."""

from __future__ import annotations


class GamificationError(Exception):
    """Base class for ledger and engine failures."""


class NotFoundError(GamificationError):
    """The referenced account does not exist."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class PersistenceError(GamificationError):
    """The underlying storage could not be read or written."""


class ConflictError(GamificationError):
    """A concurrent write won the compare-and-swap on the account version."""

    def __init__(self, account_id: str, expected_version: int) -> None:
        super().__init__(
            f"Account {account_id} changed concurrently (expected version {expected_version})"
        )
        self.account_id = account_id
        self.expected_version = expected_version


class SeasonResetError(PersistenceError):
    """Some accounts could not be reset; the rest were reset and stay reset."""

    def __init__(self, accounts_updated: int, failed_ids: list[str]) -> None:
        super().__init__(
            f"Season reset failed for {len(failed_ids)} account(s) "
            f"after updating {accounts_updated}"
        )
        self.accounts_updated = accounts_updated
        self.failed_ids = failed_ids
