"""Gamification rules: points, yearly caps, medals and season resets.

Pure functions over immutable ``Account`` values.  Storage, locking and
retries live in the backend engine; everything here is deterministic given
the ``now`` timestamp passed in.

Scoring per accepted action:
    submission -> +10 points, approval -> +50 points
Each kind is capped at ``YEARLY_LIMIT`` accepted actions per season.  The
action that brings a counter to the limit also awards a medal worth
``MEDAL_VALUE``.  A season reset rewrites the score as the sum of all medal
values and zeroes both counters.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum

from destinos.constants import (
    MEDAL_LABELS,
    MEDAL_VALUE,
    POINTS_APPROVAL,
    POINTS_SUBMISSION,
    YEARLY_LIMIT,
)

# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class ActionKind(StrEnum):
    """User actions the gamification rules react to."""

    SUBMISSION = "submission"
    APPROVAL = "approval"
    REJECTION = "rejection"


_POINTS: dict[ActionKind, int] = {
    ActionKind.SUBMISSION: POINTS_SUBMISSION,
    ActionKind.APPROVAL: POINTS_APPROVAL,
}


@dataclass(frozen=True)
class Medal:
    """A fixed-value award.  Identity is the (name, awarded_at) pair."""

    name: str
    value: int
    awarded_at: datetime

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Medal value must be >= 0, got {self.value}")

    def to_record(self) -> dict[str, object]:
        """Serialise to the persisted ``{name, value, date}`` shape."""
        return {"name": self.name, "value": self.value, "date": self.awarded_at.isoformat()}

    @classmethod
    def from_record(cls, record: dict[str, object]) -> Medal:
        """Build a medal from a persisted record.

        Legacy rows without a ``value`` count as worth 0; a missing or naive
        ``date`` is read as UTC.
        """
        raw_date = record.get("date")
        if isinstance(raw_date, datetime):
            awarded_at = raw_date
        elif raw_date:
            awarded_at = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
        else:
            awarded_at = datetime.fromtimestamp(0, tz=UTC)
        if awarded_at.tzinfo is None:
            awarded_at = awarded_at.replace(tzinfo=UTC)
        return cls(
            name=str(record.get("name", "")),
            value=int(record.get("value") or 0),  # type: ignore[call-overload]
            awarded_at=awarded_at,
        )


@dataclass(frozen=True)
class Account:
    """A user's gamification ledger entry."""

    id: str
    total_score: int = 0
    submission_count: int = 0
    approval_count: int = 0
    medals: tuple[Medal, ...] = field(default_factory=tuple)
    version: int = 0

    def __post_init__(self) -> None:
        if self.total_score < 0:
            raise ValueError(f"total_score must be >= 0, got {self.total_score}")
        if self.version < 0:
            raise ValueError(f"version must be >= 0, got {self.version}")
        for name in ("submission_count", "approval_count"):
            count = getattr(self, name)
            if not 0 <= count <= YEARLY_LIMIT:
                raise ValueError(f"{name} must be within [0, {YEARLY_LIMIT}], got {count}")
        # Accept any iterable of medals but store an immutable tuple
        object.__setattr__(self, "medals", tuple(self.medals))

    def count_for(self, kind: ActionKind) -> int:
        """Return the season counter tracking *kind*."""
        if kind is ActionKind.SUBMISSION:
            return self.submission_count
        if kind is ActionKind.APPROVAL:
            return self.approval_count
        raise ValueError(f"No counter for action kind {kind!r}")

    @property
    def medal_total(self) -> int:
        """Sum of all medal values, i.e. the post-reset baseline."""
        return medal_baseline(self.medals)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of applying one action to an account."""

    account: Account
    applied: bool
    medal: Medal | None = None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def parse_action_kind(kind: ActionKind | str) -> ActionKind:
    """Coerce a raw string to an ``ActionKind``, raising ValueError if unknown."""
    if isinstance(kind, ActionKind):
        return kind
    try:
        return ActionKind(kind)
    except ValueError:
        valid = ", ".join(k.value for k in ActionKind)
        raise ValueError(f"Unknown action kind {kind!r}. Must be one of: {valid}") from None


def medal_name(kind: ActionKind, year: int) -> str:
    """Return the medal name for *kind* awarded in *year*."""
    return f"{MEDAL_LABELS[kind.value]} {year}"


def medal_baseline(medals: tuple[Medal, ...] | list[Medal]) -> int:
    """Sum of medal values (0 for no medals)."""
    return sum(m.value for m in medals)


def apply_action(
    account: Account, kind: ActionKind | str, now: datetime | None = None
) -> ActionOutcome:
    """Apply one action to *account* and return the resulting state.

    Rejections and actions whose counter already reached ``YEARLY_LIMIT`` are
    no-ops (``applied=False``).  The returned account keeps the input version;
    bumping it is the store's job.
    """
    kind = parse_action_kind(kind)
    if kind is ActionKind.REJECTION:
        return ActionOutcome(account=account, applied=False)

    current = account.count_for(kind)
    if current >= YEARLY_LIMIT:
        return ActionOutcome(account=account, applied=False)

    if now is None:
        now = datetime.now(UTC)

    new_count = current + 1
    medals = account.medals
    medal: Medal | None = None
    if new_count == YEARLY_LIMIT:
        medal = Medal(name=medal_name(kind, now.year), value=MEDAL_VALUE, awarded_at=now)
        medals = (*medals, medal)

    counter_field = "submission_count" if kind is ActionKind.SUBMISSION else "approval_count"
    updated = replace(
        account,
        total_score=account.total_score + _POINTS[kind],
        medals=medals,
        **{counter_field: new_count},
    )
    return ActionOutcome(account=updated, applied=True, medal=medal)


def reset_account(account: Account) -> Account:
    """Start a new season: score becomes the medal baseline, counters go to 0.

    Idempotent; medals are kept untouched.
    """
    return replace(
        account,
        total_score=account.medal_total,
        submission_count=0,
        approval_count=0,
    )
