"""Tests for destinos.gamification scoring rules, medals and season resets."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from destinos.constants import MEDAL_VALUE, POINTS_APPROVAL, POINTS_SUBMISSION, YEARLY_LIMIT
from destinos.gamification import (
    Account,
    ActionKind,
    Medal,
    apply_action,
    medal_baseline,
    medal_name,
    parse_action_kind,
    reset_account,
)
from tests.conftest import AccountFactory


class TestAccountValidation:
    """Account constructor invariants."""

    def test_defaults_are_zero(self) -> None:
        acct = Account(id="a")
        assert acct.total_score == 0
        assert acct.submission_count == 0
        assert acct.approval_count == 0
        assert acct.medals == ()
        assert acct.version == 0

    def test_negative_score_rejected(self) -> None:
        with pytest.raises(ValueError, match="total_score"):
            Account(id="a", total_score=-1)

    def test_counter_above_limit_rejected(self) -> None:
        with pytest.raises(ValueError, match="submission_count"):
            Account(id="a", submission_count=YEARLY_LIMIT + 1)

    def test_negative_counter_rejected(self) -> None:
        with pytest.raises(ValueError, match="approval_count"):
            Account(id="a", approval_count=-1)

    def test_medals_list_stored_as_tuple(self, now: datetime) -> None:
        acct = Account(id="a", medals=[Medal("m", 100, now)])  # type: ignore[arg-type]
        assert isinstance(acct.medals, tuple)

    def test_negative_medal_value_rejected(self, now: datetime) -> None:
        with pytest.raises(ValueError):
            Medal(name="m", value=-5, awarded_at=now)


class TestParseActionKind:
    def test_accepts_strings(self) -> None:
        assert parse_action_kind("submission") is ActionKind.SUBMISSION
        assert parse_action_kind("approval") is ActionKind.APPROVAL
        assert parse_action_kind("rejection") is ActionKind.REJECTION

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown action kind"):
            parse_action_kind("upvote")


class TestSubmissions:
    """Submission scoring and the Constancia medal."""

    def test_single_submission(self, account_factory: AccountFactory, now: datetime) -> None:
        outcome = apply_action(account_factory(), ActionKind.SUBMISSION, now=now)
        assert outcome.applied
        assert outcome.account.total_score == POINTS_SUBMISSION
        assert outcome.account.submission_count == 1
        assert outcome.medal is None

    def test_eleven_submissions(self, account_factory: AccountFactory, now: datetime) -> None:
        """The tenth awards one medal; the eleventh changes nothing."""
        acct = account_factory()
        outcomes = []
        for _ in range(11):
            outcome = apply_action(acct, "submission", now=now)
            outcomes.append(outcome)
            acct = outcome.account

        # Medal value only counts once the season resets
        assert acct.total_score == YEARLY_LIMIT * POINTS_SUBMISSION
        assert reset_account(acct).total_score == MEDAL_VALUE
        assert acct.submission_count == YEARLY_LIMIT
        assert [m.name for m in acct.medals] == ["🏅 Constancia 2025"]
        assert outcomes[9].medal is not None
        assert not outcomes[10].applied
        assert outcomes[10].account == outcomes[9].account

    def test_medal_does_not_add_to_score(
        self, account_factory: AccountFactory, now: datetime
    ) -> None:
        acct = account_factory(submission_count=9, total_score=90)
        outcome = apply_action(acct, ActionKind.SUBMISSION, now=now)
        assert outcome.account.total_score == 100
        assert outcome.medal == Medal("🏅 Constancia 2025", MEDAL_VALUE, now)

    def test_does_not_touch_approval_counter(
        self, account_factory: AccountFactory, now: datetime
    ) -> None:
        acct = account_factory(approval_count=4)
        outcome = apply_action(acct, ActionKind.SUBMISSION, now=now)
        assert outcome.account.approval_count == 4


class TestApprovals:
    """Approval scoring and the Calidad medal."""

    def test_five_then_five_more(self, account_factory: AccountFactory, now: datetime) -> None:
        acct = account_factory()
        for _ in range(5):
            acct = apply_action(acct, ActionKind.APPROVAL, now=now).account
        assert acct.approval_count == 5
        assert acct.total_score == 5 * POINTS_APPROVAL
        assert acct.medals == ()

        for _ in range(5):
            acct = apply_action(acct, ActionKind.APPROVAL, now=now).account
        assert acct.approval_count == 10
        assert acct.total_score == 500
        assert len(acct.medals) == 1
        assert acct.medals[0].name == "🌟 Calidad 2025"
        assert acct.medals[0].value == 100

        eleventh = apply_action(acct, ActionKind.APPROVAL, now=now)
        assert not eleventh.applied
        assert eleventh.account.total_score == 500

    def test_medal_uses_year_of_now(self, account_factory: AccountFactory) -> None:
        acct = account_factory(approval_count=9)
        when = datetime(2031, 1, 1, tzinfo=UTC)
        outcome = apply_action(acct, ActionKind.APPROVAL, now=when)
        assert outcome.medal is not None
        assert outcome.medal.name == "🌟 Calidad 2031"
        assert outcome.medal.awarded_at == when


class TestRejection:
    def test_rejection_is_noop(self, account_factory: AccountFactory, now: datetime) -> None:
        acct = account_factory(total_score=120, submission_count=2, approval_count=2)
        outcome = apply_action(acct, ActionKind.REJECTION, now=now)
        assert not outcome.applied
        assert outcome.account is acct


class TestCounterBound:
    @pytest.mark.parametrize("sequence_length", [0, 7, 25, 60])
    def test_counters_never_exceed_limit(
        self, account_factory: AccountFactory, now: datetime, sequence_length: int
    ) -> None:
        kinds = [ActionKind.SUBMISSION, ActionKind.APPROVAL, ActionKind.REJECTION]
        acct = account_factory()
        for i in range(sequence_length):
            acct = apply_action(acct, kinds[i % 3], now=now).account
            assert 0 <= acct.submission_count <= YEARLY_LIMIT
            assert 0 <= acct.approval_count <= YEARLY_LIMIT

    def test_version_left_unchanged(self, account_factory: AccountFactory, now: datetime) -> None:
        acct = account_factory(version=7)
        assert apply_action(acct, ActionKind.SUBMISSION, now=now).account.version == 7


class TestSeasonReset:
    def test_reset_to_medal_baseline(self, account_factory: AccountFactory) -> None:
        acct = account_factory(medal_count=2, total_score=350, submission_count=3, approval_count=2)
        reset = reset_account(acct)
        assert reset.total_score == 200
        assert reset.submission_count == 0
        assert reset.approval_count == 0
        assert reset.medals == acct.medals

    def test_reset_score_equals_medal_total(self, account_factory: AccountFactory) -> None:
        acct = account_factory(medal_count=3, total_score=420)
        assert acct.medal_total == 300
        assert reset_account(acct).total_score == acct.medal_total

    def test_reset_without_medals(self, account_factory: AccountFactory) -> None:
        reset = reset_account(account_factory(total_score=80, submission_count=8))
        assert reset.total_score == 0

    def test_reset_is_idempotent(self, account_factory: AccountFactory) -> None:
        acct = account_factory(medal_count=1, total_score=260, approval_count=3)
        assert reset_account(reset_account(acct)) == reset_account(acct)

    def test_counters_usable_after_reset(
        self, account_factory: AccountFactory, now: datetime
    ) -> None:
        acct = reset_account(account_factory(submission_count=10, total_score=200, medal_count=1))
        outcome = apply_action(acct, ActionKind.SUBMISSION, now=now)
        assert outcome.applied
        assert outcome.account.total_score == 110


class TestMedals:
    def test_medal_name(self) -> None:
        assert medal_name(ActionKind.SUBMISSION, 2024) == "🏅 Constancia 2024"
        assert medal_name(ActionKind.APPROVAL, 2024) == "🌟 Calidad 2024"

    def test_baseline_sums_values(self, now: datetime) -> None:
        medals = (Medal("a", 100, now), Medal("b", 100, now), Medal("c", 0, now))
        assert medal_baseline(medals) == 200
        assert medal_baseline(()) == 0

    def test_record_shape(self, now: datetime) -> None:
        record = Medal("🌟 Calidad 2025", 100, now).to_record()
        assert record == {"name": "🌟 Calidad 2025", "value": 100, "date": now.isoformat()}
        assert Medal.from_record(record) == Medal("🌟 Calidad 2025", 100, now)

    def test_legacy_record_without_value_counts_as_zero(self) -> None:
        medal = Medal.from_record({"name": "old", "date": "2020-01-01T00:00:00Z"})
        assert medal.value == 0
        assert medal.awarded_at == datetime(2020, 1, 1, tzinfo=UTC)

    def test_naive_date_read_as_utc(self) -> None:
        medal = Medal.from_record({"name": "old", "value": 100, "date": "2021-05-01T10:00:00"})
        assert medal.awarded_at.tzinfo is UTC
