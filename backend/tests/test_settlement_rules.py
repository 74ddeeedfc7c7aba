"""
Tests for outcome -> wager resolution rules
"""

from uuid import uuid4

import pytest

from arena.engine.errors import EngineResult, ErrorKind, VotingClosedError
from arena.engine.settlement import (
    LOST,
    REFUNDED,
    WON,
    Outcome,
    outcome_from_scores,
    resolve_wager,
)

A, B = uuid4(), uuid4()


class TestOutcomeFromScores:
    def test_higher_score_wins(self):
        assert outcome_from_scores(A, 1200, B, 800) == Outcome.winner(A)
        assert outcome_from_scores(A, 10, B, 11) == Outcome.winner(B)

    def test_equal_scores_tie(self):
        outcome = outcome_from_scores(A, 500, B, 500)
        assert outcome.kind == "tie"
        assert outcome.winner_id is None
        assert outcome.refunds_everyone


class TestResolveWager:
    def test_winner_paid_at_frozen_odds(self):
        resolution = resolve_wager(A, 100, 1.5, Outcome.winner(A))
        assert resolution.status == WON
        assert resolution.payout == pytest.approx(150.0)

    def test_loser_gets_nothing(self):
        resolution = resolve_wager(B, 200, 90.0, Outcome.winner(A))
        assert resolution.status == LOST
        assert resolution.payout == 0.0

    @pytest.mark.parametrize("outcome", [Outcome.tie(), Outcome.cancelled()])
    def test_tie_and_cancel_refund_stake(self, outcome):
        for contestant in (A, B):
            resolution = resolve_wager(contestant, 75, 2.7, outcome)
            assert resolution.status == REFUNDED
            assert resolution.payout == 75


class TestEngineResult:
    def test_success(self):
        result = EngineResult.success(42)
        assert result.ok
        assert result.value == 42
        assert result.error is None

    def test_failure_carries_kind_and_message(self):
        result = EngineResult.failure(VotingClosedError("too late"))
        assert not result.ok
        assert result.error.kind is ErrorKind.VOTING_CLOSED
        assert result.error.message == "too late"

    def test_default_message_is_kind(self):
        assert VotingClosedError().message == "VotingClosed"
