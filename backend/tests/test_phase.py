"""
Tests for the contest phase state machine
"""

import pytest

from arena.engine.phase import ContestPhase, ContestPhaseMachine, phase_for


class TestPhaseFor:
    @pytest.mark.parametrize("remaining, expected", [
        (300, ContestPhase.OPEN),
        (60.01, ContestPhase.OPEN),
        (60, ContestPhase.CLOSING),
        (30, ContestPhase.CLOSING),
        (0.5, ContestPhase.CLOSING),
        (0, ContestPhase.CLOSED),
        (-5, ContestPhase.CLOSED),
    ])
    def test_remaining_time(self, remaining, expected):
        assert phase_for(remaining) is expected

    def test_end_signal_closes(self):
        assert phase_for(300, ended=True) is ContestPhase.CLOSED

    def test_custom_window(self):
        assert phase_for(100, closing_window=120) is ContestPhase.CLOSING


class TestPhaseMachine:
    def test_starts_open(self):
        machine = ContestPhaseMachine()
        assert machine.phase is ContestPhase.OPEN
        assert machine.accepts_wagers
        assert not machine.settlement_eligible

    def test_walks_forward(self):
        machine = ContestPhaseMachine()
        assert machine.advance(120) is ContestPhase.OPEN
        assert machine.advance(45) is ContestPhase.CLOSING
        assert not machine.accepts_wagers
        assert machine.advance(0) is ContestPhase.CLOSED
        assert machine.settlement_eligible

    def test_never_moves_backwards(self):
        machine = ContestPhaseMachine()
        machine.advance(30)
        # a clock that jumps back must not reopen voting
        assert machine.advance(500) is ContestPhase.CLOSING

        machine.end()
        assert machine.advance(500) is ContestPhase.CLOSED

    def test_explicit_end_from_open(self):
        machine = ContestPhaseMachine()
        assert machine.end() is ContestPhase.CLOSED

    def test_resume_from_stored_value(self):
        machine = ContestPhaseMachine("closing")
        assert machine.phase is ContestPhase.CLOSING
        assert machine.advance(300) is ContestPhase.CLOSING

    def test_repr(self):
        assert repr(ContestPhaseMachine()) == "ContestPhaseMachine(phase='open')"
