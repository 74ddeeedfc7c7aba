"""
Contest phase state machine: open -> closing -> closed.

The machine has no clock of its own. Callers feed it the remaining seconds
(and the explicit end signal) and it only ever moves forward.
"""

from enum import Enum


class ContestPhase(str, Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER = [ContestPhase.OPEN, ContestPhase.CLOSING, ContestPhase.CLOSED]

DEFAULT_CLOSING_WINDOW = 60


def phase_for(
    remaining_seconds: float,
    ended: bool = False,
    closing_window: float = DEFAULT_CLOSING_WINDOW,
) -> ContestPhase:
    """Phase implied by the remaining time alone."""
    if ended or remaining_seconds <= 0:
        return ContestPhase.CLOSED
    if remaining_seconds <= closing_window:
        return ContestPhase.CLOSING
    return ContestPhase.OPEN


class ContestPhaseMachine:
    """Monotonic phase tracker for a single contest."""

    def __init__(
        self,
        initial: ContestPhase | str = ContestPhase.OPEN,
        closing_window: float = DEFAULT_CLOSING_WINDOW,
    ):
        self.phase = ContestPhase(initial)
        self.closing_window = closing_window

    def advance(self, remaining_seconds: float, ended: bool = False) -> ContestPhase:
        candidate = phase_for(remaining_seconds, ended, self.closing_window)
        if candidate.rank > self.phase.rank:
            self.phase = candidate
        return self.phase

    def end(self) -> ContestPhase:
        self.phase = ContestPhase.CLOSED
        return self.phase

    @property
    def accepts_wagers(self) -> bool:
        return self.phase is ContestPhase.OPEN

    @property
    def settlement_eligible(self) -> bool:
        return self.phase is ContestPhase.CLOSED

    def __repr__(self) -> str:
        return f"ContestPhaseMachine(phase={self.phase.value!r})"
