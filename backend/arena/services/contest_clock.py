"""
Contest Clock

Source of "time remaining" and "has ended" for a contest. The engine never
reads a wall clock directly; it asks one of these.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from arena.core.timeutils import as_utc, utcnow
from arena.engine.phase import ContestPhase, ContestPhaseMachine
from arena.models.contest import Contest


class ContestClock(ABC):
    @abstractmethod
    def get_remaining_seconds(self, contest: Contest) -> float:
        ...

    @abstractmethod
    def is_ended(self, contest: Contest) -> bool:
        ...


class ScheduleClock(ContestClock):
    """Derives remaining time from the contest's scheduled end_time."""

    def __init__(self, now: Callable[[], datetime] = utcnow):
        self._now = now

    def get_remaining_seconds(self, contest: Contest) -> float:
        if contest.ended_at is not None:
            return 0.0
        return max(0.0, (as_utc(contest.end_time) - as_utc(self._now())).total_seconds())

    def is_ended(self, contest: Contest) -> bool:
        return contest.ended_at is not None or contest.resolution is not None


def sync_phase(contest: Contest, clock: ContestClock, closing_window: float) -> ContestPhase:
    """Advance the contest's stored phase from the clock. Never moves it backwards."""
    machine = ContestPhaseMachine(contest.phase, closing_window=closing_window)
    phase = machine.advance(clock.get_remaining_seconds(contest), clock.is_ended(contest))
    if phase.value != contest.phase:
        contest.phase = phase.value
        contest.updated_at = utcnow()
    return phase
