"""
Wager admission rules.

Checks run in a fixed order: phase, duplicate, target, amount, balance.
The first failing rule wins, so a user who already holds a wager in an open
contest is told so no matter what amount or target they send.
"""

import math
from typing import Iterable, Sequence
from uuid import UUID

from arena.engine.errors import (
    DuplicateWagerError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidTargetError,
    VotingClosedError,
)
from arena.engine.phase import ContestPhase


def validate_wager(
    *,
    balance: float,
    contestant_id: UUID,
    valid_contestants: Sequence[UUID],
    amount: float,
    phase: ContestPhase,
    existing_wagers: Iterable,
) -> None:
    """Raise the WagerError describing why a placement is inadmissible."""
    if phase is not ContestPhase.OPEN:
        raise VotingClosedError(f"Voting is {phase.value}; new wagers are not accepted")

    # one wager per user per contest, whatever its status
    if any(True for _ in existing_wagers):
        raise DuplicateWagerError("You already have a wager in this contest")

    if contestant_id not in valid_contestants:
        raise InvalidTargetError(f"Contestant {contestant_id} is not part of this contest")

    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError(f"Amount must be a number, got {amount!r}")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError("Amount must be a positive, finite number")

    if amount > balance:
        raise InsufficientBalanceError(
            f"Insufficient balance. Required: {amount:.2f} SP, Available: {balance:.2f} SP"
        )
