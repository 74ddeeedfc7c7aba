"""
Settlement rules: from a contest outcome to each wager's final status and payout.

Pure functions; crediting balances and persisting statuses is the settlement
service's job.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

WON = "won"
LOST = "lost"
REFUNDED = "refunded"


@dataclass(frozen=True)
class Outcome:
    kind: str                       # "winner", "tie" or "cancelled"
    winner_id: Optional[UUID] = None

    @classmethod
    def winner(cls, contestant_id: UUID) -> "Outcome":
        return cls(kind="winner", winner_id=contestant_id)

    @classmethod
    def tie(cls) -> "Outcome":
        return cls(kind="tie")

    @classmethod
    def cancelled(cls) -> "Outcome":
        return cls(kind="cancelled")

    @property
    def refunds_everyone(self) -> bool:
        return self.kind in ("tie", "cancelled")


@dataclass(frozen=True)
class WagerResolution:
    status: str
    payout: float


def outcome_from_scores(
    contestant_a_id: UUID, score_a: float, contestant_b_id: UUID, score_b: float
) -> Outcome:
    """Higher final score wins; equal scores are a tie."""
    if score_a > score_b:
        return Outcome.winner(contestant_a_id)
    if score_b > score_a:
        return Outcome.winner(contestant_b_id)
    return Outcome.tie()


def resolve_wager(
    contestant_id: UUID, amount: float, odds_at_placement: float, outcome: Outcome
) -> WagerResolution:
    if outcome.refunds_everyone:
        return WagerResolution(status=REFUNDED, payout=amount)
    if contestant_id == outcome.winner_id:
        return WagerResolution(status=WON, payout=amount * odds_at_placement)
    return WagerResolution(status=LOST, payout=0.0)
