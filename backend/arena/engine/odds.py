"""Pari-mutuel odds for a two-sided battle pool.

Every function here is **pure**: no I/O, no logging, no side effects.

For side X of a pool with totals ``A`` and ``B``::

    odds_X = (A + B) / max(total_X, epsilon) * house_edge

floored at ``min_odds`` (and capped at ``max_odds`` when one is configured).
An empty pool returns ``seed_odds`` for both sides, i.e. the pool is treated
as an even split until the first stake arrives.

Odds quoted here are what a *new* wager would lock in. A placed wager keeps
the odds it was quoted; nothing in this module is ever applied retroactively.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OddsConfig:
    house_edge: float = 0.9
    min_odds: float = 1.1
    seed_odds: float = 1.5
    epsilon: float = 1.0
    max_odds: Optional[float] = None

    def __post_init__(self) -> None:
        if not 0 < self.house_edge <= 1:
            raise ValueError(f"house_edge must be in (0, 1], got {self.house_edge!r}")
        if self.min_odds < 1.0:
            raise ValueError(f"min_odds must be >= 1.0, got {self.min_odds!r}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon!r}")
        if self.max_odds is not None and self.max_odds < self.min_odds:
            raise ValueError("max_odds must not be below min_odds")

    @classmethod
    def from_settings(cls, settings) -> "OddsConfig":
        return cls(
            house_edge=settings.HOUSE_EDGE,
            min_odds=settings.MIN_ODDS,
            seed_odds=settings.SEED_ODDS,
            epsilon=settings.ODDS_EPSILON,
            max_odds=settings.MAX_ODDS,
        )


@dataclass(frozen=True)
class OddsQuote:
    odds_a: float
    odds_b: float

    def for_side(self, side: str) -> float:
        if side == "a":
            return self.odds_a
        if side == "b":
            return self.odds_b
        raise ValueError(f"Unknown side {side!r}")


def _clamp(odds: float, config: OddsConfig) -> float:
    odds = max(config.min_odds, odds)
    if config.max_odds is not None:
        odds = min(config.max_odds, odds)
    return odds


def side_odds(side_total: float, total_pool: float, config: OddsConfig) -> float:
    """Multiplier for one side of a non-empty pool."""
    raw = total_pool / max(side_total, config.epsilon) * config.house_edge
    return _clamp(raw, config)


def calculate_odds(total_for_a: float, total_for_b: float, config: OddsConfig) -> OddsQuote:
    """Live odds for both sides.

    Raises:
        ValueError: if either total is negative or not finite.
    """
    for total in (total_for_a, total_for_b):
        if not math.isfinite(total) or total < 0:
            raise ValueError(f"Pool totals must be finite and non-negative, got {total!r}")

    total_pool = total_for_a + total_for_b
    if total_pool == 0:
        seed = _clamp(config.seed_odds, config)
        return OddsQuote(odds_a=seed, odds_b=seed)

    return OddsQuote(
        odds_a=side_odds(total_for_a, total_pool, config),
        odds_b=side_odds(total_for_b, total_pool, config),
    )


def distribution(total_for_a: float, total_for_b: float) -> tuple[float, float]:
    """Percentage of the pool on each side; (0, 0) for an empty pool."""
    total_pool = total_for_a + total_for_b
    if total_pool <= 0:
        return 0.0, 0.0
    return total_for_a / total_pool * 100, total_for_b / total_pool * 100


def potential_payout(amount: float, odds: float) -> float:
    return amount * odds
