"""
Tests for the pari-mutuel odds calculator
Run with: pytest backend/tests/test_odds.py -v
"""

import math

import pytest

from arena.engine.odds import (
    OddsConfig,
    calculate_odds,
    distribution,
    potential_payout,
    side_odds,
)

CONFIG = OddsConfig()


class TestEmptyPool:
    def test_seed_odds_for_both_sides(self):
        quote = calculate_odds(0, 0, CONFIG)
        assert quote.odds_a == 1.5
        assert quote.odds_b == 1.5

    def test_seed_is_configurable(self):
        quote = calculate_odds(0, 0, OddsConfig(seed_odds=1.8))
        assert quote.odds_a == quote.odds_b == 1.8

    def test_seed_below_floor_is_floored(self):
        quote = calculate_odds(0, 0, OddsConfig(seed_odds=1.0, min_odds=1.1))
        assert quote.odds_a == 1.1

    def test_distribution_is_zero(self):
        assert distribution(0, 0) == (0.0, 0.0)


class TestPoolOdds:
    def test_reference_scenario(self):
        # 100 on A, 200 on B: A pays (300/100)*0.9, B pays (300/200)*0.9
        quote = calculate_odds(100, 200, CONFIG)
        assert quote.odds_a == pytest.approx(2.7)
        assert quote.odds_b == pytest.approx(1.35)

    def test_balanced_pool(self):
        quote = calculate_odds(500, 500, CONFIG)
        assert quote.odds_a == pytest.approx(1.8)
        assert quote.odds_b == pytest.approx(1.8)

    def test_heavy_favourite_hits_floor(self):
        quote = calculate_odds(990, 10, CONFIG)
        assert quote.odds_a == 1.1
        assert quote.odds_b == pytest.approx(90.0)

    def test_empty_side_is_large_but_finite(self):
        quote = calculate_odds(100, 0, CONFIG)
        assert quote.odds_a == 1.1
        assert quote.odds_b == pytest.approx(90.0)
        assert math.isfinite(quote.odds_b)

    def test_epsilon_bounds_small_sides(self):
        # below epsilon the divisor is epsilon
        assert side_odds(0.5, 100, CONFIG) == pytest.approx(90.0)

    def test_max_odds_cap(self):
        quote = calculate_odds(100, 0, OddsConfig(max_odds=5.0))
        assert quote.odds_b == 5.0

    @pytest.mark.parametrize("total_a, total_b", [
        (100, 200),
        (250, 250),
        (40, 960),
        (3, 7),
        (12.5, 87.5),
    ])
    def test_odds_times_stake_equals_edged_pool(self, total_a, total_b):
        quote = calculate_odds(total_a, total_b, CONFIG)
        total = total_a + total_b
        for odds, side_total in ((quote.odds_a, total_a), (quote.odds_b, total_b)):
            if odds > CONFIG.min_odds:
                assert odds * side_total == pytest.approx(total * CONFIG.house_edge)
            else:
                assert side_total * CONFIG.min_odds >= total * CONFIG.house_edge - 1e-9

    def test_never_below_floor(self):
        for a in (1, 10, 100, 1000):
            for b in (0, 1, 10, 100, 1000):
                quote = calculate_odds(a, b, CONFIG)
                assert quote.odds_a >= 1.1
                assert quote.odds_b >= 1.1

    def test_for_side(self):
        quote = calculate_odds(100, 200, CONFIG)
        assert quote.for_side("a") == quote.odds_a
        assert quote.for_side("b") == quote.odds_b
        with pytest.raises(ValueError):
            quote.for_side("c")

    @pytest.mark.parametrize("total_a, total_b", [(-1, 10), (10, float("nan")), (float("inf"), 1)])
    def test_rejects_bad_totals(self, total_a, total_b):
        with pytest.raises(ValueError):
            calculate_odds(total_a, total_b, CONFIG)


class TestDistributionAndPayout:
    def test_distribution(self):
        dist_a, dist_b = distribution(100, 300)
        assert dist_a == pytest.approx(25.0)
        assert dist_b == pytest.approx(75.0)

    def test_potential_payout(self):
        assert potential_payout(100, 1.5) == 150.0


class TestConfig:
    @pytest.mark.parametrize("kwargs", [
        {"house_edge": 0},
        {"house_edge": 1.2},
        {"min_odds": 0.9},
        {"epsilon": 0},
        {"min_odds": 2.0, "max_odds": 1.5},
    ])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ValueError):
            OddsConfig(**kwargs)

    def test_from_settings(self):
        class _Settings:
            HOUSE_EDGE = 0.8
            MIN_ODDS = 1.2
            SEED_ODDS = 2.0
            ODDS_EPSILON = 0.5
            MAX_ODDS = None

        config = OddsConfig.from_settings(_Settings)
        assert config.house_edge == 0.8
        assert config.min_odds == 1.2
        assert config.seed_odds == 2.0
        assert config.epsilon == 0.5
