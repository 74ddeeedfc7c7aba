"""
Tests for contest timing: aware timestamps and remaining time
Run with: pytest backend/tests/test_contest_clock.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from arena.core.timeutils import as_utc, utcnow
from arena.models.contest import Contest, WagerPool
from arena.models.wager import Wager
from arena.models.wallet import VirtualWallet, WalletTransaction
from arena.services.contest_clock import ScheduleClock

NOW = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)


def _contest(end_time, ended_at=None):
    return Contest(
        title="Clock",
        start_time=NOW - timedelta(minutes=5),
        end_time=end_time,
        ended_at=ended_at,
    )


class TestTimestamps:
    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None
        assert utcnow().utcoffset() == timedelta(0)

    def test_naive_values_are_read_as_utc(self):
        assert as_utc(datetime(2026, 3, 1, 20, 0)) == NOW

    def test_offsets_are_normalised(self):
        paris = timezone(timedelta(hours=1))
        assert as_utc(datetime(2026, 3, 1, 21, 0, tzinfo=paris)) == NOW

    @pytest.mark.parametrize(
        "column",
        [
            Contest.__table__.c.end_time,
            Contest.__table__.c.settled_at,
            WagerPool.__table__.c.updated_at,
            Wager.__table__.c.created_at,
            VirtualWallet.__table__.c.updated_at,
            WalletTransaction.__table__.c.created_at,
        ],
    )
    def test_columns_store_timezone(self, column):
        assert column.type.timezone is True


class TestScheduleClock:
    @pytest.mark.parametrize(
        "end_time",
        [NOW + timedelta(seconds=90), (NOW + timedelta(seconds=90)).replace(tzinfo=None)],
    )
    def test_remaining_with_aware_or_naive_end(self, end_time):
        clock = ScheduleClock(now=lambda: NOW)
        assert clock.get_remaining_seconds(_contest(end_time)) == 90

    def test_never_negative(self):
        clock = ScheduleClock(now=lambda: NOW)
        assert clock.get_remaining_seconds(_contest(NOW - timedelta(seconds=5))) == 0

    def test_ended_contest_has_no_time_left(self):
        clock = ScheduleClock(now=lambda: NOW)
        contest = _contest(NOW + timedelta(minutes=5), ended_at=NOW)
        assert clock.get_remaining_seconds(contest) == 0
        assert clock.is_ended(contest)

    @pytest.mark.asyncio
    async def test_stored_contest_round_trips(self, session_factory, contest_factory):
        contest = await contest_factory(remaining_seconds=300)

        async with session_factory() as s:
            stored = await s.get(Contest, contest.id)

        remaining = ScheduleClock().get_remaining_seconds(stored)
        assert 290 < remaining <= 300
