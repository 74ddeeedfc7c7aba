from __future__ import annotations

import os

os.environ["ENVIRONMENT"] = "development"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("REDIS_URL", None)

from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy.pool import StaticPool

from arena.core.database import create_engine_for_url, create_session_factory, init_db
from arena.core.timeutils import utcnow
from arena.models.contest import Contest, Contestant, WagerPool
from arena.models.wallet import TransactionType, VirtualWallet
from arena.services.contest_clock import ContestClock
from arena.services.ledger import WalletLedger


class FixedClock(ContestClock):
    """Reports the same remaining time for every contest."""

    def __init__(self, remaining_seconds: float, ended: bool = False):
        self.remaining_seconds = remaining_seconds
        self.ended = ended

    def get_remaining_seconds(self, contest: Contest) -> float:
        return self.remaining_seconds

    def is_ended(self, contest: Contest) -> bool:
        return self.ended or contest.ended_at is not None


@pytest.fixture
async def engine():
    engine = create_engine_for_url("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def contest_factory(session_factory):
    async def _create(remaining_seconds: float = 300, title: str = "Battle") -> Contest:
        now = utcnow()
        a, b = uuid4(), uuid4()
        async with session_factory() as s:
            contest = Contest(
                title=title,
                contestant_a_id=a,
                contestant_b_id=b,
                start_time=now,
                end_time=now + timedelta(seconds=remaining_seconds),
            )
            s.add(contest)
            await s.flush()
            s.add_all([
                Contestant(contest_id=contest.id, contestant_id=a, side="a", display_name="Alpha", tier=2),
                Contestant(contest_id=contest.id, contestant_id=b, side="b", display_name="Bravo", tier=1),
                WagerPool(contest_id=contest.id),
            ])
            await s.commit()
            return contest

    return _create


@pytest.fixture
def fund(session_factory):
    async def _fund(user_id: UUID, amount: float) -> None:
        async with session_factory() as s:
            await WalletLedger(s).credit(
                user_id, amount, transaction_type=TransactionType.INITIAL_DEPOSIT
            )
            await s.commit()

    return _fund


@pytest.fixture
def balance_of(session_factory):
    async def _balance(user_id: UUID) -> float:
        async with session_factory() as s:
            wallet = await s.get(VirtualWallet, user_id)
            return wallet.balance if wallet else 0.0

    return _balance


@pytest.fixture
def fixed_clock():
    return FixedClock
