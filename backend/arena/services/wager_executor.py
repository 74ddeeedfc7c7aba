"""
Wager Execution Service

Quotes live odds and places wagers. Placement for a contest is serialised
(per-contest lock + row lock on the pool) and runs as one database
transaction: read pool -> validate -> freeze odds -> debit -> append wager
-> update pool totals. Any failure rolls the whole thing back.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, List
from uuid import UUID, uuid4
import json
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis
from redis.exceptions import RedisError

from arena.core.config import settings
from arena.core.locks import contest_lock
from arena.core.redis import get_redis_client, odds_cache_key, odds_channel
from arena.core.timeutils import utcnow
from arena.engine.errors import (
    ContestNotFoundError,
    DuplicateWagerError,
    EngineResult,
    LedgerUnavailableError,
    WagerError,
)
from arena.engine.odds import OddsConfig, calculate_odds, distribution, potential_payout
from arena.engine.phase import ContestPhase
from arena.engine.validation import validate_wager
from arena.models.contest import Contest, WagerPool
from arena.models.wager import Confidence, Wager
from arena.services.contest_clock import ContestClock, ScheduleClock, sync_phase
from arena.services.ledger import BalanceLedger, WalletLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OddsSnapshot:
    contest_id: UUID
    contestant_a_id: UUID
    contestant_b_id: UUID
    odds_a: float
    odds_b: float
    distribution_a: float
    distribution_b: float
    total_for_a: float
    total_for_b: float
    total_pool: float
    participant_count: int
    phase: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("contest_id", "contestant_a_id", "contestant_b_id"):
            data[key] = str(data[key])
        return data


def confidence_level(value) -> Optional[str]:
    """Stored confidence label; unknown labels are dropped, they never block a wager."""
    if value is None:
        return None
    try:
        return Confidence(value).value
    except ValueError:
        logger.warning(f"Ignoring unknown confidence level {value!r}")
        return None


def build_snapshot(
    contest: Contest, pool: WagerPool, phase: ContestPhase, config: OddsConfig
) -> OddsSnapshot:
    quote = calculate_odds(pool.total_for_a, pool.total_for_b, config)
    dist_a, dist_b = distribution(pool.total_for_a, pool.total_for_b)
    return OddsSnapshot(
        contest_id=contest.id,
        contestant_a_id=contest.contestant_a_id,
        contestant_b_id=contest.contestant_b_id,
        odds_a=quote.odds_a,
        odds_b=quote.odds_b,
        distribution_a=dist_a,
        distribution_b=dist_b,
        total_for_a=pool.total_for_a,
        total_for_b=pool.total_for_b,
        total_pool=pool.total_pool,
        participant_count=pool.participant_count,
        phase=phase.value,
    )


class WagerExecutor:
    """
    Core placement engine for battle wagers.

    CRITICAL OPERATIONS:
    1. Serialise writers per contest
    2. Validate phase, duplicate, target, amount and balance
    3. Freeze odds quoted from the pool *before* this stake
    4. Debit + wager + pool update in one transaction
    5. Publish the new odds to Redis for live viewers
    """

    def __init__(
        self,
        db: AsyncSession,
        redis: Optional[Redis] = None,
        ledger: Optional[BalanceLedger] = None,
        clock: Optional[ContestClock] = None,
        odds_config: Optional[OddsConfig] = None,
    ):
        self.db = db
        self.redis = redis
        self.ledger = ledger or WalletLedger(db)
        self.clock = clock or ScheduleClock()
        self.odds_config = odds_config or OddsConfig.from_settings(settings)

    async def get_odds(self, contest_id: UUID) -> EngineResult[OddsSnapshot]:
        try:
            contest = await self._get_contest(contest_id)
            pool = await self._get_pool(contest_id)
        except WagerError as e:
            return EngineResult.failure(e)
        except SQLAlchemyError as e:
            return await self._storage_failure("get_odds", contest_id, e)

        phase = sync_phase(contest, self.clock, settings.CLOSING_WINDOW_SECONDS)
        return EngineResult.success(build_snapshot(contest, pool, phase, self.odds_config))

    async def place_wager(
        self,
        contest_id: UUID,
        user_id: UUID,
        contestant_id: UUID,
        amount: float,
        confidence: Optional[str] = None,
    ) -> EngineResult[Wager]:
        try:
            async with contest_lock(contest_id):
                wager, snapshot = await self._execute_placement(
                    contest_id, user_id, contestant_id, amount, confidence
                )
        except WagerError as e:
            await self.db.rollback()
            logger.info(
                f"Wager rejected ({e.kind.value}) contest={contest_id} user={user_id}: {e.message}"
            )
            return EngineResult.failure(e)
        except SQLAlchemyError as e:
            return await self._storage_failure("place_wager", contest_id, e)

        logger.info(
            f"Wager {wager.id} accepted: contest={contest_id} user={user_id} "
            f"amount={wager.amount} odds={wager.odds_at_placement:.4f}"
        )
        await self._publish_odds(snapshot)
        return EngineResult.success(wager)

    async def _execute_placement(
        self,
        contest_id: UUID,
        user_id: UUID,
        contestant_id: UUID,
        amount: float,
        confidence: Optional[str],
    ) -> tuple[Wager, OddsSnapshot]:
        level = confidence_level(confidence)
        contest = await self._get_contest(contest_id)
        phase = sync_phase(contest, self.clock, settings.CLOSING_WINDOW_SECONDS)

        # Row lock on the pool: totals are read-modify-write
        pool = await self._get_pool(contest_id, lock=True)
        existing = await self._get_user_wagers(contest_id, user_id)
        balance = await self.ledger.get_balance(user_id)

        validate_wager(
            balance=balance,
            contestant_id=contestant_id,
            valid_contestants=(contest.contestant_a_id, contest.contestant_b_id),
            amount=amount,
            phase=phase,
            existing_wagers=existing,
        )

        side = contest.side_of(contestant_id)
        odds = calculate_odds(pool.total_for_a, pool.total_for_b, self.odds_config).for_side(side)

        wager = Wager(
            id=uuid4(),
            contest_id=contest_id,
            user_id=user_id,
            contestant_id=contestant_id,
            amount=amount,
            odds_at_placement=odds,
            potential_payout=potential_payout(amount, odds),
            confidence=level,
        )

        await self.ledger.debit(
            user_id,
            amount,
            reference_id=wager.id,
            description=f"Wager on contest {contest_id}",
        )
        self.db.add(wager)

        if side == "a":
            pool.total_for_a += amount
        else:
            pool.total_for_b += amount
        pool.participant_count += 1
        pool.updated_at = utcnow()

        try:
            await self.db.commit()
        except IntegrityError as e:
            # (contest_id, user_id) is unique; a concurrent request got there first
            raise DuplicateWagerError("You already have a wager in this contest") from e
        except SQLAlchemyError as e:
            logger.error(f"Wager commit failed for contest {contest_id}: {e}")
            raise LedgerUnavailableError("Could not record wager. Please retry.") from e

        return wager, build_snapshot(contest, pool, phase, self.odds_config)

    async def _storage_failure(
        self, operation: str, contest_id: UUID, exc: SQLAlchemyError
    ) -> EngineResult:
        """Database errors outside the ledger surface as LedgerUnavailable."""
        logger.error(f"{operation} for contest {contest_id} hit a database error: {exc}")
        try:
            await self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after {operation} failed: {rollback_error}")
        return EngineResult.failure(
            LedgerUnavailableError("Wager store temporarily unavailable. Please retry.")
        )

    async def _get_contest(self, contest_id: UUID) -> Contest:
        contest = await self.db.get(Contest, contest_id)
        if not contest:
            raise ContestNotFoundError(f"Contest not found: {contest_id}")
        return contest

    async def _get_pool(self, contest_id: UUID, lock: bool = False) -> WagerPool:
        stmt = select(WagerPool).where(WagerPool.contest_id == contest_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        pool = result.scalar_one_or_none()
        if not pool:
            raise ContestNotFoundError(f"Wager pool missing for contest {contest_id}")
        return pool

    async def _get_user_wagers(self, contest_id: UUID, user_id: UUID) -> List[Wager]:
        stmt = select(Wager).where(Wager.contest_id == contest_id, Wager.user_id == user_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _publish_odds(self, snapshot: OddsSnapshot) -> None:
        """Cache the latest odds and fan them out to live viewers. Best effort."""
        if self.redis is None:
            return
        payload = json.dumps(snapshot.to_dict())
        try:
            await self.redis.set(
                odds_cache_key(snapshot.contest_id),
                payload,
                ex=settings.ODDS_CACHE_TTL_SECONDS,
            )
            await self.redis.publish(odds_channel(snapshot.contest_id), payload)
        except RedisError as e:
            logger.warning(f"Odds publish failed for contest {snapshot.contest_id}: {e}")


# Dependency injection helper
def get_wager_executor(db: AsyncSession, redis: Optional[Redis] = None) -> WagerExecutor:
    if redis is None:
        redis = get_redis_client()
    return WagerExecutor(db, redis)
