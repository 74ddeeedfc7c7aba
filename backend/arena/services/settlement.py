"""
Settlement Service

Ends contests, resolves every wager to won / lost / refunded and applies the
balance credits. Each wager's credit and status change commit together, and
settled wagers are skipped on re-runs, so a crash half way through is
recovered by simply calling settle again.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.locks import contest_lock
from arena.core.timeutils import utcnow
from arena.engine.errors import (
    ContestNotFoundError,
    EngineResult,
    InvalidTargetError,
    LedgerUnavailableError,
    WagerError,
)
from arena.engine.phase import ContestPhaseMachine
from arena.engine.settlement import (
    REFUNDED,
    Outcome,
    outcome_from_scores,
    resolve_wager,
)
from arena.models.contest import Contest, Contestant
from arena.models.wager import Wager, WagerStatus
from arena.models.wallet import TransactionType
from arena.services.ledger import BalanceLedger, WalletLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettledWager:
    wager_id: UUID
    user_id: UUID
    contestant_id: UUID
    amount: float
    odds_at_placement: float
    status: str
    payout: float


@dataclass
class SettlementReport:
    contest_id: UUID
    resolution: str
    winner_id: Optional[UUID]
    settled_at: Optional[datetime]
    already_settled: bool = False
    wagers: List[SettledWager] = field(default_factory=list)

    @property
    def total_paid(self) -> float:
        return sum(w.payout for w in self.wagers)


class SettlementService:
    def __init__(
        self,
        db: AsyncSession,
        ledger: Optional[BalanceLedger] = None,
    ):
        self.db = db
        self.ledger = ledger or WalletLedger(db)

    async def end_contest(self, contest_id: UUID) -> EngineResult[Contest]:
        """Explicit end signal: closes voting now, whatever the clock says."""
        try:
            async with contest_lock(contest_id):
                contest = await self._get_contest(contest_id)
                self._mark_ended(contest)
                await self._commit()
        except WagerError as e:
            await self.db.rollback()
            return EngineResult.failure(e)
        except SQLAlchemyError as e:
            return await self._storage_failure("end_contest", contest_id, e)

        logger.info(f"Contest {contest_id} ended")
        return EngineResult.success(contest)

    async def settle_contest(
        self,
        contest_id: UUID,
        winner_id: Optional[UUID] = None,
        tie: bool = False,
    ) -> EngineResult[SettlementReport]:
        """
        Resolve all wagers of a contest.

        - winner_id: explicit winner
        - tie=True: explicit tie, everyone refunded
        - neither: winner derived from the contestants' final scores

        A contest that is already settled is a no-op: the existing statuses
        come back with already_settled=True and nobody is credited twice.
        """
        try:
            async with contest_lock(contest_id):
                report = await self._settle(contest_id, winner_id, tie, cancel=False)
        except WagerError as e:
            await self.db.rollback()
            logger.error(f"Settlement of contest {contest_id} failed ({e.kind.value}): {e.message}")
            return EngineResult.failure(e)
        except SQLAlchemyError as e:
            return await self._storage_failure("settle_contest", contest_id, e)
        return EngineResult.success(report)

    async def cancel_contest(self, contest_id: UUID) -> EngineResult[SettlementReport]:
        """Cancel before resolution: every active wager is refunded."""
        try:
            async with contest_lock(contest_id):
                report = await self._settle(contest_id, None, False, cancel=True)
        except WagerError as e:
            await self.db.rollback()
            logger.error(f"Cancellation of contest {contest_id} failed ({e.kind.value}): {e.message}")
            return EngineResult.failure(e)
        except SQLAlchemyError as e:
            return await self._storage_failure("cancel_contest", contest_id, e)
        return EngineResult.success(report)

    async def _storage_failure(
        self, operation: str, contest_id: UUID, exc: SQLAlchemyError
    ) -> EngineResult:
        logger.error(f"{operation} for contest {contest_id} hit a database error: {exc}")
        try:
            await self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after {operation} failed: {rollback_error}")
        return EngineResult.failure(
            LedgerUnavailableError("Settlement store temporarily unavailable. Please retry.")
        )

    async def _settle(
        self,
        contest_id: UUID,
        winner_id: Optional[UUID],
        tie: bool,
        cancel: bool,
    ) -> SettlementReport:
        contest = await self._get_contest(contest_id)

        if contest.settled_at is not None:
            logger.info(f"Contest {contest_id} already settled ({contest.resolution}); no-op")
            return await self._existing_report(contest)

        outcome = await self._fix_outcome(contest, winner_id, tie, cancel)

        for wager in await self._active_wagers(contest_id):
            await self._settle_wager(wager, outcome)

        contest.settled_at = utcnow()
        contest.updated_at = contest.settled_at
        await self._commit()

        report = await self._existing_report(contest, already_settled=False)
        logger.info(
            f"Contest {contest_id} settled: resolution={contest.resolution} "
            f"winner={contest.winner_id} wagers={len(report.wagers)} paid={report.total_paid:.2f}"
        )
        return report

    async def _fix_outcome(
        self,
        contest: Contest,
        winner_id: Optional[UUID],
        tie: bool,
        cancel: bool,
    ) -> Outcome:
        """
        Decide the outcome once and persist it before any wager is touched.
        A resumed settlement always reuses the stored outcome.
        """
        if contest.resolution is not None:
            stored = self._stored_outcome(contest)
            if cancel or winner_id is not None or tie:
                logger.warning(
                    f"Contest {contest.id} resumes settlement with stored outcome "
                    f"{contest.resolution}; new arguments ignored"
                )
            return stored

        if cancel:
            outcome = Outcome.cancelled()
        elif winner_id is not None and tie:
            raise InvalidTargetError("Pass either a winner or a tie, not both")
        elif tie:
            outcome = Outcome.tie()
        elif winner_id is not None:
            if contest.side_of(winner_id) is None:
                raise InvalidTargetError(f"Contestant {winner_id} is not part of this contest")
            outcome = Outcome.winner(winner_id)
        else:
            outcome = await self._outcome_from_scores(contest)

        self._mark_ended(contest)
        contest.resolution = outcome.kind
        contest.winner_id = outcome.winner_id
        await self._commit()
        return outcome

    async def _settle_wager(self, wager: Wager, outcome: Outcome) -> None:
        resolution = resolve_wager(
            wager.contestant_id, wager.amount, wager.odds_at_placement, outcome
        )

        if resolution.payout > 0:
            transaction_type = (
                TransactionType.WAGER_REFUND
                if resolution.status == REFUNDED
                else TransactionType.WAGER_PAYOUT
            )
            await self.ledger.credit(
                wager.user_id,
                resolution.payout,
                transaction_type=transaction_type,
                reference_id=wager.id,
                description=f"Contest {wager.contest_id} {resolution.status}",
            )

        wager.status = resolution.status
        wager.actual_payout = resolution.payout
        wager.processed_at = utcnow()
        # Credit and status commit together; a crash leaves the wager active
        await self._commit()

    async def _outcome_from_scores(self, contest: Contest) -> Outcome:
        result = await self.db.execute(
            select(Contestant).where(Contestant.contest_id == contest.id)
        )
        scores = {c.contestant_id: c.current_score for c in result.scalars().all()}
        return outcome_from_scores(
            contest.contestant_a_id,
            scores.get(contest.contestant_a_id, 0.0),
            contest.contestant_b_id,
            scores.get(contest.contestant_b_id, 0.0),
        )

    @staticmethod
    def _stored_outcome(contest: Contest) -> Outcome:
        if contest.resolution == "winner":
            return Outcome.winner(contest.winner_id)
        if contest.resolution == "tie":
            return Outcome.tie()
        return Outcome.cancelled()

    @staticmethod
    def _mark_ended(contest: Contest) -> None:
        if contest.ended_at is None:
            contest.ended_at = utcnow()
        contest.phase = ContestPhaseMachine(contest.phase).end().value
        contest.updated_at = utcnow()

    async def _existing_report(
        self, contest: Contest, already_settled: bool = True
    ) -> SettlementReport:
        result = await self.db.execute(
            select(Wager).where(Wager.contest_id == contest.id).order_by(Wager.created_at)
        )
        wagers = [
            SettledWager(
                wager_id=w.id,
                user_id=w.user_id,
                contestant_id=w.contestant_id,
                amount=w.amount,
                odds_at_placement=w.odds_at_placement,
                status=w.status,
                payout=w.actual_payout,
            )
            for w in result.scalars().all()
        ]
        return SettlementReport(
            contest_id=contest.id,
            resolution=contest.resolution,
            winner_id=contest.winner_id,
            settled_at=contest.settled_at,
            already_settled=already_settled,
            wagers=wagers,
        )

    async def _get_contest(self, contest_id: UUID) -> Contest:
        contest = await self.db.get(Contest, contest_id)
        if not contest:
            raise ContestNotFoundError(f"Contest not found: {contest_id}")
        return contest

    async def _active_wagers(self, contest_id: UUID) -> List[Wager]:
        result = await self.db.execute(
            select(Wager)
            .where(Wager.contest_id == contest_id, Wager.status == WagerStatus.ACTIVE.value)
            .order_by(Wager.created_at)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Settlement commit failed: {e}")
            raise LedgerUnavailableError("Could not record settlement. Please retry.") from e


def get_settlement_service(db: AsyncSession) -> SettlementService:
    return SettlementService(db)
