"""
Contest Stats Service

Voting analytics for a contest: pool size, participation, average stake,
and the house position under each possible outcome.
"""

from typing import List, Dict, Any, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.timeutils import utcnow
from arena.engine.odds import distribution
from arena.models.contest import Contest, WagerPool
from arena.models.wager import Wager

logger = logging.getLogger(__name__)


class ContestStatsCalculator:
    """
    Snapshot of a contest's wagering activity.

    Exposure for side X is what the house pays if X wins: the sum of frozen
    potential payouts on X. House net for X winning is the pool minus that.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self, contest_id: UUID) -> Optional[Dict[str, Any]]:
        contest = await self.db.get(Contest, contest_id)
        if not contest:
            return None

        pool = await self._get_pool(contest_id)
        wagers = await self._get_wagers(contest_id)

        total_for_a = pool.total_for_a if pool else 0.0
        total_for_b = pool.total_for_b if pool else 0.0
        total_pool = total_for_a + total_for_b
        dist_a, dist_b = distribution(total_for_a, total_for_b)

        exposure_a = sum(w.potential_payout for w in wagers if w.contestant_id == contest.contestant_a_id)
        exposure_b = sum(w.potential_payout for w in wagers if w.contestant_id == contest.contestant_b_id)

        status_counts: Dict[str, int] = {}
        for w in wagers:
            status_counts[w.status] = status_counts.get(w.status, 0) + 1

        amounts = [w.amount for w in wagers]
        confidence_counts: Dict[str, int] = {}
        for w in wagers:
            if w.confidence:
                confidence_counts[w.confidence] = confidence_counts.get(w.confidence, 0) + 1

        return {
            "contest_id": str(contest_id),
            "phase": contest.phase,
            "resolution": contest.resolution,
            "total_pool": total_pool,
            "total_for_a": total_for_a,
            "total_for_b": total_for_b,
            "distribution_a": round(dist_a, 2),
            "distribution_b": round(dist_b, 2),
            "participant_count": pool.participant_count if pool else 0,
            "average_wager": round(total_pool / len(amounts), 2) if amounts else 0.0,
            "largest_wager": max(amounts) if amounts else 0.0,
            "exposure_a": exposure_a,
            "exposure_b": exposure_b,
            "house_net_if_a_wins": total_pool - exposure_a,
            "house_net_if_b_wins": total_pool - exposure_b,
            "total_paid": sum(w.actual_payout for w in wagers),
            "status_counts": status_counts,
            "confidence_counts": confidence_counts,
            "updated_at": utcnow().isoformat(),
        }

    async def _get_pool(self, contest_id: UUID) -> Optional[WagerPool]:
        stmt = select(WagerPool).where(WagerPool.contest_id == contest_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_wagers(self, contest_id: UUID) -> List[Wager]:
        stmt = select(Wager).where(Wager.contest_id == contest_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
