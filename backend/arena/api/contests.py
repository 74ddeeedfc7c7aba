"""
Contest API routes
Contest lifecycle, live odds, wager placement and settlement.
"""

from datetime import timedelta
from typing import Any, Dict, List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.api.errors import http_error
from arena.core.config import settings
from arena.core.database import get_session
from arena.core.dependencies import get_current_user_id, require_admin
from arena.core.security import limiter
from arena.core.timeutils import utcnow
from arena.engine.errors import ErrorKind
from arena.engine.phase import ContestPhase
from arena.models.contest import (
    Contest,
    ContestCreate,
    ContestResponse,
    Contestant,
    ContestantResponse,
    ScoreUpdate,
    SettleRequest,
    WagerPool,
)
from arena.models.wager import Wager, WagerCreate, WagerResponse
from arena.services.contest_clock import ScheduleClock, sync_phase
from arena.services.contest_stats import ContestStatsCalculator
from arena.services.settlement import SettlementReport, get_settlement_service
from arena.services.wager_executor import get_wager_executor

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# HELPERS
# ============================================================================

async def _load_contest(session: AsyncSession, contest_id: UUID) -> Contest:
    contest = await session.get(Contest, contest_id)
    if not contest:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": ErrorKind.CONTEST_NOT_FOUND.value, "message": "Contest not found"},
        )
    return contest


async def _contest_view(session: AsyncSession, contest: Contest) -> ContestResponse:
    clock = ScheduleClock()
    phase = sync_phase(contest, clock, settings.CLOSING_WINDOW_SECONDS)

    result = await session.execute(
        select(Contestant).where(Contestant.contest_id == contest.id).order_by(Contestant.side)
    )
    contestants = [
        ContestantResponse(
            contestant_id=c.contestant_id,
            side=c.side,
            display_name=c.display_name,
            tier=c.tier,
            current_score=c.current_score,
            win_rate=c.win_rate,
        )
        for c in result.scalars().all()
    ]
    pool = await session.get(WagerPool, contest.id)

    return ContestResponse(
        id=contest.id,
        title=contest.title,
        phase=phase.value,
        remaining_seconds=clock.get_remaining_seconds(contest),
        start_time=contest.start_time,
        end_time=contest.end_time,
        ended_at=contest.ended_at,
        resolution=contest.resolution,
        winner_id=contest.winner_id,
        settled_at=contest.settled_at,
        contestants=contestants,
        total_for_a=pool.total_for_a if pool else 0.0,
        total_for_b=pool.total_for_b if pool else 0.0,
        total_pool=pool.total_pool if pool else 0.0,
        participant_count=pool.participant_count if pool else 0,
    )


def _report_to_dict(report: SettlementReport) -> Dict[str, Any]:
    return {
        "contest_id": str(report.contest_id),
        "resolution": report.resolution,
        "winner_id": str(report.winner_id) if report.winner_id else None,
        "settled_at": report.settled_at.isoformat() if report.settled_at else None,
        "already_settled": report.already_settled,
        "notice": ErrorKind.ALREADY_SETTLED.value if report.already_settled else None,
        "total_paid": report.total_paid,
        "wagers": [
            {
                "wager_id": str(w.wager_id),
                "user_id": str(w.user_id),
                "contestant_id": str(w.contestant_id),
                "amount": w.amount,
                "odds_at_placement": w.odds_at_placement,
                "status": w.status,
                "payout": w.payout,
            }
            for w in report.wagers
        ],
    }


# ============================================================================
# CONTESTS
# ============================================================================

@router.post(
    "",
    response_model=ContestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_contest(
    contest_data: ContestCreate,
    session: AsyncSession = Depends(get_session),
):
    """Create a contest between two contestants with an empty wager pool."""
    a, b = contest_data.contestant_a, contest_data.contestant_b
    if a.contestant_id == b.contestant_id:
        raise HTTPException(status_code=400, detail="Contestants must be different")

    duration = contest_data.duration_seconds or settings.DEFAULT_CONTEST_DURATION_SECONDS
    now = utcnow()
    contest = Contest(
        title=contest_data.title,
        contestant_a_id=a.contestant_id,
        contestant_b_id=b.contestant_id,
        start_time=now,
        end_time=now + timedelta(seconds=duration),
    )
    session.add(contest)
    await session.flush()

    for side, entry in (("a", a), ("b", b)):
        session.add(Contestant(
            contest_id=contest.id,
            contestant_id=entry.contestant_id,
            side=side,
            display_name=entry.display_name,
            tier=entry.tier,
            win_rate=entry.win_rate,
        ))
    session.add(WagerPool(contest_id=contest.id))
    await session.commit()

    logger.info(f"Contest {contest.id} created: {contest.title!r}, {duration}s")
    return await _contest_view(session, contest)


@router.get("/{contest_id}", response_model=ContestResponse)
async def get_contest(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    contest = await _load_contest(session, contest_id)
    return await _contest_view(session, contest)


@router.get("/{contest_id}/odds")
async def get_odds(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    """Odds a new wager would lock in right now, plus pool distribution."""
    result = await get_wager_executor(session).get_odds(contest_id)
    if not result.ok:
        raise http_error(result.error)
    return result.value.to_dict()


@router.get("/{contest_id}/stats")
async def get_contest_stats(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    stats = await ContestStatsCalculator(session).get_stats(contest_id)
    if stats is None:
        await _load_contest(session, contest_id)
    return stats


@router.post(
    "/{contest_id}/scores",
    response_model=ContestResponse,
    dependencies=[Depends(require_admin)],
)
async def add_score(
    contest_id: UUID,
    update: ScoreUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Add points (gifts, votes) to a contestant's running score."""
    contest = await _load_contest(session, contest_id)
    phase = sync_phase(contest, ScheduleClock(), settings.CLOSING_WINDOW_SECONDS)
    if phase is ContestPhase.CLOSED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Contest has ended; scores are final"
        )

    entry = await session.get(Contestant, (contest_id, update.contestant_id))
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": ErrorKind.INVALID_TARGET.value, "message": "Unknown contestant"},
        )
    entry.current_score += update.points
    await session.commit()
    return await _contest_view(session, contest)


@router.post("/{contest_id}/end", response_model=ContestResponse, dependencies=[Depends(require_admin)])
async def end_contest(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    """Close voting immediately (administrative early termination)."""
    result = await get_settlement_service(session).end_contest(contest_id)
    if not result.ok:
        raise http_error(result.error)
    return await _contest_view(session, result.value)


@router.post("/{contest_id}/settle", dependencies=[Depends(require_admin)])
async def settle_contest(
    contest_id: UUID,
    body: SettleRequest,
    session: AsyncSession = Depends(get_session),
):
    result = await get_settlement_service(session).settle_contest(
        contest_id, winner_id=body.winner_id, tie=body.tie
    )
    if not result.ok:
        raise http_error(result.error)
    return _report_to_dict(result.value)


@router.post("/{contest_id}/cancel", dependencies=[Depends(require_admin)])
async def cancel_contest(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    result = await get_settlement_service(session).cancel_contest(contest_id)
    if not result.ok:
        raise http_error(result.error)
    return _report_to_dict(result.value)


# ============================================================================
# WAGERS
# ============================================================================

@router.post("/{contest_id}/wagers", response_model=WagerResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_WAGER)
async def place_wager(
    request: Request,
    contest_id: UUID,
    wager_data: WagerCreate,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Stake SoftPoints on a contestant at the current odds."""
    result = await get_wager_executor(session).place_wager(
        contest_id,
        user_id,
        wager_data.contestant_id,
        wager_data.amount,
        confidence=wager_data.confidence.value if wager_data.confidence else None,
    )
    if not result.ok:
        raise http_error(result.error)
    return WagerResponse.model_validate(result.value, from_attributes=True)


@router.get("/{contest_id}/wagers/me", response_model=WagerResponse)
async def get_my_wager(
    contest_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Wager).where(Wager.contest_id == contest_id, Wager.user_id == user_id)
    )
    wager = result.scalar_one_or_none()
    if not wager:
        raise HTTPException(status_code=404, detail="No wager in this contest")
    return WagerResponse.model_validate(wager, from_attributes=True)


@router.get(
    "/{contest_id}/wagers",
    response_model=List[WagerResponse],
    dependencies=[Depends(require_admin)],
)
async def list_wagers(contest_id: UUID, session: AsyncSession = Depends(get_session)):
    await _load_contest(session, contest_id)
    result = await session.execute(
        select(Wager).where(Wager.contest_id == contest_id).order_by(Wager.created_at)
    )
    return [WagerResponse.model_validate(w, from_attributes=True) for w in result.scalars().all()]
