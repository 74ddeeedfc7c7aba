"""
Contest models: Contest, Contestant, WagerPool
Maps to: contests, contestants, wager_pools tables
"""
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, SQLModel

from arena.core.timeutils import UTCDateTime, utcnow


class Contest(SQLModel, table=True):
    """Timed head-to-head battle between two contestants"""
    __tablename__ = "contests"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(index=True, max_length=200)
    contestant_a_id: UUID
    contestant_b_id: UUID
    start_time: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    end_time: datetime = Field(sa_type=UTCDateTime)
    ended_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)  # explicit end signal (admin / early termination)
    phase: str = Field(default="open", max_length=20)  # open, closing, closed; only ever advances
    resolution: Optional[str] = Field(default=None, max_length=20)  # winner, tie, cancelled
    winner_id: Optional[UUID] = None
    settled_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    def side_of(self, contestant_id: UUID) -> Optional[str]:
        if contestant_id == self.contestant_a_id:
            return "a"
        if contestant_id == self.contestant_b_id:
            return "b"
        return None


class Contestant(SQLModel, table=True):
    """A creator's entry in one contest. Only current_score changes while live."""
    __tablename__ = "contestants"

    contest_id: UUID = Field(foreign_key="contests.id", primary_key=True)
    contestant_id: UUID = Field(primary_key=True)
    side: str = Field(max_length=1)  # "a" or "b"
    display_name: str = Field(max_length=100)
    tier: int = Field(default=0, ge=0)  # display only
    current_score: float = Field(default=0)
    win_rate: float = Field(default=0, ge=0, le=1)


class WagerPool(SQLModel, table=True):
    """Two-sided stake totals for one contest"""
    __tablename__ = "wager_pools"

    contest_id: UUID = Field(foreign_key="contests.id", primary_key=True)
    total_for_a: float = Field(default=0, ge=0)
    total_for_b: float = Field(default=0, ge=0)
    participant_count: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    @property
    def total_pool(self) -> float:
        return self.total_for_a + self.total_for_b


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic, not DB tables)
# ============================================================================

class ContestantCreate(SQLModel):
    contestant_id: UUID
    display_name: str = Field(min_length=1, max_length=100)
    tier: int = Field(default=0, ge=0)
    win_rate: float = Field(default=0, ge=0, le=1)


class ContestCreate(SQLModel):
    """Contest creation model"""
    title: str = Field(min_length=1, max_length=200)
    contestant_a: ContestantCreate
    contestant_b: ContestantCreate
    duration_seconds: Optional[int] = Field(default=None, gt=0)


class ContestantResponse(SQLModel):
    contestant_id: UUID
    side: str
    display_name: str
    tier: int
    current_score: float
    win_rate: float


class ContestResponse(SQLModel):
    """Contest response model"""
    id: UUID
    title: str
    phase: str
    remaining_seconds: float
    start_time: datetime
    end_time: datetime
    ended_at: Optional[datetime] = None
    resolution: Optional[str] = None
    winner_id: Optional[UUID] = None
    settled_at: Optional[datetime] = None
    contestants: list[ContestantResponse]
    total_for_a: float
    total_for_b: float
    total_pool: float
    participant_count: int


class ScoreUpdate(SQLModel):
    contestant_id: UUID
    points: float = Field(gt=0)


class SettleRequest(SQLModel):
    """Explicit winner, explicit tie, or neither (derive from final scores)"""
    winner_id: Optional[UUID] = None
    tie: bool = False
