"""
Wager model and request/response shapes
Maps to: wagers table
"""

from sqlmodel import SQLModel, Field, UniqueConstraint
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4
from enum import Enum

from arena.core.timeutils import UTCDateTime, utcnow


# ============================================================================
# ENUMS
# ============================================================================

class WagerStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    REFUNDED = "refunded"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ============================================================================
# WAGER MODEL
# ============================================================================

class Wager(SQLModel, table=True):
    """A single user's stake on one side of a contest"""
    __tablename__ = "wagers"
    __table_args__ = (UniqueConstraint("contest_id", "user_id", name="uq_wager_contest_user"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    contest_id: UUID = Field(foreign_key="contests.id", index=True)
    user_id: UUID = Field(index=True)
    contestant_id: UUID

    amount: float = Field(gt=0)
    odds_at_placement: float             # frozen at placement
    potential_payout: float              # amount * odds_at_placement
    actual_payout: float = Field(default=0)

    status: str = Field(default=WagerStatus.ACTIVE.value, max_length=20)
    confidence: Optional[str] = Field(default=None, max_length=10)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    processed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)


# ============================================================================
# REQUEST/RESPONSE MODELS (Pydantic, not DB tables)
# ============================================================================

class WagerCreate(SQLModel):
    """Wager placement request. Non-numeric amounts are rejected as InvalidAmount; range checks happen in the engine."""
    contestant_id: UUID
    amount: float
    confidence: Optional[Confidence] = None


class WagerResponse(SQLModel):
    id: UUID
    contest_id: UUID
    user_id: UUID
    contestant_id: UUID
    amount: float
    odds_at_placement: float
    potential_payout: float
    actual_payout: float
    status: str
    confidence: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None
