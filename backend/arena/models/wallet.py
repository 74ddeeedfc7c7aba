"""
Wallet models: VirtualWallet, WalletTransaction
Maps to: virtual_wallets, wallet_transactions tables
Balances are SoftPoints (SP).
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4
from enum import Enum

from arena.core.timeutils import UTCDateTime, utcnow


# ============================================================================
# ENUMS
# ============================================================================

class TransactionType(str, Enum):
    INITIAL_DEPOSIT = "initial_deposit"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    WAGER_STAKE = "wager_stake"
    WAGER_PAYOUT = "wager_payout"
    WAGER_REFUND = "wager_refund"


# ============================================================================
# VIRTUAL WALLET MODEL
# ============================================================================

class VirtualWallet(SQLModel, table=True):
    """User's SoftPoints wallet (created on first deposit or credit)"""
    __tablename__ = "virtual_wallets"

    user_id: UUID = Field(primary_key=True)
    balance: float = Field(default=0)
    total_earned: float = Field(default=0)
    total_spent: float = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


# ============================================================================
# WALLET TRANSACTION MODEL
# ============================================================================

class WalletTransaction(SQLModel, table=True):
    """Individual wallet transaction record"""
    __tablename__ = "wallet_transactions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(index=True)

    type: str = Field(max_length=50)     # TransactionType
    amount: float                         # signed, non-zero
    balance_after: float

    description: Optional[str] = None
    reference_id: Optional[UUID] = None   # wager id for stake/payout/refund

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class DepositRequest(SQLModel):
    amount: float = Field(gt=0)
    description: Optional[str] = Field(default=None, max_length=200)


class TransactionResponse(SQLModel):
    id: UUID
    type: str
    amount: float
    balance_after: float
    description: Optional[str] = None
    reference_id: Optional[UUID] = None
    created_at: datetime
