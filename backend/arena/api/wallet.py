"""
Wallet API routes
SoftPoints balance, transaction history and admin deposits.
"""

from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.database import get_session
from arena.core.dependencies import get_current_user_id, require_admin
from arena.engine.errors import LedgerUnavailableError
from arena.models.wallet import (
    DepositRequest,
    TransactionResponse,
    TransactionType,
    VirtualWallet,
    WalletTransaction,
)
from arena.services.ledger import WalletLedger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/balance")
async def get_balance(
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Get current SoftPoints balance."""
    wallet = await session.get(VirtualWallet, user_id)
    balance = wallet.balance if wallet else 0.0

    return {
        "balance": balance,
        "currency": "SP",
        "formatted": f"{balance:,.2f} SP",
    }


@router.get("/transactions", response_model=List[TransactionResponse])
async def get_transactions(
    limit: int = 20,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Most recent wallet transactions for the caller."""
    if limit > 100:
        limit = 100

    result = await session.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc())
        .limit(limit)
    )
    return [
        TransactionResponse.model_validate(tx, from_attributes=True)
        for tx in result.scalars().all()
    ]


@router.post("/{user_id}/deposit", dependencies=[Depends(require_admin)])
async def deposit(
    user_id: UUID,
    body: DepositRequest,
    session: AsyncSession = Depends(get_session),
):
    """Credit SoftPoints to a user's wallet (admin only)."""
    existing = await session.get(VirtualWallet, user_id)
    transaction_type = (
        TransactionType.ADMIN_ADJUSTMENT if existing else TransactionType.INITIAL_DEPOSIT
    )
    try:
        balance = await WalletLedger(session).credit(
            user_id,
            body.amount,
            transaction_type=transaction_type,
            description=body.description or "Admin deposit",
        )
        await session.commit()
    except LedgerUnavailableError as e:
        await session.rollback()
        raise HTTPException(status_code=503, detail=e.message)

    logger.info(f"Deposited {body.amount} SP to {user_id}")
    return {"user_id": str(user_id), "balance": balance, "currency": "SP"}
