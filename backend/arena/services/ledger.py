"""
Balance Ledger

The engine debits stakes and credits payouts through a BalanceLedger. The
wallet implementation writes to the same database session as the wager
tables, so a stake debit and the wager row commit (or roll back) together.
Every ledger call is bounded by a timeout; timeouts and database failures
surface as LedgerUnavailableError.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arena.core.config import settings
from arena.core.timeutils import utcnow
from arena.engine.errors import InsufficientBalanceError, LedgerUnavailableError
from arena.models.wallet import TransactionType, VirtualWallet, WalletTransaction

logger = logging.getLogger(__name__)


class BalanceLedger(ABC):
    """Spendable SoftPoints balance per user"""

    @abstractmethod
    async def get_balance(self, user_id: UUID) -> float:
        ...

    @abstractmethod
    async def debit(
        self,
        user_id: UUID,
        amount: float,
        *,
        reference_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> float:
        """Remove amount from the balance and return the new balance."""

    @abstractmethod
    async def credit(
        self,
        user_id: UUID,
        amount: float,
        *,
        transaction_type: TransactionType = TransactionType.WAGER_PAYOUT,
        reference_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> float:
        """Add amount to the balance and return the new balance."""


class WalletLedger(BalanceLedger):
    """
    BalanceLedger backed by virtual_wallets / wallet_transactions.

    Never commits: the caller owns the transaction boundary.
    """

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = settings.LEDGER_TIMEOUT_SECONDS if timeout is None else timeout

    async def get_balance(self, user_id: UUID) -> float:
        wallet = await self._guarded("get_balance", self._get_wallet(user_id))
        return wallet.balance if wallet else 0.0

    async def debit(
        self,
        user_id: UUID,
        amount: float,
        *,
        reference_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> float:
        return await self._guarded(
            "debit",
            self._apply(
                user_id, -amount, TransactionType.WAGER_STAKE, reference_id, description
            ),
        )

    async def credit(
        self,
        user_id: UUID,
        amount: float,
        *,
        transaction_type: TransactionType = TransactionType.WAGER_PAYOUT,
        reference_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> float:
        return await self._guarded(
            "credit",
            self._apply(user_id, amount, transaction_type, reference_id, description),
        )

    async def _guarded(self, operation: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Ledger {operation} timed out after {self.timeout}s")
            raise LedgerUnavailableError(
                f"Balance service timed out during {operation}. Please retry."
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Ledger {operation} failed: {e}")
            raise LedgerUnavailableError(
                f"Balance service unavailable during {operation}. Please retry."
            ) from e

    async def _get_wallet(self, user_id: UUID, lock: bool = False) -> Optional[VirtualWallet]:
        stmt = select(VirtualWallet).where(VirtualWallet.user_id == user_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _apply(
        self,
        user_id: UUID,
        amount: float,
        transaction_type: TransactionType,
        reference_id: Optional[UUID],
        description: Optional[str],
    ) -> float:
        if amount == 0:
            raise ValueError("Ledger entries must be non-zero")

        # Row lock so two debits for one user cannot both pass the balance check
        wallet = await self._get_wallet(user_id, lock=True)
        if wallet is None:
            if amount < 0:
                raise InsufficientBalanceError(
                    f"Insufficient balance. Required: {-amount:.2f} SP, Available: 0.00 SP"
                )
            wallet = VirtualWallet(user_id=user_id)
            self.db.add(wallet)

        balance_after = wallet.balance + amount
        if balance_after < 0:
            raise InsufficientBalanceError(
                f"Insufficient balance. Required: {-amount:.2f} SP, "
                f"Available: {wallet.balance:.2f} SP"
            )

        wallet.balance = balance_after
        if amount > 0:
            wallet.total_earned += amount
        else:
            wallet.total_spent += -amount
        wallet.updated_at = utcnow()

        self.db.add(WalletTransaction(
            user_id=user_id,
            type=transaction_type.value,
            amount=amount,
            balance_after=balance_after,
            reference_id=reference_id,
            description=description,
        ))
        await self.db.flush()
        return balance_after
