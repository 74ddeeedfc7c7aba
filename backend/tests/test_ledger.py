"""
Tests for the wallet-backed balance ledger
"""

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy import select

from arena.engine.errors import InsufficientBalanceError, LedgerUnavailableError
from arena.models.wallet import TransactionType, VirtualWallet, WalletTransaction
from arena.services.ledger import WalletLedger


class SlowLedger(WalletLedger):
    async def _get_wallet(self, user_id, lock=False):
        await asyncio.sleep(1)
        return await super()._get_wallet(user_id, lock)


@pytest.mark.asyncio
async def test_credit_creates_wallet(session):
    user_id = uuid4()
    ledger = WalletLedger(session)

    balance = await ledger.credit(user_id, 1000, transaction_type=TransactionType.INITIAL_DEPOSIT)
    await session.commit()

    assert balance == 1000
    assert await ledger.get_balance(user_id) == 1000


@pytest.mark.asyncio
async def test_unknown_user_has_zero_balance(session):
    assert await WalletLedger(session).get_balance(uuid4()) == 0.0


@pytest.mark.asyncio
async def test_debit_records_transaction(session, fund, session_factory):
    user_id = uuid4()
    await fund(user_id, 500)

    reference = uuid4()
    balance = await WalletLedger(session).debit(user_id, 120, reference_id=reference, description="stake")
    await session.commit()
    assert balance == 380

    async with session_factory() as s:
        wallet = await s.get(VirtualWallet, user_id)
        assert wallet.balance == 380
        assert wallet.total_spent == 120
        assert wallet.total_earned == 500

        result = await s.execute(
            select(WalletTransaction).where(WalletTransaction.reference_id == reference)
        )
        tx = result.scalar_one()
        assert tx.type == TransactionType.WAGER_STAKE.value
        assert tx.amount == -120
        assert tx.balance_after == 380


@pytest.mark.asyncio
async def test_debit_cannot_overdraw(session, fund, balance_of):
    user_id = uuid4()
    await fund(user_id, 50)

    with pytest.raises(InsufficientBalanceError):
        await WalletLedger(session).debit(user_id, 51)
    await session.rollback()

    assert await balance_of(user_id) == 50


@pytest.mark.asyncio
async def test_debit_without_wallet(session):
    with pytest.raises(InsufficientBalanceError):
        await WalletLedger(session).debit(uuid4(), 1)


@pytest.mark.asyncio
async def test_timeout_is_ledger_unavailable(session):
    ledger = SlowLedger(session, timeout=0.01)
    with pytest.raises(LedgerUnavailableError):
        await ledger.get_balance(uuid4())
