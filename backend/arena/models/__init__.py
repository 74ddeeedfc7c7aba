from arena.models.contest import Contest, Contestant, WagerPool
from arena.models.wager import Wager, WagerStatus
from arena.models.wallet import VirtualWallet, WalletTransaction, TransactionType

__all__ = [
    "Contest",
    "Contestant",
    "WagerPool",
    "Wager",
    "WagerStatus",
    "VirtualWallet",
    "WalletTransaction",
    "TransactionType",
]
