"""
Error taxonomy for the odds & payout engine.

Services raise these internally; the public service methods convert them
into EngineResult values so callers get a kind they can render, never a
traceback.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_AMOUNT = "InvalidAmount"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    VOTING_CLOSED = "VotingClosed"
    DUPLICATE_WAGER = "DuplicateWager"
    INVALID_TARGET = "InvalidTarget"
    LEDGER_UNAVAILABLE = "LedgerUnavailable"
    ALREADY_SETTLED = "AlreadySettled"
    CONTEST_NOT_FOUND = "ContestNotFound"
    CONTEST_BUSY = "ContestBusy"


class WagerError(Exception):
    """Base exception for engine failures"""
    kind: ErrorKind

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class InvalidAmountError(WagerError):
    kind = ErrorKind.INVALID_AMOUNT


class InsufficientBalanceError(WagerError):
    kind = ErrorKind.INSUFFICIENT_BALANCE


class VotingClosedError(WagerError):
    kind = ErrorKind.VOTING_CLOSED


class DuplicateWagerError(WagerError):
    kind = ErrorKind.DUPLICATE_WAGER


class InvalidTargetError(WagerError):
    kind = ErrorKind.INVALID_TARGET


class LedgerUnavailableError(WagerError):
    """Balance ledger failed or timed out mid-transaction"""
    kind = ErrorKind.LEDGER_UNAVAILABLE


class ContestNotFoundError(WagerError):
    kind = ErrorKind.CONTEST_NOT_FOUND


class ContestBusyError(WagerError):
    """Could not acquire the per-contest writer lock in time"""
    kind = ErrorKind.CONTEST_BUSY


@dataclass(frozen=True)
class EngineError:
    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: WagerError) -> "EngineError":
        return cls(kind=exc.kind, message=exc.message)


@dataclass(frozen=True)
class EngineResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[EngineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "EngineResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, exc: WagerError) -> "EngineResult[T]":
        return cls(error=EngineError.from_exception(exc))
