"""
Maps engine error kinds to HTTP responses.
"""

from fastapi import HTTPException, status

from arena.engine.errors import EngineError, ErrorKind

ERROR_STATUS = {
    ErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_BALANCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_TARGET: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VOTING_CLOSED: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_WAGER: status.HTTP_409_CONFLICT,
    ErrorKind.CONTEST_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.LEDGER_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.CONTEST_BUSY: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(error: EngineError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS.get(error.kind, status.HTTP_400_BAD_REQUEST),
        detail={"error": error.kind.value, "message": error.message},
    )
