"""
Error kinds shared by the engine, the store and the session layer.

Handling rules:
- NOT_FOUND, FULL, INVALID_ACTION: surfaced to the acting client
- WRONG_TURN: dropped and logged, never fatal
- STALE_WRITE: re-read and retry, never surfaced
- STORE_UNAVAILABLE: the only blocking, user-facing error
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""
    NOT_FOUND = "NOT_FOUND"
    FULL = "FULL"
    INVALID_ACTION = "INVALID_ACTION"
    WRONG_TURN = "WRONG_TURN"
    STALE_WRITE = "STALE_WRITE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class SpinwordError(Exception):
    """Base class for every error raised by the package."""
    code: ErrorCode = ErrorCode.INVALID_ACTION

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class GameNotFound(SpinwordError):
    """Join or lookup against a code with no game record."""
    code = ErrorCode.NOT_FOUND


class GameFull(SpinwordError):
    """Human seat cap already reached."""
    code = ErrorCode.FULL


class InvalidAction(SpinwordError):
    """Action breaks a game rule."""
    code = ErrorCode.INVALID_ACTION


class WrongTurn(SpinwordError):
    """Action from a seat that no longer holds the turn."""
    code = ErrorCode.WRONG_TURN


class StaleWrite(SpinwordError):
    """Optimistic-concurrency conflict on a store write."""
    code = ErrorCode.STALE_WRITE

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class StoreUnavailable(SpinwordError):
    """The shared store cannot be reached."""
    code = ErrorCode.STORE_UNAVAILABLE
