"""
Engine Core - Deterministic turn resolution.

The engine is the runtime that:
1. Holds the canonical GameState
2. Resolves wheel outcomes, letter calls and solves via the reducer
3. Derives turn order from the player map and rotation mode
"""

from .state import (
    GameState, GameStatus, PlayerState, PuzzleState, Prize, RotationMode,
    SpecialFormat, FormatKind, HistoryEntry, HistoryKind, HistoryResult, TurnLease,
)
from .wheel import OutcomeKind, WheelOutcome, Wheel, WHEEL_SEGMENTS
from .action import Action, ActionType, ActionPayload, ActionResult
from .errors import (
    ErrorCode, SpinwordError, GameNotFound, GameFull, InvalidAction,
    WrongTurn, StaleWrite, StoreUnavailable,
)
from .reducer import Reducer, apply_action
from .rotation import next_player_id, rotation_mode_for, turn_order

__all__ = [
    "GameState",
    "GameStatus",
    "PlayerState",
    "PuzzleState",
    "Prize",
    "RotationMode",
    "SpecialFormat",
    "FormatKind",
    "HistoryEntry",
    "HistoryKind",
    "HistoryResult",
    "TurnLease",
    "OutcomeKind",
    "WheelOutcome",
    "Wheel",
    "WHEEL_SEGMENTS",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "SpinwordError",
    "GameNotFound",
    "GameFull",
    "InvalidAction",
    "WrongTurn",
    "StaleWrite",
    "StoreUnavailable",
    "Reducer",
    "apply_action",
    "next_player_id",
    "rotation_mode_for",
    "turn_order",
]
