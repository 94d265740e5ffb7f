"""
Action System - Actions, payloads, and results.

Actions represent:
1. Turn actions (spin, call a letter, solve, hand off the turn)
2. Lifecycle actions (start the game, next round, full restart)

All state changes flow through actions. Anything random (the spin outcome,
the next puzzle) is decided before the action is built, so applying an
action is deterministic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time

from .errors import ErrorCode
from .wheel import WheelOutcome


class ActionType(Enum):
    """Types of actions in the system."""
    # Turn actions
    BEGIN_SPIN = "begin_spin"
    SPIN = "spin"
    GUESS_LETTER = "guess_letter"
    SOLVE = "solve"
    END_TURN = "end_turn"

    # Lifecycle actions
    START_GAME = "start_game"
    NEXT_ROUND = "next_round"
    RESTART_GAME = "restart_game"


TURN_ACTIONS = frozenset({
    ActionType.BEGIN_SPIN,
    ActionType.SPIN,
    ActionType.GUESS_LETTER,
    ActionType.SOLVE,
    ActionType.END_TURN,
})


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; validation happens in the
    reducer.
    """
    player_id: str | None = None

    # Turn parameters
    letter: str | None = None
    attempt: str | None = None
    outcome: WheelOutcome | None = None
    next_player_id: str | None = None
    use_wild_card: bool = False

    # Version of the snapshot the move was made from; None skips the check
    expected_version: int | None = None

    # Lifecycle parameters
    puzzle: Any | None = None  # PuzzleState

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    - Recorded in history when they are letter calls or solves
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None
    action_id: str | None = None

    @property
    def player_id(self) -> str | None:
        return self.payload.player_id

    @classmethod
    def begin_spin(cls, player_id: str, expected_version: int | None = None) -> Action:
        """Factory for the start of a spin (wheel animating)."""
        return cls(
            action_type=ActionType.BEGIN_SPIN,
            payload=ActionPayload(player_id=player_id, expected_version=expected_version),
            timestamp=time.time(),
        )

    @classmethod
    def spin(
        cls,
        player_id: str,
        outcome: WheelOutcome,
        expected_version: int | None = None,
    ) -> Action:
        """Factory for a resolved spin."""
        return cls(
            action_type=ActionType.SPIN,
            payload=ActionPayload(
                player_id=player_id,
                outcome=outcome,
                expected_version=expected_version,
            ),
            timestamp=time.time(),
        )

    @classmethod
    def guess_letter(
        cls,
        player_id: str,
        letter: str,
        use_wild_card: bool = False,
        expected_version: int | None = None,
    ) -> Action:
        """Factory for a consonant call or vowel purchase."""
        return cls(
            action_type=ActionType.GUESS_LETTER,
            payload=ActionPayload(
                player_id=player_id,
                letter=letter,
                use_wild_card=use_wild_card,
                expected_version=expected_version,
            ),
            timestamp=time.time(),
        )

    @classmethod
    def solve(cls, player_id: str, attempt: str, expected_version: int | None = None) -> Action:
        """Factory for a solve attempt."""
        return cls(
            action_type=ActionType.SOLVE,
            payload=ActionPayload(
                player_id=player_id,
                attempt=attempt,
                expected_version=expected_version,
            ),
            timestamp=time.time(),
        )

    @classmethod
    def end_turn(
        cls,
        player_id: str,
        next_player_id: str | None = None,
        expected_version: int | None = None,
    ) -> Action:
        """
        Factory for a manual turn handoff.

        `player_id` is the seat the caller believes holds the turn; the
        handoff is dropped if the turn has already moved on.
        """
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(
                player_id=player_id,
                next_player_id=next_player_id,
                expected_version=expected_version,
            ),
            timestamp=time.time(),
        )

    @classmethod
    def start_game(cls, puzzle: Any, player_id: str | None = None) -> Action:
        return cls(
            action_type=ActionType.START_GAME,
            payload=ActionPayload(player_id=player_id, puzzle=puzzle),
            timestamp=time.time(),
        )

    @classmethod
    def next_round(cls, puzzle: Any, player_id: str | None = None) -> Action:
        return cls(
            action_type=ActionType.NEXT_ROUND,
            payload=ActionPayload(player_id=player_id, puzzle=puzzle),
            timestamp=time.time(),
        )

    @classmethod
    def restart_game(cls, puzzle: Any, player_id: str | None = None) -> Action:
        return cls(
            action_type=ActionType.RESTART_GAME,
            payload=ActionPayload(player_id=player_id, puzzle=puzzle),
            timestamp=time.time(),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - The history entry the action produced, if any
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorCode | None = None

    history_entry: Any | None = None  # HistoryEntry
    state_changes: list[str] = field(default_factory=list)

    @property
    def dropped(self) -> bool:
        """Engine-internal rejections that are recovered silently."""
        return self.error_code in (ErrorCode.WRONG_TURN, ErrorCode.STALE_WRITE)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode = ErrorCode.INVALID_ACTION) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        history_entry: Any | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            history_entry=history_entry,
        )
