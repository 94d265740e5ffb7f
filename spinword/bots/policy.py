"""
Bot Policy - Interface for computer-seat decision-making.

A BotPolicy looks at a snapshot and, when the seat it plays holds the
turn, returns a decision. Decisions carry:
- The action to submit
- An explanation (for logs and UI)
- The inputs it weighed
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..engine_core.state import GameStatus, RotationMode

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - The inputs the policy weighed
    """
    action: Action
    explanation: str = ""
    evaluation_details: dict[str, Any] = field(default_factory=dict)


def seat_may_act(state: GameState, seat_id: str) -> bool:
    """
    True if a computer seat is due to move in this snapshot.

    Computer seats act only in solo games, and only when the seat holds the
    turn of an open round before the final one. The filler seat of a
    shared game never moves.
    """
    seat = state.get_player(seat_id)
    return (
        seat is not None
        and not seat.is_human
        and state.status == GameStatus.ACTIVE
        and state.rotation_mode != RotationMode.SHARED
        and not state.round_complete
        and not state.is_final_round
        and not state.is_spinning
        and state.is_current(seat_id)
    )


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a computer seat selects actions.
    """

    @abstractmethod
    def decide(self, state: GameState, seat_id: str) -> BotDecision | None:
        """
        Choose the next action for `seat_id`.

        Returns None when the seat has nothing to do in this snapshot.
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__
