"""
Rotation - Turn order derived from the player map.

Turn order is always computed from the ordered player map and the game's
rotation mode; no positional index is ever stored.
"""

from __future__ import annotations

from .state import GameState, RotationMode


def rotation_mode_for(human_count: int) -> RotationMode:
    """Mode fixed at game start from the number of human seats."""
    return RotationMode.SHARED if human_count >= 2 else RotationMode.SOLO


def turn_order(state: GameState) -> list[str]:
    """
    Seats eligible for a turn, in seat order.

    AI seats never play the final round, and never play at all in shared mode.
    """
    humans_only = state.is_final_round or state.rotation_mode == RotationMode.SHARED
    return [
        pid for pid, p in state.players.items()
        if p.is_human or not humans_only
    ]


def next_player_id(state: GameState, from_id: str | None = None) -> str | None:
    """
    The seat after `from_id` in turn order, wrapping around.

    If `from_id` is not itself eligible (an inert AI seat holding the turn,
    or a seat that just left), the search starts from its position in the
    player map. Returns None only when no seat is eligible.
    """
    order = turn_order(state)
    if not order:
        return None

    if from_id is None:
        from_id = state.current_player_id

    if from_id in order:
        idx = order.index(from_id)
        return order[(idx + 1) % len(order)]

    seats = list(state.players)
    if from_id in seats:
        start = seats.index(from_id)
        for offset in range(1, len(seats) + 1):
            candidate = seats[(start + offset) % len(seats)]
            if candidate in order:
                return candidate

    return order[0]
