"""
Game State - Canonical record of one game.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: the store codec round-trips every field
- Players live in one ordered map (player_id -> PlayerState); turn order is
  derived from that map, never from positional indexes
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from copy import deepcopy
from enum import Enum

from ..settings import ALPHABET
from .wheel import WheelOutcome


class GameStatus(Enum):
    """Lifecycle of a game record."""
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class RotationMode(Enum):
    """
    Which seats take turns.

    SHARED: two or more humans; turns rotate over human seats only.
    SOLO: one human; turns rotate over every seat and AI seats play.
    """
    SHARED = "shared"
    SOLO = "solo"


class FormatKind(Enum):
    """Puzzle presentation variants."""
    PLAIN = "plain"
    BEFORE_AFTER = "before_after"
    RHYME = "rhyme"
    SAME_LETTER = "same_letter"
    THEN_NOW = "then_now"
    QUESTION = "question"


class HistoryKind(Enum):
    LETTER = "letter"
    SOLVE = "solve"


class HistoryResult(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class SpecialFormat:
    """Extra presentation data for a puzzle; which fields are set depends on kind."""
    kind: FormatKind = FormatKind.PLAIN
    before: str | None = None
    shared: str | None = None
    after: str | None = None
    then: str | None = None
    now: str | None = None
    letter: str | None = None
    question: str | None = None


@dataclass(frozen=True)
class PuzzleState:
    """
    The puzzle on the board.

    `revealed` only ever holds letters that occur in `text`.
    """
    text: str
    category: str
    revealed: frozenset[str] = frozenset()
    special_format: SpecialFormat = field(default_factory=SpecialFormat)

    @property
    def letters(self) -> frozenset[str]:
        """Distinct A-Z letters in the puzzle."""
        return frozenset(c for c in self.text if c in ALPHABET)

    @property
    def is_fully_revealed(self) -> bool:
        return self.letters <= self.revealed

    @property
    def revealed_ratio(self) -> float:
        letters = self.letters
        if not letters:
            return 1.0
        return len(self.revealed & letters) / len(letters)

    def count(self, letter: str) -> int:
        return self.text.count(letter)

    def reveal(self, letters) -> PuzzleState:
        """Return new puzzle with the given letters revealed where they occur."""
        return replace(self, revealed=self.revealed | (frozenset(letters) & self.letters))

    def reveal_all(self) -> PuzzleState:
        return replace(self, revealed=self.letters)

    def display(self, mask: str = "_") -> str:
        """Board text with unrevealed letters masked."""
        return "".join(
            mask if c in ALPHABET and c not in self.revealed else c
            for c in self.text
        )


@dataclass(frozen=True)
class Prize:
    """A prize won on the wheel, tagged with the round it was won in."""
    name: str
    value: int
    round: int
    description: str = ""


@dataclass(frozen=True)
class HistoryEntry:
    """One letter call or solve attempt."""
    kind: HistoryKind
    player_id: str
    player_name: str
    value: str
    timestamp: float
    result: HistoryResult


@dataclass(frozen=True)
class TurnLease:
    """
    Single-flight claim on an AI seat's turn.

    Held by one observing client (owner_id) for one seat. Other observers
    leave the seat alone until the lease expires.
    """
    owner_id: str
    seat_id: str
    version: int
    expires_at: float

    def blocks(self, owner_id: str, seat_id: str, now: float) -> bool:
        """True if this lease stops `owner_id` from acting for `seat_id`."""
        return (
            self.seat_id == seat_id
            and self.owner_id != owner_id
            and self.expires_at > now
        )


@dataclass(frozen=True)
class PlayerState:
    """One seat at the table."""
    player_id: str
    name: str
    is_host: bool = False
    is_human: bool = True

    round_money: int = 0
    total_money: int = 0
    prizes: tuple[Prize, ...] = ()
    special_cards: tuple[str, ...] = ()

    last_seen: float = 0.0

    def _copy_with(self, **kwargs) -> PlayerState:
        return replace(self, **kwargs)

    def has_card(self, card: str) -> bool:
        return card in self.special_cards


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str
    join_code: str

    status: GameStatus = GameStatus.WAITING
    created_at: float = 0.0
    round: int = 1
    current_player_id: str | None = None
    rotation_mode: RotationMode | None = None

    # Board
    puzzle: PuzzleState | None = None
    used_letters: frozenset[str] = frozenset()

    # Wheel
    wheel_value: WheelOutcome | None = None
    last_spin_result: WheelOutcome | None = None
    is_spinning: bool = False
    turn_in_progress: bool = False

    message: str = ""

    # Round bookkeeping
    round_complete: bool = False
    winner_id: str | None = None
    is_final_round: bool = False
    consonants_remaining: int = 0
    vowels_remaining: int = 0

    max_human_seats: int = 3

    # Players, in seat order
    players: dict[str, PlayerState] = field(default_factory=dict)

    history: tuple[HistoryEntry, ...] = ()

    # Concurrency
    ai_lease: TurnLease | None = None
    last_updated: float = 0.0
    version: int = 0

    @property
    def current_player(self) -> PlayerState | None:
        if self.current_player_id is None:
            return None
        return self.players.get(self.current_player_id)

    @property
    def human_players(self) -> list[PlayerState]:
        return [p for p in self.players.values() if p.is_human]

    @property
    def ai_players(self) -> list[PlayerState]:
        return [p for p in self.players.values() if not p.is_human]

    @property
    def human_count(self) -> int:
        return len(self.human_players)

    @property
    def host(self) -> PlayerState | None:
        for p in self.players.values():
            if p.is_host:
                return p
        return None

    def get_player(self, player_id: str) -> PlayerState | None:
        return self.players.get(player_id)

    def find_by_name(self, name: str) -> PlayerState | None:
        """Find a seat by display name."""
        for p in self.players.values():
            if p.name == name:
                return p
        return None

    def is_current(self, player_id: str | None) -> bool:
        return player_id is not None and player_id == self.current_player_id

    def with_player(self, player: PlayerState) -> GameState:
        """Return new state with the player inserted or updated in place."""
        new_players = dict(self.players)
        new_players[player.player_id] = player
        return self._copy_with(players=new_players)

    def without_player(self, player_id: str) -> GameState:
        new_players = {pid: p for pid, p in self.players.items() if pid != player_id}
        return self._copy_with(players=new_players)

    def map_players(self, fn) -> GameState:
        """Return new state with `fn` applied to every seat."""
        return self._copy_with(
            players={pid: fn(p) for pid, p in self.players.items()}
        )

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
