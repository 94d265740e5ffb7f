"""
Store Records - Wire shape of a game record.

GameState is converted to and from these pydantic models at the store
boundary. Sets become sorted lists, the ordered player map becomes a list
of seats, and enums are stored by value.
"""

from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import (
    GameState, GameStatus, PlayerState, PuzzleState, Prize, RotationMode,
    SpecialFormat, FormatKind, HistoryEntry, HistoryKind, HistoryResult, TurnLease,
)
from ..engine_core.wheel import OutcomeKind, WheelOutcome


class SpecialFormatRecord(BaseModel):
    kind: str = FormatKind.PLAIN.value
    before: Optional[str] = None
    shared: Optional[str] = None
    after: Optional[str] = None
    then: Optional[str] = None
    now: Optional[str] = None
    letter: Optional[str] = None
    question: Optional[str] = None


class PuzzleRecord(BaseModel):
    text: str
    category: str
    revealed: list[str] = Field(default_factory=list)
    special_format: SpecialFormatRecord = Field(default_factory=SpecialFormatRecord)


class WheelOutcomeRecord(BaseModel):
    kind: str
    amount: int = 0
    name: Optional[str] = None


class PrizeRecord(BaseModel):
    name: str
    value: int
    round: int
    description: str = ""


class PlayerRecord(BaseModel):
    player_id: str
    name: str
    is_host: bool = False
    is_human: bool = True
    round_money: int = 0
    total_money: int = 0
    prizes: list[PrizeRecord] = Field(default_factory=list)
    special_cards: list[str] = Field(default_factory=list)
    last_seen: float = 0.0


class HistoryRecord(BaseModel):
    kind: str
    player_id: str
    player_name: str
    value: str
    timestamp: float
    result: str


class LeaseRecord(BaseModel):
    owner_id: str
    seat_id: str
    version: int
    expires_at: float


class GameRecord(BaseModel):
    """One game, as stored under its join code."""
    game_id: str
    join_code: str
    status: str = GameStatus.WAITING.value
    created_at: float = 0.0
    round: int = 1
    current_player_id: Optional[str] = None
    rotation_mode: Optional[str] = None

    puzzle: Optional[PuzzleRecord] = None
    used_letters: list[str] = Field(default_factory=list)

    wheel_value: Optional[WheelOutcomeRecord] = None
    last_spin_result: Optional[WheelOutcomeRecord] = None
    is_spinning: bool = False
    turn_in_progress: bool = False
    message: str = ""

    round_complete: bool = False
    winner_id: Optional[str] = None
    is_final_round: bool = False
    consonants_remaining: int = 0
    vowels_remaining: int = 0
    max_human_seats: int = 3

    players: list[PlayerRecord] = Field(default_factory=list)
    history: list[HistoryRecord] = Field(default_factory=list)

    ai_lease: Optional[LeaseRecord] = None
    last_updated: float = 0.0
    version: int = 0


# =============================================================================
# Conversion
# =============================================================================

def _outcome_to_record(outcome: WheelOutcome | None) -> Optional[WheelOutcomeRecord]:
    if outcome is None:
        return None
    return WheelOutcomeRecord(kind=outcome.kind.value, amount=outcome.amount, name=outcome.name)


def _outcome_from_record(record: Optional[WheelOutcomeRecord]) -> WheelOutcome | None:
    if record is None:
        return None
    return WheelOutcome(kind=OutcomeKind(record.kind), amount=record.amount, name=record.name)


def _puzzle_to_record(puzzle: PuzzleState | None) -> Optional[PuzzleRecord]:
    if puzzle is None:
        return None
    fmt = puzzle.special_format
    return PuzzleRecord(
        text=puzzle.text,
        category=puzzle.category,
        revealed=sorted(puzzle.revealed),
        special_format=SpecialFormatRecord(
            kind=fmt.kind.value,
            before=fmt.before,
            shared=fmt.shared,
            after=fmt.after,
            then=fmt.then,
            now=fmt.now,
            letter=fmt.letter,
            question=fmt.question,
        ),
    )


def _puzzle_from_record(record: Optional[PuzzleRecord]) -> PuzzleState | None:
    if record is None:
        return None
    fmt = record.special_format
    return PuzzleState(
        text=record.text,
        category=record.category,
        revealed=frozenset(record.revealed),
        special_format=SpecialFormat(
            kind=FormatKind(fmt.kind),
            before=fmt.before,
            shared=fmt.shared,
            after=fmt.after,
            then=fmt.then,
            now=fmt.now,
            letter=fmt.letter,
            question=fmt.question,
        ),
    )


def _player_to_record(player: PlayerState) -> PlayerRecord:
    return PlayerRecord(
        player_id=player.player_id,
        name=player.name,
        is_host=player.is_host,
        is_human=player.is_human,
        round_money=player.round_money,
        total_money=player.total_money,
        prizes=[PrizeRecord(name=p.name, value=p.value, round=p.round, description=p.description)
                for p in player.prizes],
        special_cards=list(player.special_cards),
        last_seen=player.last_seen,
    )


def _player_from_record(record: PlayerRecord) -> PlayerState:
    return PlayerState(
        player_id=record.player_id,
        name=record.name,
        is_host=record.is_host,
        is_human=record.is_human,
        round_money=record.round_money,
        total_money=record.total_money,
        prizes=tuple(Prize(name=p.name, value=p.value, round=p.round, description=p.description)
                     for p in record.prizes),
        special_cards=tuple(record.special_cards),
        last_seen=record.last_seen,
    )


def state_to_record(state: GameState) -> dict[str, Any]:
    """Serialize a GameState to a store record."""
    record = GameRecord(
        game_id=state.game_id,
        join_code=state.join_code,
        status=state.status.value,
        created_at=state.created_at,
        round=state.round,
        current_player_id=state.current_player_id,
        rotation_mode=state.rotation_mode.value if state.rotation_mode else None,
        puzzle=_puzzle_to_record(state.puzzle),
        used_letters=sorted(state.used_letters),
        wheel_value=_outcome_to_record(state.wheel_value),
        last_spin_result=_outcome_to_record(state.last_spin_result),
        is_spinning=state.is_spinning,
        turn_in_progress=state.turn_in_progress,
        message=state.message,
        round_complete=state.round_complete,
        winner_id=state.winner_id,
        is_final_round=state.is_final_round,
        consonants_remaining=state.consonants_remaining,
        vowels_remaining=state.vowels_remaining,
        max_human_seats=state.max_human_seats,
        players=[_player_to_record(p) for p in state.players.values()],
        history=[
            HistoryRecord(
                kind=h.kind.value,
                player_id=h.player_id,
                player_name=h.player_name,
                value=h.value,
                timestamp=h.timestamp,
                result=h.result.value,
            )
            for h in state.history
        ],
        ai_lease=LeaseRecord(
            owner_id=state.ai_lease.owner_id,
            seat_id=state.ai_lease.seat_id,
            version=state.ai_lease.version,
            expires_at=state.ai_lease.expires_at,
        ) if state.ai_lease else None,
        last_updated=state.last_updated,
        version=state.version,
    )
    return record.model_dump(mode="json")


def state_from_record(data: dict[str, Any]) -> GameState:
    """Rebuild a GameState from a store record (validated by GameRecord)."""
    record = GameRecord.model_validate(data)
    lease = record.ai_lease
    return GameState(
        game_id=record.game_id,
        join_code=record.join_code,
        status=GameStatus(record.status),
        created_at=record.created_at,
        round=record.round,
        current_player_id=record.current_player_id,
        rotation_mode=RotationMode(record.rotation_mode) if record.rotation_mode else None,
        puzzle=_puzzle_from_record(record.puzzle),
        used_letters=frozenset(record.used_letters),
        wheel_value=_outcome_from_record(record.wheel_value),
        last_spin_result=_outcome_from_record(record.last_spin_result),
        is_spinning=record.is_spinning,
        turn_in_progress=record.turn_in_progress,
        message=record.message,
        round_complete=record.round_complete,
        winner_id=record.winner_id,
        is_final_round=record.is_final_round,
        consonants_remaining=record.consonants_remaining,
        vowels_remaining=record.vowels_remaining,
        max_human_seats=record.max_human_seats,
        players={p.player_id: _player_from_record(p) for p in record.players},
        history=tuple(
            HistoryEntry(
                kind=HistoryKind(h.kind),
                player_id=h.player_id,
                player_name=h.player_name,
                value=h.value,
                timestamp=h.timestamp,
                result=HistoryResult(h.result),
            )
            for h in record.history
        ),
        ai_lease=TurnLease(
            owner_id=lease.owner_id,
            seat_id=lease.seat_id,
            version=lease.version,
            expires_at=lease.expires_at,
        ) if lease else None,
        last_updated=record.last_updated,
        version=record.version,
    )
