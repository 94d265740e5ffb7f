"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- NOT_FOUND: No game under that join code
- FULL: The table already seats the maximum number of humans
- INVALID_ACTION: The move breaks a rule (used letter, no spin, no money...)
- WRONG_TURN: The move came from a seat that no longer holds the turn
- STALE_WRITE: The game changed too often to apply the move; retry
- STORE_UNAVAILABLE: The record store cannot be reached; retry later
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.errors import ErrorCode


# =============================================================================
# Enums
# =============================================================================

class GameStatusValue(str, Enum):
    """Game status values."""
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class MoveType(str, Enum):
    """Moves a player can submit."""
    SPIN = "spin"
    GUESS_LETTER = "guess_letter"
    SOLVE = "solve"
    END_TURN = "end_turn"
    CLAIM_TURN = "claim_turn"


# =============================================================================
# Nested Models
# =============================================================================

class OutcomeInfo(BaseModel):
    """A wheel segment."""
    kind: str
    amount: int = 0
    name: Optional[str] = None
    label: str = Field(..., description="Display text, e.g. $500 or BANKRUPT")


class PrizeInfo(BaseModel):
    name: str
    value: int
    round: int
    description: str = ""


class PlayerInfo(BaseModel):
    """One seat at the table."""
    player_id: str
    name: str
    is_host: bool
    is_human: bool
    is_current_turn: bool
    round_money: int
    total_money: int
    prizes: list[PrizeInfo] = Field(default_factory=list)
    special_cards: list[str] = Field(default_factory=list)


class PuzzleInfo(BaseModel):
    """The board. The answer is only included once it is fully revealed."""
    category: str
    board: str = Field(..., description="Puzzle text with hidden letters as _")
    revealed: list[str] = Field(default_factory=list)
    format: str = "plain"
    format_details: dict[str, str] = Field(default_factory=dict)
    answer: Optional[str] = None


class HistoryInfo(BaseModel):
    kind: str
    player_id: str
    player_name: str
    value: str
    result: str
    timestamp: float


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to create a game."""
    name: str = Field(..., min_length=1, description="Host display name")
    player_id: Optional[str] = Field(None, description="Durable id from an earlier session")
    join_code: Optional[str] = Field(None, description="Use this join code instead of a generated one")


class JoinGameRequest(BaseModel):
    """Request to join a game."""
    name: str = Field(..., min_length=1, description="Display name")
    player_id: Optional[str] = Field(None, description="Durable id from an earlier session")


class PlayerRequest(BaseModel):
    """Request that only identifies the caller."""
    player_id: str


class MoveRequest(BaseModel):
    """A turn move."""
    type: MoveType
    player_id: str
    letter: Optional[str] = Field(None, max_length=1)
    attempt: Optional[str] = None
    use_wild_card: bool = False
    next_player_id: Optional[str] = None
    stuck_player_id: Optional[str] = Field(None, description="For claim_turn: the seat seen holding the turn")
    expected_version: Optional[int] = Field(
        None, ge=0, description="Snapshot version the move was made from; stale moves are dropped",
    )


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameResponse(BaseModel):
    """Complete game snapshot for display."""
    game_id: str
    join_code: str
    status: GameStatusValue
    round: int
    is_final_round: bool = False
    consonants_remaining: int = 0
    vowels_remaining: int = 0
    rotation_mode: Optional[str] = None
    current_player_id: Optional[str] = None
    puzzle: Optional[PuzzleInfo] = None
    used_letters: list[str] = Field(default_factory=list)
    wheel_value: Optional[OutcomeInfo] = None
    last_spin_result: Optional[OutcomeInfo] = None
    is_spinning: bool = False
    round_complete: bool = False
    winner_id: Optional[str] = None
    message: str = ""
    players: list[PlayerInfo] = Field(default_factory=list)
    history: list[HistoryInfo] = Field(default_factory=list)
    version: int = 0
    last_updated: float = 0.0
    api_version: str = "v1"


class JoinResponse(BaseModel):
    """Response after creating or joining a game."""
    player_id: str
    game: GameResponse


class MoveResponse(BaseModel):
    """Result of a move. Rejected moves still carry the current game."""
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    changes: list[str] = Field(default_factory=list)
    game: Optional[GameResponse] = None


class LeaveResponse(BaseModel):
    """Response after leaving a game."""
    success: bool
    join_code: str
    game_deleted: bool = False


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
