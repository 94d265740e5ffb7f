"""
API Module - Network interface for shared games.

Exposes the Session Manager via REST and WebSocket. A client:
1. Creates or joins a game by join code
2. Follows the game over the WebSocket
3. Submits moves when it holds the turn

Computer seats are played by the server.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinGameRequest,
    PlayerRequest,
    MoveRequest,
    MoveType,
    # Responses
    GameResponse,
    JoinResponse,
    MoveResponse,
    LeaveResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    PuzzleInfo,
    OutcomeInfo,
)
from .service import GameService, game_to_response
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "JoinGameRequest",
    "PlayerRequest",
    "MoveRequest",
    "MoveType",
    # Responses
    "GameResponse",
    "JoinResponse",
    "MoveResponse",
    "LeaveResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "PuzzleInfo",
    "OutcomeInfo",
    # Service
    "GameService",
    "game_to_response",
    "create_app",
]
