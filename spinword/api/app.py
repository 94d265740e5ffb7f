"""
FastAPI Application - REST + WebSocket transport for shared games.

Endpoints:
    POST   /api/v1/games                        Create a game (caller is host)
    GET    /api/v1/games/{code}                 Get the game snapshot
    POST   /api/v1/games/{code}/join            Join (idempotent by id or name)
    POST   /api/v1/games/{code}/leave           Leave; deletes the game when empty
    POST   /api/v1/games/{code}/start           Host starts the game
    POST   /api/v1/games/{code}/moves           Spin, call a letter, solve, end/claim turn
    POST   /api/v1/games/{code}/next-round      Host starts the next round
    POST   /api/v1/games/{code}/restart         Host restarts from round 1
    WS     /api/v1/games/{code}/ws              Pushes every snapshot

Every write fans out through the store to all WebSocket subscribers, so
clients never poll. Computer seats are played server-side.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import asyncio
import json
import logging
import os

from ..engine_core.errors import ErrorCode, SpinwordError

# Environment configuration
SPINWORD_ENV = os.getenv("SPINWORD_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.FULL: 409,
    ErrorCode.INVALID_ACTION: 400,
    ErrorCode.WRONG_TURN: 409,
    ErrorCode.STALE_WRITE: 409,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import GameService, game_to_response
    from .schemas import (
        # Request models
        CreateGameRequest,
        JoinGameRequest,
        PlayerRequest,
        MoveRequest,
        # Response models
        GameResponse,
        JoinResponse,
        MoveResponse,
        LeaveResponse,
        ErrorResponse,
        HealthResponse,
    )
    from ..settings import GameSettings
    from ..session import SessionManager
    from ..store.records import state_from_record

    app = FastAPI(
        title="Spinword API",
        description="""
Multiplayer wheel-spin word puzzle engine.

## Turn Flow

1. Spin the wheel (`type=spin`)
2. Call a letter against the spin (`type=guess_letter`), or solve
3. A miss passes the turn; a hit keeps it

Vowels cost $250 when bought with no spin pending.

## Error Codes

| Code | Description |
|------|-------------|
| `NOT_FOUND` | No game under that join code |
| `FULL` | All human seats are taken |
| `INVALID_ACTION` | The move breaks a rule |
| `WRONG_TURN` | The move came from a seat that no longer holds the turn |
| `STALE_WRITE` | Too many concurrent writes; retry |
| `STORE_UNAVAILABLE` | Storage unreachable; retry later |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    game_service = service or GameService(
        session_manager=SessionManager(settings=GameSettings.from_env()),
    )
    app.state.game_service = game_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(SpinwordError)
    async def spinword_error_handler(request: Request, exc: SpinwordError):
        if exc.code == ErrorCode.STORE_UNAVAILABLE:
            logger.warning("Store unavailable during %s: %s", request.url.path, exc.message)
        return make_error_response(
            exc.code,
            exc.message,
            status_code=STATUS_CODES.get(exc.code, 400),
        )

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=JoinResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Create a game",
    )
    async def create_game(request: CreateGameRequest) -> JoinResponse:
        """
        Create a waiting game with the caller as host.

        Computer seats are added so the table holds three seats.
        """
        return game_service.create_game(request)

    @app.get(
        "/api/v1/games/{join_code}",
        response_model=GameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get the game snapshot",
    )
    async def get_game(join_code: str) -> GameResponse:
        return game_service.get_game(join_code)

    @app.post(
        "/api/v1/games/{join_code}/join",
        response_model=JoinResponse,
        responses={
            404: {"model": ErrorResponse, "description": "No such game"},
            409: {"model": ErrorResponse, "description": "Table is full"},
        },
        tags=["Games"],
        summary="Join a game",
    )
    async def join_game(join_code: str, request: JoinGameRequest) -> JoinResponse:
        """
        Take a seat.

        Joining again with the same player id or display name returns the
        existing seat.
        """
        return game_service.join_game(join_code, request)

    @app.post(
        "/api/v1/games/{join_code}/leave",
        response_model=LeaveResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Leave a game",
    )
    async def leave_game(join_code: str, request: PlayerRequest) -> LeaveResponse:
        return game_service.leave_game(join_code, request.player_id)

    @app.post(
        "/api/v1/games/{join_code}/start",
        response_model=GameResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start the game (host only)",
    )
    async def start_game(join_code: str, request: PlayerRequest) -> GameResponse:
        return game_service.start_game(join_code, request.player_id)

    @app.post(
        "/api/v1/games/{join_code}/next-round",
        response_model=GameResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start the next round (host only)",
    )
    async def next_round(join_code: str, request: PlayerRequest) -> GameResponse:
        """
        Draw a new puzzle for the next round.

        Going into the final round without winnings in a solo game restarts
        the whole game instead.
        """
        return game_service.next_round(join_code, request.player_id)

    @app.post(
        "/api/v1/games/{join_code}/restart",
        response_model=GameResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Restart from round 1 (host only)",
    )
    async def restart_game(join_code: str, request: PlayerRequest) -> GameResponse:
        return game_service.restart_game(join_code, request.player_id)

    # =========================================================================
    # Move Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/games/{join_code}/moves",
        response_model=MoveResponse,
        responses={
            400: {"model": MoveResponse, "description": "Move breaks a rule"},
            404: {"model": ErrorResponse},
            409: {"model": MoveResponse, "description": "Not your turn / concurrent update"},
        },
        tags=["Moves"],
        summary="Submit a move",
    )
    async def submit_move(join_code: str, request: MoveRequest) -> Union[MoveResponse, JSONResponse]:
        """
        Spin, call a letter, solve, hand off or claim the turn.

        Rejected moves return the current snapshot alongside the error.
        """
        response = game_service.submit_move(join_code, request)
        if response.success:
            return response
        return JSONResponse(
            status_code=STATUS_CODES.get(response.error_code, 400),
            content=response.model_dump(mode="json"),
        )

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{join_code}/ws")
    async def websocket_endpoint(websocket: WebSocket, join_code: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Game snapshot changed
        - game_deleted: Last player left
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()
        code = join_code.upper()
        manager = game_service.session_manager
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_record(record):
            # Store callbacks run in the writer's thread
            loop.call_soon_threadsafe(queue.put_nowait, record)

        unsubscribe = manager.store.subscribe(code, on_record)

        async def pump():
            while True:
                record = await queue.get()
                if record is None:
                    await websocket.send_json({"type": "game_deleted", "payload": {"join_code": code}})
                    continue
                await websocket.send_json({
                    "type": "state_update",
                    "payload": game_to_response(state_from_record(record)).model_dump(mode="json"),
                })

        sender = asyncio.create_task(pump())
        try:
            try:
                state = manager.load_game(code)
                await websocket.send_json({
                    "type": "state_update",
                    "payload": game_to_response(state).model_dump(mode="json"),
                })
            except SpinwordError as e:
                await websocket.send_json({
                    "type": "error",
                    "payload": {"message": e.message, "error_code": e.code.value},
                })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
        except WebSocketDisconnect:
            logger.debug("WebSocket for %s disconnected", code)
        finally:
            unsubscribe()
            sender.cancel()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="spinword",
            version="1.0.0",
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Spinword API",
            "version": "1.0.0",
            "env": SPINWORD_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# Create default app instance (for uvicorn)
app = None
try:
    app = create_app()
except ImportError:
    pass
