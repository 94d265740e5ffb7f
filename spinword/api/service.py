"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to Session Manager calls
2. Runs computer seats server-side (one AutomaRunner per live game)
3. Formats snapshots for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.).
Engine errors are raised as SpinwordError subclasses; the transport maps
them to status codes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.state import GameState
from ..engine_core.action import ActionResult
from ..engine_core.errors import InvalidAction
from ..engine_core.wheel import WheelOutcome
from ..session import SessionManager, AutomaRunner, Scheduler, ThreadingScheduler
from ..store.records import state_from_record
from .schemas import (
    CreateGameRequest,
    JoinGameRequest,
    MoveRequest,
    MoveType,
    GameResponse,
    JoinResponse,
    MoveResponse,
    LeaveResponse,
    PlayerInfo,
    PrizeInfo,
    PuzzleInfo,
    OutcomeInfo,
    HistoryInfo,
)


logger = logging.getLogger(__name__)

SERVER_OWNER_ID = "server"


def outcome_info(outcome: WheelOutcome | None) -> OutcomeInfo | None:
    if outcome is None:
        return None
    return OutcomeInfo(
        kind=outcome.kind.value,
        amount=outcome.amount,
        name=outcome.name,
        label=outcome.describe(),
    )


def game_to_response(state: GameState) -> GameResponse:
    """Convert a GameState to its client view."""
    puzzle = None
    if state.puzzle is not None:
        fmt = state.puzzle.special_format
        details = {
            k: v for k, v in {
                "before": fmt.before, "shared": fmt.shared, "after": fmt.after,
                "then": fmt.then, "now": fmt.now,
                "letter": fmt.letter, "question": fmt.question,
            }.items() if v
        }
        # Before & After and Then & Now pieces give the answer away
        if not state.puzzle.is_fully_revealed:
            details = {k: v for k, v in details.items() if k in ("letter", "question")}
        puzzle = PuzzleInfo(
            category=state.puzzle.category,
            board=state.puzzle.display(),
            revealed=sorted(state.puzzle.revealed),
            format=fmt.kind.value,
            format_details=details,
            answer=state.puzzle.text if state.puzzle.is_fully_revealed else None,
        )

    return GameResponse(
        game_id=state.game_id,
        join_code=state.join_code,
        status=state.status.value,
        round=state.round,
        is_final_round=state.is_final_round,
        consonants_remaining=state.consonants_remaining,
        vowels_remaining=state.vowels_remaining,
        rotation_mode=state.rotation_mode.value if state.rotation_mode else None,
        current_player_id=state.current_player_id,
        puzzle=puzzle,
        used_letters=sorted(state.used_letters),
        wheel_value=outcome_info(state.wheel_value),
        last_spin_result=outcome_info(state.last_spin_result),
        is_spinning=state.is_spinning,
        round_complete=state.round_complete,
        winner_id=state.winner_id,
        message=state.message,
        players=[
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                is_host=p.is_host,
                is_human=p.is_human,
                is_current_turn=state.is_current(p.player_id),
                round_money=p.round_money,
                total_money=p.total_money,
                prizes=[
                    PrizeInfo(name=z.name, value=z.value, round=z.round, description=z.description)
                    for z in p.prizes
                ],
                special_cards=list(p.special_cards),
            )
            for p in state.players.values()
        ],
        history=[
            HistoryInfo(
                kind=h.kind.value,
                player_id=h.player_id,
                player_name=h.player_name,
                value=h.value,
                result=h.result.value,
                timestamp=h.timestamp,
            )
            for h in state.history
        ],
        version=state.version,
        last_updated=state.last_updated,
    )


@dataclass
class GameService:
    """
    Main API service.

    Usage:
        service = GameService()
        joined = service.create_game(CreateGameRequest(name="Jen"))
        service.start_game(joined.game.join_code, joined.player_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    scheduler: Scheduler = field(default_factory=ThreadingScheduler)

    # Server-side computer players per join code
    _runners: dict[str, AutomaRunner] = field(default_factory=dict)
    _unsubscribers: dict[str, object] = field(default_factory=dict)

    def _watch(self, join_code: str) -> None:
        """Run computer seats for a game from the server."""
        if join_code in self._runners:
            return
        runner = AutomaRunner(
            self.session_manager,
            join_code,
            owner_id=SERVER_OWNER_ID,
            scheduler=self.scheduler,
        )

        def on_record(record):
            if record is None:
                self._unwatch(join_code)
                return
            runner.observe(state_from_record(record))

        self._runners[join_code] = runner
        self._unsubscribers[join_code] = self.session_manager.store.subscribe(join_code, on_record)

    def _unwatch(self, join_code: str) -> None:
        runner = self._runners.pop(join_code, None)
        if runner is not None:
            runner.stop()
        unsubscribe = self._unsubscribers.pop(join_code, None)
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("Stopped running computer seats for %s", join_code)

    def get_game(self, join_code: str) -> GameResponse:
        return game_to_response(self.session_manager.load_game(join_code))

    def create_game(self, request: CreateGameRequest) -> JoinResponse:
        state, host = self.session_manager.create_game(
            request.name,
            host_id=request.player_id,
            join_code=request.join_code,
        )
        self._watch(state.join_code)
        return JoinResponse(player_id=host.player_id, game=game_to_response(state))

    def join_game(self, join_code: str, request: JoinGameRequest) -> JoinResponse:
        state, player = self.session_manager.join_game(
            join_code,
            request.name,
            player_id=request.player_id,
        )
        self._watch(state.join_code)
        return JoinResponse(player_id=player.player_id, game=game_to_response(state))

    def leave_game(self, join_code: str, player_id: str) -> LeaveResponse:
        state = self.session_manager.remove_player(join_code, player_id)
        if state is None:
            self._unwatch(join_code.upper())
        return LeaveResponse(success=True, join_code=join_code.upper(), game_deleted=state is None)

    def start_game(self, join_code: str, player_id: str) -> GameResponse:
        state = self.session_manager.start_game(join_code, requested_by=player_id)
        self._watch(state.join_code)
        self._runners[state.join_code].observe(state)
        return game_to_response(state)

    def next_round(self, join_code: str, player_id: str) -> GameResponse:
        state = self.session_manager.advance_round(join_code, requested_by=player_id)
        return game_to_response(state)

    def restart_game(self, join_code: str, player_id: str) -> GameResponse:
        state = self.session_manager.restart_game(join_code, requested_by=player_id)
        return game_to_response(state)

    def submit_move(self, join_code: str, request: MoveRequest) -> MoveResponse:
        """Apply a move. Rejections come back with the current snapshot."""
        manager = self.session_manager
        if request.type == MoveType.SPIN:
            result = manager.spin(
                join_code, request.player_id, expected_version=request.expected_version,
            )
        elif request.type == MoveType.GUESS_LETTER:
            if not request.letter:
                raise InvalidAction("A letter is required")
            result = manager.guess_letter(
                join_code, request.player_id, request.letter, request.use_wild_card,
                expected_version=request.expected_version,
            )
        elif request.type == MoveType.SOLVE:
            if not request.attempt:
                raise InvalidAction("A solve attempt is required")
            result = manager.solve(
                join_code, request.player_id, request.attempt,
                expected_version=request.expected_version,
            )
        elif request.type == MoveType.END_TURN:
            result = manager.end_turn(
                join_code, request.player_id, request.next_player_id,
                expected_version=request.expected_version,
            )
        elif request.type == MoveType.CLAIM_TURN:
            state = manager.load_game(join_code)
            stuck = request.stuck_player_id or state.current_player_id
            result = manager.claim_turn(join_code, request.player_id, stuck)
        else:
            raise InvalidAction(f"Unknown move: {request.type}")

        return self._move_response(join_code, result)

    def _move_response(self, join_code: str, result: ActionResult) -> MoveResponse:
        if result.success:
            state = result.new_state
        else:
            state = self.session_manager.get_game(join_code)
        return MoveResponse(
            success=result.success,
            error=result.error,
            error_code=result.error_code,
            changes=result.state_changes,
            game=game_to_response(state) if state is not None else None,
        )

    def shutdown(self) -> None:
        for join_code in list(self._runners):
            self._unwatch(join_code)
