"""
Session Manager - Creates games, seats players, and applies actions.

LIFECYCLE:
1. First join creates the game under its join code (creator becomes host)
2. Seats are reconciled after every join/leave (humans vs. computer seats)
3. Host starts the game once seating is final
4. Actions are applied by the reducer against the CURRENT stored snapshot
5. A correct solve finishes the game (or the round, in solo play)
6. The record is deleted when the last player leaves

CONCURRENCY RULES:
- Every write carries the version it was computed from; the store rejects
  it with StaleWrite if another writer got there first
- On StaleWrite the snapshot is re-read and the transition re-run, so the
  current-player check always runs against the latest state
- Actions from a seat that no longer holds the turn are dropped (WrongTurn)
- Computer turns are single-flight: an observer must hold the turn lease
  for (seat, version) before acting for that seat
"""

from __future__ import annotations
from typing import Callable
import logging
import random
import string
import time
import uuid

from ..settings import GameSettings, DEFAULT_SETTINGS
from ..engine_core.state import GameState, GameStatus, PlayerState, TurnLease
from ..engine_core.action import Action, ActionResult
from ..engine_core.errors import (
    ErrorCode, GameNotFound, GameFull, InvalidAction, StaleWrite,
)
from ..engine_core.reducer import Reducer
from ..engine_core.rotation import turn_order
from ..engine_core.wheel import Wheel, WheelOutcome
from ..bots.policy import seat_may_act
from ..identity.resolver import new_player_id
from ..puzzles.generator import PuzzleGenerator
from ..store.adapter import StoreAdapter, InMemoryStore
from ..store.records import LeaseRecord, state_to_record, state_from_record


logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 6


def new_computer_id() -> str:
    return f"computer_{uuid.uuid4().hex[:9]}"


def target_computer_seats(human_count: int, settings: GameSettings) -> int:
    """
    How many computer seats a table with `human_count` humans should have.

    An empty table gets none rather than three, so the record of a game
    whose last human left is deleted instead of kept alive by computers.
    """
    if human_count == 0:
        return 0
    if human_count >= settings.max_human_seats:
        return 0
    if human_count == 2:
        return 1
    return settings.seat_count - human_count


def reconcile_seats(
    state: GameState,
    now: float,
    settings: GameSettings | None = None,
    id_factory: Callable[[], str] = new_computer_id,
) -> GameState:
    """
    Top up or trim computer seats for the current human count.

    Excess computer seats are always removed, newest first. Missing seats
    are added while the game is waiting; once it has started only the
    two-human table gets its single computer seat back.
    """
    settings = settings or DEFAULT_SETTINGS
    humans = state.human_count
    computers = state.ai_players
    target = target_computer_seats(humans, settings)

    new_state = state
    if len(computers) > target:
        for seat in computers[target:][::-1]:
            new_state = new_state.without_player(seat.player_id)
        logger.debug(
            "Removed %d computer seat(s) from %s (%d humans)",
            len(computers) - target, state.join_code, humans,
        )

    may_add = state.status == GameStatus.WAITING or humans == 2
    missing = target - len(computers)
    if missing > 0 and may_add:
        taken = {p.name for p in new_state.players.values()}
        n = 1
        for _ in range(missing):
            while f"Computer {n}" in taken:
                n += 1
            seat = PlayerState(
                player_id=id_factory(),
                name=f"Computer {n}",
                is_human=False,
                last_seen=now,
            )
            taken.add(seat.name)
            new_state = new_state.with_player(seat)
        logger.debug("Added %d computer seat(s) to %s", missing, state.join_code)

    return new_state


def repair_turn(before: GameState, after: GameState) -> GameState:
    """
    Keep `current_player_id` pointing at a seat after seats were removed.

    The turn passes to the next eligible seat after the departed one, in
    the seat order the game had before the change.
    """
    if after.status != GameStatus.ACTIVE or after.current_player_id in after.players:
        return after

    order = turn_order(after)
    seats = list(before.players)
    start = seats.index(before.current_player_id) if before.current_player_id in seats else -1
    target = None
    for offset in range(1, len(seats) + 1):
        candidate = seats[(start + offset) % len(seats)]
        if candidate in order:
            target = candidate
            break
    if target is None and order:
        target = order[0]

    if target is None:
        return after._copy_with(current_player_id=None)
    return after._copy_with(
        current_player_id=target,
        wheel_value=None,
        is_spinning=False,
        turn_in_progress=False,
        message=f"{after.players[target].name}'s turn!",
    )


class SessionManager:
    """
    Manages games stored in a StoreAdapter.

    Responsibilities:
    - Create games and seat players (with computer seat reconciliation)
    - Apply actions through the reducer with optimistic retries
    - Hand out computer-turn leases
    - Delete games nobody is seated at

    Usage:
        manager = SessionManager(store=InMemoryStore())
        state, host = manager.create_game("Jen")
        state, guest = manager.join_game(state.join_code, "Sam")
        manager.start_game(state.join_code, requested_by=host.player_id)
    """

    def __init__(
        self,
        store: StoreAdapter | None = None,
        generator: PuzzleGenerator | None = None,
        wheel: Wheel | None = None,
        settings: GameSettings | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        self.store = store or InMemoryStore(clock=clock)
        self.settings = settings or DEFAULT_SETTINGS
        self.rng = rng or random.Random()
        self.generator = generator or PuzzleGenerator(rng=self.rng)
        self.wheel = wheel or Wheel(rng=self.rng)
        self.reducer = Reducer(settings=self.settings)
        self.clock = clock

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def get_game(self, join_code: str) -> GameState | None:
        """Current snapshot, or None if no such game."""
        record = self.store.get(join_code.upper())
        return state_from_record(record) if record is not None else None

    def load_game(self, join_code: str) -> GameState:
        state = self.get_game(join_code)
        if state is None:
            raise GameNotFound(f"No game with code {join_code.upper()}")
        return state

    def _save(self, state: GameState, expected_version: int) -> GameState:
        stored = self.store.set(
            state.join_code,
            state_to_record(state),
            expected_version=expected_version,
        )
        return state_from_record(stored)

    def _update(self, join_code: str, fn: Callable[[GameState], GameState | None]) -> GameState:
        """
        Read-modify-write with optimistic retries.

        `fn` gets the latest snapshot and returns the new state, or None to
        leave the record untouched. Exceptions from `fn` propagate.
        """
        attempts = self.settings.max_write_retries
        for attempt in range(1, attempts + 1):
            state = self.load_game(join_code)
            new_state = fn(state)
            if new_state is None:
                return state
            try:
                return self._save(new_state, expected_version=state.version)
            except StaleWrite as e:
                logger.info("Stale write on %s (attempt %d/%d): %s", join_code, attempt, attempts, e.message)
        raise StaleWrite(f"Gave up writing {join_code} after {attempts} attempts")

    # ------------------------------------------------------------------
    # Create / join / leave
    # ------------------------------------------------------------------

    def new_join_code(self) -> str:
        return "".join(self.rng.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))

    def create_game(
        self,
        host_name: str,
        host_id: str | None = None,
        join_code: str | None = None,
    ) -> tuple[GameState, PlayerState]:
        """
        Seed a fresh waiting game with the caller as host.

        A generated join code is retried on collision; a supplied one that
        is already taken raises InvalidAction.
        """
        host_name = host_name.strip()
        if not host_name:
            raise InvalidAction("Display name is required")

        now = self.clock()
        host = PlayerState(
            player_id=host_id or new_player_id(),
            name=host_name,
            is_host=True,
            last_seen=now,
        )

        for _ in range(self.settings.max_write_retries):
            code = (join_code or self.new_join_code()).upper()
            state = GameState(
                game_id=str(uuid.uuid4()),
                join_code=code,
                created_at=now,
                max_human_seats=self.settings.max_human_seats,
                puzzle=self.generator.next(),
                message=f"Waiting for players... {host_name} is the host.",
                players={host.player_id: host},
            )
            state = reconcile_seats(state, now, self.settings)
            try:
                saved = self._save(state, expected_version=0)
            except StaleWrite:
                if join_code:
                    raise InvalidAction(f"Join code {code} is already in use")
                logger.info("Join code %s collided, drawing another", code)
                continue
            logger.info("Created game %s for host %s (%s)", code, host_name, host.player_id)
            return saved, saved.players[host.player_id]

        raise InvalidAction("Could not allocate a join code")

    def join_game(
        self,
        join_code: str,
        name: str,
        player_id: str | None = None,
    ) -> tuple[GameState, PlayerState]:
        """
        Seat a human in an existing game.

        Idempotent: a player already seated under the same id or display
        name gets the existing record back and nothing is written.
        """
        name = name.strip()
        if not name:
            raise InvalidAction("Display name is required")
        code = join_code.upper()
        seated: dict[str, PlayerState] = {}

        def seat(state: GameState) -> GameState | None:
            existing = state.get_player(player_id) if player_id else None
            if existing is None:
                existing = state.find_by_name(name)
                if existing is not None and not existing.is_human:
                    raise InvalidAction(f"{name} is taken by a computer seat")
            if existing is not None:
                seated["player"] = existing
                return None

            if state.human_count >= state.max_human_seats:
                raise GameFull(f"Game {code} already has {state.max_human_seats} players")

            now = self.clock()
            player = PlayerState(
                player_id=player_id or new_player_id(),
                name=name,
                is_host=state.host is None,
                last_seen=now,
            )
            seated["player"] = player
            new_state = reconcile_seats(state.with_player(player), now, self.settings)
            new_state = repair_turn(state, new_state)
            return new_state._copy_with(message=f"{name} joined the game")

        state = self._update(code, seat)
        player = state.players.get(seated["player"].player_id, seated["player"])
        logger.info("%s seated in %s as %s (%d humans)", name, code, player.player_id, state.human_count)
        return state, player

    def join_or_create(
        self,
        join_code: str,
        name: str,
        player_id: str | None = None,
    ) -> tuple[GameState, PlayerState]:
        """Join the game under `join_code`, creating it on first join."""
        if self.get_game(join_code) is None:
            try:
                return self.create_game(name, host_id=player_id, join_code=join_code)
            except InvalidAction:
                logger.info("Game %s created concurrently, joining instead", join_code.upper())
        return self.join_game(join_code, name, player_id=player_id)

    def remove_player(self, join_code: str, player_id: str) -> GameState | None:
        """
        Delete a seat. Returns the new snapshot, or None if the game was
        deleted because nobody is left.
        """
        code = join_code.upper()
        attempts = self.settings.max_write_retries
        for attempt in range(1, attempts + 1):
            state = self.load_game(code)
            leaving = state.get_player(player_id)
            if leaving is None:
                return state

            new_state = reconcile_seats(state.without_player(player_id), self.clock(), self.settings)
            if not new_state.players:
                self.store.remove(code)
                logger.info("Last player left %s, game deleted", code)
                return None

            if new_state.host is None and new_state.human_players:
                heir = new_state.human_players[0]._copy_with(is_host=True)
                new_state = new_state.with_player(heir)
            new_state = repair_turn(state, new_state)
            if new_state.current_player_id == state.current_player_id:
                new_state = new_state._copy_with(message=f"{leaving.name} left the game")

            try:
                saved = self._save(new_state, expected_version=state.version)
            except StaleWrite as e:
                logger.info("Stale write on %s (attempt %d/%d): %s", code, attempt, attempts, e.message)
                continue
            logger.info("%s left %s (%d seats remain)", leaving.name, code, len(saved.players))
            return saved
        raise StaleWrite(f"Gave up writing {code} after {attempts} attempts")

    def heartbeat(self, join_code: str, player_id: str) -> GameState:
        """Stamp a seat's last_seen."""
        def touch(state: GameState) -> GameState | None:
            player = state.get_player(player_id)
            if player is None:
                return None
            return state.with_player(player._copy_with(last_seen=self.clock()))
        return self._update(join_code.upper(), touch)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _check_host(self, state: GameState, requested_by: str | None) -> None:
        if requested_by is None:
            return
        player = state.get_player(requested_by)
        if player is None:
            raise InvalidAction(f"{requested_by} is not seated in {state.join_code}")
        if not player.is_host:
            raise InvalidAction("Only the host can do that")

    def _apply_lifecycle(
        self,
        join_code: str,
        requested_by: str | None,
        build: Callable[[GameState], Action],
    ) -> GameState:
        def transition(state: GameState) -> GameState:
            self._check_host(state, requested_by)
            result = self.reducer.apply(state, build(state))
            if not result.success:
                raise InvalidAction(result.error)
            return result.new_state
        return self._update(join_code.upper(), transition)

    def start_game(self, join_code: str, requested_by: str | None = None) -> GameState:
        """Host starts play once the table holds its full seat count."""
        def build(state: GameState) -> Action:
            if len(state.players) != self.settings.seat_count:
                raise InvalidAction(
                    f"Need {self.settings.seat_count} seats to start, have {len(state.players)}"
                )
            return Action.start_game(state.puzzle or self.generator.next(), player_id=requested_by)

        state = self._apply_lifecycle(join_code, requested_by, build)
        logger.info("Game %s started in %s mode", state.join_code, state.rotation_mode.value)
        return state

    def advance_round(self, join_code: str, requested_by: str | None = None) -> GameState:
        """Draw the next puzzle and start the next round (or restart, per the final-round gate)."""
        state = self._apply_lifecycle(
            join_code,
            requested_by,
            lambda s: Action.next_round(self.generator.next(), player_id=requested_by),
        )
        logger.info("Game %s now in round %d", state.join_code, state.round)
        return state

    def restart_game(self, join_code: str, requested_by: str | None = None) -> GameState:
        state = self._apply_lifecycle(
            join_code,
            requested_by,
            lambda s: Action.restart_game(self.generator.next(), player_id=requested_by),
        )
        logger.info("Game %s restarted", state.join_code)
        return state

    # ------------------------------------------------------------------
    # Turn actions
    # ------------------------------------------------------------------

    def submit(self, join_code: str, action: Action) -> ActionResult:
        """
        Apply a turn action to the latest snapshot.

        Rule violations come back as failure results with the record
        untouched. A move made from an older snapshot than the stored one
        (`payload.expected_version`) is dropped as STALE_WRITE; conflicts
        with writes that land while the move is applied are retried.
        StoreUnavailable propagates.
        """
        code = join_code.upper()
        seen_version = action.payload.expected_version
        attempts = self.settings.max_write_retries
        for attempt in range(1, attempts + 1):
            state = self.load_game(code)
            if seen_version is not None and seen_version != state.version:
                logger.info(
                    "Dropped %s from %s in %s: made at version %d, game is at %d",
                    action.action_type.value, action.player_id, code, seen_version, state.version,
                )
                return ActionResult.failure(
                    f"Game changed since version {seen_version}",
                    error_code=ErrorCode.STALE_WRITE,
                )
            result = self.reducer.apply(state, action)
            if not result.success:
                if result.error_code == ErrorCode.WRONG_TURN:
                    logger.info(
                        "Dropped %s from %s in %s: turn belongs to %s",
                        action.action_type.value, action.player_id, code, state.current_player_id,
                    )
                else:
                    logger.debug("Rejected %s in %s: %s", action.action_type.value, code, result.error)
                return result
            try:
                result.new_state = self._save(result.new_state, expected_version=state.version)
            except StaleWrite as e:
                logger.info("Stale write on %s (attempt %d/%d): %s", code, attempt, attempts, e.message)
                continue
            return result

        logger.warning("Gave up applying %s to %s after %d attempts", action.action_type.value, code, attempts)
        return ActionResult.failure(
            f"Could not apply {action.action_type.value} after {attempts} attempts",
            error_code=ErrorCode.STALE_WRITE,
        )

    def begin_spin(
        self,
        join_code: str,
        player_id: str,
        expected_version: int | None = None,
    ) -> ActionResult:
        return self.submit(join_code, Action.begin_spin(player_id, expected_version))

    def resolve_spin(
        self,
        join_code: str,
        player_id: str,
        outcome: WheelOutcome | None = None,
    ) -> ActionResult:
        """Draw (unless given) and apply the spin's outcome."""
        return self.submit(join_code, Action.spin(player_id, outcome or self.wheel.spin()))

    def spin(
        self,
        join_code: str,
        player_id: str,
        outcome: WheelOutcome | None = None,
        expected_version: int | None = None,
    ) -> ActionResult:
        """Begin and resolve a spin with no pause in between."""
        begun = self.begin_spin(join_code, player_id, expected_version)
        if not begun.success:
            return begun
        return self.resolve_spin(join_code, player_id, outcome)

    def guess_letter(
        self,
        join_code: str,
        player_id: str,
        letter: str,
        use_wild_card: bool = False,
        expected_version: int | None = None,
    ) -> ActionResult:
        return self.submit(
            join_code, Action.guess_letter(player_id, letter, use_wild_card, expected_version),
        )

    def solve(
        self,
        join_code: str,
        player_id: str,
        attempt: str,
        expected_version: int | None = None,
    ) -> ActionResult:
        return self.submit(join_code, Action.solve(player_id, attempt, expected_version))

    def end_turn(
        self,
        join_code: str,
        player_id: str,
        next_player_id: str | None = None,
        expected_version: int | None = None,
    ) -> ActionResult:
        return self.submit(join_code, Action.end_turn(player_id, next_player_id, expected_version))

    def claim_turn(self, join_code: str, claimant_id: str, stuck_id: str) -> ActionResult:
        """
        Force the turn past a seat that appears stuck.

        Any seated human may claim. `stuck_id` is the seat the claimant saw
        holding the turn; the claim is dropped if the turn already moved.
        """
        state = self.load_game(join_code)
        claimant = state.get_player(claimant_id)
        if claimant is None or not claimant.is_human:
            return ActionResult.failure(f"{claimant_id} cannot claim turns in {state.join_code}")
        logger.info("%s claims the turn from %s in %s", claimant.name, stuck_id, state.join_code)
        return self.submit(join_code, Action.end_turn(stuck_id))

    # ------------------------------------------------------------------
    # Computer turn leases
    # ------------------------------------------------------------------

    def acquire_turn_lease(
        self,
        join_code: str,
        seat_id: str,
        owner_id: str,
        version: int,
    ) -> bool:
        """
        Claim the right to act for a computer seat at a given state version.

        Granted only if the snapshot is still at `version`, the seat is due
        to act, and no other owner holds an unexpired lease on the seat.
        The lease is written with the version check, so of several racing
        observers exactly one wins.
        """
        state = self.get_game(join_code)
        if state is None or state.version != version:
            return False
        if not seat_may_act(state, seat_id):
            return False

        now = self.clock()
        if state.ai_lease is not None and state.ai_lease.blocks(owner_id, seat_id, now):
            logger.debug(
                "Lease on %s/%s held by %s until %.1f",
                state.join_code, seat_id, state.ai_lease.owner_id, state.ai_lease.expires_at,
            )
            return False

        lease = TurnLease(
            owner_id=owner_id,
            seat_id=seat_id,
            version=version,
            expires_at=now + self.settings.ai_lease_seconds,
        )
        try:
            self.store.patch(
                state.join_code,
                {"ai_lease": LeaseRecord(
                    owner_id=lease.owner_id,
                    seat_id=lease.seat_id,
                    version=lease.version,
                    expires_at=lease.expires_at,
                ).model_dump()},
                expected_version=version,
            )
        except (StaleWrite, KeyError):
            logger.debug("Lost lease race on %s/%s at version %d", state.join_code, seat_id, version)
            return False
        return True
