"""
Client View - One connected player's view of a game.

Each connecting process holds a ClientView. It:
- Joins (or creates) the game under a durable identity
- Subscribes to the record and treats every snapshot as authoritative
- Derives whether it is this player's turn
- Sends the player's intents to the Session Manager
- Runs computer seats through its AutomaRunner (single-flight via leases)

Rejections the player should see (bad letter, not enough money, table
full) land in `last_error`. Turn races (WrongTurn/StaleWrite) are dropped
quietly. A lost store connection sets `offline` until `reconnect()`.
"""

from __future__ import annotations
from typing import Callable
import logging
import threading

from ..engine_core.state import GameState, GameStatus, PlayerState
from ..engine_core.action import ActionResult
from ..engine_core.errors import SpinwordError, StoreUnavailable
from ..identity.resolver import IdentityResolver
from ..store.records import state_from_record
from .automa import AutomaRunner
from .manager import SessionManager
from .scheduler import Scheduler


logger = logging.getLogger(__name__)


class ClientView:
    """
    A player's live connection to one game.

    Usage:
        view = ClientView(manager, "ABC123", "Jen", scheduler=scheduler)
        view.connect()
        if view.is_my_turn:
            view.spin()
    """

    def __init__(
        self,
        manager: SessionManager,
        join_code: str,
        display_name: str,
        scheduler: Scheduler,
        resolver: IdentityResolver | None = None,
        run_computer_seats: bool = True,
        on_update: Callable[[GameState | None], None] | None = None,
    ):
        self.manager = manager
        self.join_code = join_code.upper()
        self.display_name = display_name
        self.scheduler = scheduler
        self.resolver = resolver or IdentityResolver()
        self.on_update = on_update

        self.player_id: str | None = None
        self.state: GameState | None = None
        self.last_error: str | None = None
        self.offline = False

        self.automa = AutomaRunner(
            manager, self.join_code, owner_id="pending", scheduler=scheduler,
        ) if run_computer_seats else None

        self._unsubscribe: Callable[[], None] | None = None
        self._pending: set[int] = set()
        self._turn_holder: str | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self) -> PlayerState | None:
        """Join (or create) the game and start following it."""
        player_id = self.resolver.resolve(self.join_code, self.display_name)
        try:
            state, player = self.manager.join_or_create(self.join_code, self.display_name, player_id)
        except StoreUnavailable as e:
            self._go_offline(e)
            return None
        except SpinwordError as e:
            self.last_error = e.message
            return None

        self.player_id = player.player_id
        self.resolver.remember(self.join_code, self.display_name, player.player_id)
        if self.automa is not None:
            self.automa.owner_id = player.player_id
        if self._unsubscribe is None:
            self._unsubscribe = self.manager.store.subscribe(self.join_code, self._on_record)
        self.offline = False
        self._apply_snapshot(state)
        logger.info("%s connected to %s as %s", self.display_name, self.join_code, self.player_id)
        return player

    def reconnect(self) -> PlayerState | None:
        """Retry after the store came back."""
        return self.connect()

    def close(self) -> None:
        """Stop following the game without leaving the table."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_pending()
        if self.automa is not None:
            self.automa.stop()

    def leave(self) -> None:
        """Give up the seat and stop following the game."""
        player_id = self.player_id
        self.close()
        if player_id is None:
            return
        try:
            self.manager.remove_player(self.join_code, player_id)
        except StoreUnavailable as e:
            self._go_offline(e)
        self.player_id = None
        self.state = None

    def _go_offline(self, error: StoreUnavailable) -> None:
        logger.warning("%s lost the store connection: %s", self.display_name, error.message)
        self.offline = True
        self.last_error = f"{error.message}. Retry to reconnect."

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _on_record(self, record: dict | None) -> None:
        self._apply_snapshot(state_from_record(record) if record is not None else None)

    def _apply_snapshot(self, state: GameState | None) -> None:
        with self._lock:
            if state is not None and self.state is not None and state.version < self.state.version:
                return
            self.state = state

            if state is not None and self.player_id is not None:
                seat = self.resolver.reconcile(self.join_code, self.display_name, state)
                if seat is not None and seat.player_id != self.player_id:
                    self.player_id = seat.player_id
                    if self.automa is not None:
                        self.automa.owner_id = seat.player_id

            holder = state.current_player_id if state is not None else None
            turn_moved = holder != self._turn_holder
            self._turn_holder = holder

        if turn_moved:
            self._cancel_pending()
        if self.automa is not None:
            self.automa.observe(state)
        if self.on_update is not None:
            self.on_update(state)

    def _cancel_pending(self) -> None:
        with self._lock:
            tokens = list(self._pending)
            self._pending.clear()
        self.scheduler.cancel_all(tokens)

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------

    @property
    def me(self) -> PlayerState | None:
        if self.state is None or self.player_id is None:
            return None
        return self.state.get_player(self.player_id)

    @property
    def is_my_turn(self) -> bool:
        return (
            self.state is not None
            and self.state.status == GameStatus.ACTIVE
            and self.state.is_current(self.player_id)
        )

    @property
    def is_host(self) -> bool:
        me = self.me
        return me is not None and me.is_host

    @property
    def seen_version(self) -> int | None:
        """Version of the snapshot this client is acting on."""
        return self.state.version if self.state is not None else None

    def render(self) -> str:
        """Plain-text rendering of the table."""
        state = self.state
        if state is None:
            return f"Game {self.join_code} is not available"

        lines = [f"Game {state.join_code} - round {state.round} ({state.status.value})"]
        if state.puzzle is not None:
            lines.append(f"Category: {state.puzzle.category}")
            lines.append(f"  {' '.join(state.puzzle.display())}")
        if state.used_letters:
            lines.append(f"Used: {' '.join(sorted(state.used_letters))}")
        if state.is_final_round:
            lines.append(
                f"Final round: {state.consonants_remaining} consonants, "
                f"{state.vowels_remaining} vowel left"
            )
        for p in state.players.values():
            marker = ">" if state.is_current(p.player_id) else " "
            tag = "" if p.is_human else " (computer)"
            you = " (you)" if p.player_id == self.player_id else ""
            lines.append(f"{marker} {p.name}{tag}{you}: ${p.round_money} round / ${p.total_money} total")
        if state.message:
            lines.append(state.message)
        if self.last_error:
            lines.append(f"! {self.last_error}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def _send(self, fn, *args) -> ActionResult | None:
        if self.player_id is None:
            self.last_error = "Not connected"
            return None
        try:
            result = fn(self.join_code, *args)
        except StoreUnavailable as e:
            self._go_offline(e)
            return None
        except SpinwordError as e:
            self.last_error = e.message
            return None

        if isinstance(result, ActionResult):
            if result.success:
                self.last_error = None
            elif result.dropped:
                logger.debug("%s's %s was dropped: %s", self.display_name, fn.__name__, result.error)
            else:
                self.last_error = result.error
        else:
            self.last_error = None
        return result

    def spin(self) -> ActionResult | None:
        """Start the wheel; the outcome lands after the spin delay."""
        result = self._send(self.manager.begin_spin, self.player_id, self.seen_version)
        if result is None or not result.success:
            return result

        player_id = self.player_id

        def land():
            with self._lock:
                self._pending.discard(token)
            self._send(self.manager.resolve_spin, player_id)

        token = self.scheduler.schedule(self.manager.settings.spin_delay, land)
        with self._lock:
            self._pending.add(token)
        return result

    def guess_letter(self, letter: str, use_wild_card: bool = False) -> ActionResult | None:
        return self._send(
            self.manager.guess_letter, self.player_id, letter, use_wild_card, self.seen_version,
        )

    def solve(self, attempt: str) -> ActionResult | None:
        return self._send(self.manager.solve, self.player_id, attempt, self.seen_version)

    def claim_turn(self) -> ActionResult | None:
        """Force the turn past whoever holds it now."""
        if self.state is None or self.state.current_player_id is None:
            self.last_error = "Nobody holds the turn"
            return None
        return self._send(self.manager.claim_turn, self.player_id, self.state.current_player_id)

    def start(self):
        return self._send(self.manager.start_game, self.player_id)

    def next_round(self):
        return self._send(self.manager.advance_round, self.player_id)

    def restart(self):
        return self._send(self.manager.restart_game, self.player_id)
