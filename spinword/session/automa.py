"""
Automa Runner - Drives computer seats from one observing client.

Every connected client runs one of these. On each snapshot it checks
whether a computer seat holds the turn and, if so, schedules a step after
the "thinking" delay. When the step fires it must win the turn lease for
(seat, version) before asking the agent for a move, so only one observer
acts for a given seat and state.

A pending step is cancelled as soon as a snapshot shows a different seat
on turn (or no computer turn at all). If another observer holds the lease,
the runner checks back when that lease expires, so a disconnected owner
cannot stall the game.
"""

from __future__ import annotations
import logging
import threading

from ..settings import GameSettings
from ..engine_core.state import GameState
from ..engine_core.action import ActionResult
from ..bots.policy import BotPolicy, seat_may_act
from ..bots.computer_agent import ComputerAgent
from .scheduler import Scheduler


logger = logging.getLogger(__name__)


class AutomaRunner:
    """
    Schedules and executes computer turns for one game.

    Usage:
        runner = AutomaRunner(manager, "ABC123", owner_id="player_1", scheduler=scheduler)
        store.subscribe("ABC123", lambda rec: runner.observe(state_from_record(rec)))
    """

    def __init__(
        self,
        manager,
        join_code: str,
        owner_id: str,
        scheduler: Scheduler,
        agent: BotPolicy | None = None,
        settings: GameSettings | None = None,
    ):
        self.manager = manager
        self.join_code = join_code.upper()
        self.owner_id = owner_id
        self.scheduler = scheduler
        self.settings = settings or manager.settings
        self.agent = agent or ComputerAgent(settings=self.settings, rng=manager.rng, wheel=manager.wheel)

        self._token: int | None = None
        self._seat_id: str | None = None
        self._lock = threading.Lock()
        self.last_result: ActionResult | None = None
        self.actions_taken = 0
        self.stopped = False

    def observe(self, state: GameState | None) -> None:
        """React to a snapshot: schedule, keep, or cancel the pending step."""
        if self.stopped:
            return
        seat = state.current_player if state is not None else None
        if seat is None or not seat_may_act(state, seat.player_id):
            self.cancel()
            return

        delay = self.settings.ai_think_delay
        lease = state.ai_lease
        now = self.manager.clock()
        if lease is not None and lease.blocks(self.owner_id, seat.player_id, now):
            delay = max(delay, lease.expires_at - now)

        with self._lock:
            if self._token is not None and self._seat_id == seat.player_id:
                return
            if self._token is not None:
                self.scheduler.cancel(self._token)
            self._seat_id = seat.player_id
            seat_id = seat.player_id
            self._token = self.scheduler.schedule(delay, lambda: self._step(seat_id))

    def cancel(self) -> None:
        with self._lock:
            if self._token is not None:
                self.scheduler.cancel(self._token)
            self._token = None
            self._seat_id = None

    def stop(self) -> None:
        self.stopped = True
        self.cancel()

    def _step(self, seat_id: str) -> None:
        with self._lock:
            self._token = None
            self._seat_id = None
        if self.stopped:
            return

        state = self.manager.get_game(self.join_code)
        if state is None or not seat_may_act(state, seat_id):
            return

        if not self.manager.acquire_turn_lease(self.join_code, seat_id, self.owner_id, state.version):
            logger.debug("%s did not get the lease for %s", self.owner_id, seat_id)
            # Check back once the holder's lease could have lapsed
            latest = self.manager.get_game(self.join_code)
            if latest is not None:
                self.observe(latest)
            return

        state = self.manager.get_game(self.join_code)
        if state is None:
            return
        decision = self.agent.decide(state, seat_id)
        if decision is None:
            return

        logger.info("%s in %s: %s", state.players[seat_id].name, self.join_code, decision.explanation)
        decision.action.payload.expected_version = state.version
        result = self.manager.submit(self.join_code, decision.action)
        self.last_result = result
        if result.success:
            self.actions_taken += 1
        elif not result.dropped:
            logger.warning("Computer move rejected in %s: %s", self.join_code, result.error)
