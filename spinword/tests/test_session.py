"""
Tests for the Session Manager.

Tests:
- Creating, joining and leaving games
- Computer seat reconciliation
- Applying actions with optimistic retries
- Turn claims and computer-turn leases
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.errors import (
    ErrorCode, GameFull, GameNotFound, InvalidAction, StaleWrite, StoreUnavailable,
)
from ..engine_core.state import GameState, GameStatus, PlayerState, RotationMode
from ..engine_core.wheel import WheelOutcome
from ..settings import CONSONANTS, GameSettings
from ..session import reconcile_seats, repair_turn, target_computer_seats
from ..store import InMemoryStore


def first_consonant(state: GameState) -> str:
    return next(c for c in state.puzzle.text if c in CONSONANTS)


@pytest.fixture
def solo_game(manager):
    """Started solo game: Jen plus two computer seats."""
    state, host = manager.create_game("Jen")
    state = manager.start_game(state.join_code, requested_by=host.player_id)
    return state, host


@pytest.fixture
def shared_game(manager):
    """Started shared game: Jen, one filler computer seat, Sam."""
    state, host = manager.create_game("Jen")
    state, guest = manager.join_game(state.join_code, "Sam")
    state = manager.start_game(state.join_code, requested_by=host.player_id)
    return state, host, guest


class TestSeatTargets:
    """Tests for how many computer seats a table gets."""

    @pytest.mark.parametrize("humans,computers", [(0, 0), (1, 2), (2, 1), (3, 0), (4, 0)])
    def test_target(self, humans, computers):
        assert target_computer_seats(humans, GameSettings()) == computers

    def test_reconcile_adds_numbered_seats(self):
        state = GameState(
            game_id="g", join_code="ABC123",
            players={"p1": PlayerState(player_id="p1", name="Jen", is_host=True)},
        )
        ids = iter(["c1", "c2"])

        new_state = reconcile_seats(state, now=5.0, id_factory=lambda: next(ids))

        assert [p.name for p in new_state.ai_players] == ["Computer 1", "Computer 2"]
        assert new_state.players["c1"].last_seen == 5.0

    def test_reconcile_removes_newest_first(self, solo_state):
        state = solo_state._copy_with(status=GameStatus.WAITING).with_player(
            PlayerState(player_id="p2", name="Sam")
        )

        new_state = reconcile_seats(state, now=0.0)

        assert list(new_state.players) == ["p1", "c1", "p2"]

    def test_no_top_up_after_start(self, solo_state):
        """A started solo table that lost a computer seat is not refilled."""
        state = solo_state.without_player("c2")

        assert reconcile_seats(state, now=0.0) == state

    def test_two_human_table_gets_its_computer_back(self, shared_state):
        state = shared_state.without_player("c1")

        new_state = reconcile_seats(state, now=0.0, id_factory=lambda: "c9")

        assert new_state.players["c9"].name == "Computer 1"

    def test_repair_turn_moves_to_next_seat(self, solo_state):
        after = solo_state.without_player("p1")._copy_with(current_player_id="p1")

        repaired = repair_turn(solo_state, after)

        assert repaired.current_player_id == "c1"

    def test_repair_turn_leaves_valid_turn(self, solo_state):
        assert repair_turn(solo_state, solo_state) is solo_state


class TestCreateAndJoin:
    """Tests for seating players."""

    def test_create_seeds_waiting_game(self, manager):
        state, host = manager.create_game("Jen")

        assert state.status == GameStatus.WAITING
        assert len(state.join_code) == 6
        assert state.version == 1
        assert host.is_host
        assert host.name == "Jen"
        assert [p.name for p in state.ai_players] == ["Computer 1", "Computer 2"]
        assert state.puzzle is not None

    def test_create_with_code(self, manager):
        state, _ = manager.create_game("Jen", join_code="abc123")

        assert state.join_code == "ABC123"
        assert manager.get_game("abc123") is not None

    def test_create_with_taken_code(self, manager):
        manager.create_game("Jen", join_code="ABC123")

        with pytest.raises(InvalidAction):
            manager.create_game("Sam", join_code="ABC123")

    def test_create_needs_name(self, manager):
        with pytest.raises(InvalidAction):
            manager.create_game("   ")

    def test_second_human_replaces_computer(self, manager):
        state, _ = manager.create_game("Jen")

        state, sam = manager.join_game(state.join_code, "Sam")

        assert state.human_count == 2
        assert len(state.ai_players) == 1
        assert not sam.is_host

    def test_third_human_removes_computers(self, manager):
        state, _ = manager.create_game("Jen")
        manager.join_game(state.join_code, "Sam")

        state, _ = manager.join_game(state.join_code, "Kim")

        assert [p.name for p in state.players.values()] == ["Jen", "Sam", "Kim"]

    def test_table_full(self, manager):
        state, _ = manager.create_game("Jen")
        manager.join_game(state.join_code, "Sam")
        manager.join_game(state.join_code, "Kim")

        with pytest.raises(GameFull):
            manager.join_game(state.join_code, "Lee")

    def test_join_is_idempotent(self, manager):
        """Joining twice under the same name returns the same seat."""
        state, host = manager.create_game("Jen")

        again, player = manager.join_game(state.join_code, "Jen")

        assert player.player_id == host.player_id
        assert again.version == state.version

    def test_join_by_id(self, manager):
        state, host = manager.create_game("Jen")

        _, player = manager.join_game(state.join_code, "Jenny", player_id=host.player_id)

        assert player.player_id == host.player_id

    def test_join_as_computer_name(self, manager):
        state, _ = manager.create_game("Jen")

        with pytest.raises(InvalidAction):
            manager.join_game(state.join_code, "Computer 1")

    def test_join_missing_game(self, manager):
        with pytest.raises(GameNotFound):
            manager.join_game("NOPE99", "Jen")

    def test_join_or_create(self, manager):
        state, host = manager.join_or_create("new123", "Jen")

        assert state.join_code == "NEW123"
        assert host.is_host

        state, sam = manager.join_or_create("NEW123", "Sam")
        assert not sam.is_host
        assert state.human_count == 2

    def test_join_mid_game(self, solo_game, manager):
        """A second human can join a running solo game."""
        state, _ = solo_game

        state, sam = manager.join_game(state.join_code, "Sam")

        assert sam.player_id in state.players
        assert len(state.ai_players) == 1
        assert state.rotation_mode == RotationMode.SOLO


class TestLeave:
    """Tests for removing seats."""

    def test_last_human_deletes_game(self, manager):
        state, host = manager.create_game("Jen")

        result = manager.remove_player(state.join_code, host.player_id)

        assert result is None
        assert manager.get_game(state.join_code) is None

    def test_host_handed_on(self, manager):
        state, host = manager.create_game("Jen")
        manager.join_game(state.join_code, "Sam")

        state = manager.remove_player(state.join_code, host.player_id)

        assert state.host.name == "Sam"
        assert len(state.ai_players) == 2

    def test_turn_moves_when_holder_leaves(self, shared_game, manager):
        """The departing seat's turn goes to the next human."""
        state, host, guest = shared_game

        state = manager.remove_player(state.join_code, host.player_id)

        assert state.current_player_id == guest.player_id
        assert state.host.player_id == guest.player_id

    def test_unknown_player(self, manager):
        state, _ = manager.create_game("Jen")

        assert manager.remove_player(state.join_code, "ghost").version == state.version

    def test_heartbeat(self, manager, scheduler):
        state, host = manager.create_game("Jen")
        scheduler.advance(30)

        state = manager.heartbeat(state.join_code, host.player_id)

        assert state.players[host.player_id].last_seen == 1030.0


class TestLifecycle:
    """Tests for start, next round and restart."""

    def test_start_solo(self, solo_game):
        state, host = solo_game

        assert state.status == GameStatus.ACTIVE
        assert state.rotation_mode == RotationMode.SOLO
        assert state.current_player_id == host.player_id

    def test_start_shared(self, shared_game):
        state, host, _ = shared_game

        assert state.rotation_mode == RotationMode.SHARED
        assert state.current_player_id == host.player_id

    def test_only_host_starts(self, manager):
        state, _ = manager.create_game("Jen")
        state, sam = manager.join_game(state.join_code, "Sam")

        with pytest.raises(InvalidAction):
            manager.start_game(state.join_code, requested_by=sam.player_id)

    def test_start_twice(self, solo_game, manager):
        state, host = solo_game

        with pytest.raises(InvalidAction):
            manager.start_game(state.join_code, requested_by=host.player_id)

    def test_next_round_draws_new_puzzle(self, solo_game, manager):
        state, host = solo_game
        manager.solve(state.join_code, host.player_id, state.puzzle.text)

        new_state = manager.advance_round(state.join_code, requested_by=host.player_id)

        assert new_state.round == 2
        assert new_state.puzzle.text != state.puzzle.text
        assert new_state.players[host.player_id].total_money == 0

    def test_restart(self, shared_game, manager):
        state, host, _ = shared_game
        manager.solve(state.join_code, host.player_id, state.puzzle.text)

        new_state = manager.restart_game(state.join_code, requested_by=host.player_id)

        assert new_state.status == GameStatus.ACTIVE
        assert new_state.round == 1
        assert new_state.history == ()


class TestSubmit:
    """Tests for turn actions through the store."""

    def test_spin_and_call(self, solo_game, manager):
        state, host = solo_game
        letter = first_consonant(state)

        manager.spin(state.join_code, host.player_id, WheelOutcome.money(500))
        result = manager.guess_letter(state.join_code, host.player_id, letter)

        assert result.success
        stored = manager.load_game(state.join_code)
        assert stored.players[host.player_id].round_money == 500 * state.puzzle.count(letter)
        assert stored.version == result.new_state.version

    def test_wrong_turn_dropped(self, shared_game, manager):
        """A move from the seat without the turn leaves the record untouched."""
        state, _, guest = shared_game

        result = manager.spin(state.join_code, guest.player_id, WheelOutcome.money(500))

        assert not result.success
        assert result.error_code == ErrorCode.WRONG_TURN
        assert manager.load_game(state.join_code).version == state.version

    def test_rule_break_reported(self, solo_game, manager):
        state, host = solo_game

        result = manager.guess_letter(state.join_code, host.player_id, "B")

        assert result.error_code == ErrorCode.INVALID_ACTION
        assert manager.load_game(state.join_code).version == state.version

    def test_begin_spin_then_resolve(self, solo_game, manager):
        state, host = solo_game

        begun = manager.begin_spin(state.join_code, host.player_id)
        landed = manager.resolve_spin(state.join_code, host.player_id, WheelOutcome.money(700))

        assert begun.new_state.is_spinning
        assert not landed.new_state.is_spinning
        assert landed.new_state.wheel_value == WheelOutcome.money(700)

    def test_store_outage_propagates(self, solo_game, manager, store):
        state, host = solo_game
        store.set_available(False)

        with pytest.raises(StoreUnavailable):
            manager.spin(state.join_code, host.player_id)


class RacingStore(InMemoryStore):
    """Store that lets another writer in just before each of our writes."""

    def __init__(self, races: int, **kwargs):
        super().__init__(**kwargs)
        self.races = races

    def set(self, key, value, expected_version=None):
        if self.races > 0 and expected_version:
            self.races -= 1
            current = self.get(key)
            current["message"] = "someone else wrote"
            super().set(key, current)
        return super().set(key, value, expected_version=expected_version)


class TestStaleWrites:
    """Tests for retrying after concurrent writes."""

    def _manager(self, manager, races):
        store = RacingStore(races=0, clock=manager.clock)
        manager.store = store
        state, host = manager.create_game("Jen")
        state = manager.start_game(state.join_code, requested_by=host.player_id)
        store.races = races
        return state, host

    def test_retries_and_succeeds(self, manager):
        """One lost race is retried against the fresh snapshot."""
        state, host = self._manager(manager, races=1)

        result = manager.spin(state.join_code, host.player_id, WheelOutcome.money(600))

        assert result.success
        assert manager.load_game(state.join_code).wheel_value == WheelOutcome.money(600)

    def test_gives_up_after_retries(self, manager):
        state, host = self._manager(manager, races=100)

        result = manager.solve(state.join_code, host.player_id, "WRONG")

        assert not result.success
        assert result.error_code == ErrorCode.STALE_WRITE
        assert result.dropped

    def test_lifecycle_gives_up(self, manager):
        state, host = self._manager(manager, races=100)

        with pytest.raises(StaleWrite):
            manager.heartbeat(state.join_code, host.player_id)

    def test_concurrent_movers_apply_once(self, shared_game, manager):
        """Two clients who both think it is Jen's turn: only one miss lands."""
        state, host, guest = shared_game
        manager.spin(state.join_code, host.player_id, WheelOutcome.money(500))

        first = manager.guess_letter(state.join_code, host.player_id, "Z")
        second = manager.guess_letter(state.join_code, host.player_id, "Q")

        assert first.success
        assert second.error_code == ErrorCode.WRONG_TURN
        stored = manager.load_game(state.join_code)
        assert stored.current_player_id == guest.player_id
        assert "Q" not in stored.used_letters

    def test_same_snapshot_applies_once(self, shared_game, manager):
        """Two vowel purchases made from one snapshot: the second is dropped."""
        state, host, _ = shared_game
        manager.spin(state.join_code, host.player_id, WheelOutcome.money(900))
        manager.guess_letter(state.join_code, host.player_id, first_consonant(state))
        seen = manager.load_game(state.join_code)
        money = seen.players[host.player_id].round_money
        first_vowel, second_vowel = [v for v in "AEIOU" if v not in seen.used_letters][:2]

        first = manager.guess_letter(
            state.join_code, host.player_id, first_vowel, expected_version=seen.version,
        )
        second = manager.guess_letter(
            state.join_code, host.player_id, second_vowel, expected_version=seen.version,
        )

        assert first.success
        assert second.error_code == ErrorCode.STALE_WRITE
        assert second.dropped
        stored = manager.load_game(state.join_code)
        assert first_vowel in stored.used_letters
        assert second_vowel not in stored.used_letters
        assert stored.players[host.player_id].round_money == money - 250

    def test_current_snapshot_applies(self, solo_game, manager):
        state, host = solo_game

        result = manager.spin(
            state.join_code, host.player_id, WheelOutcome.money(600), expected_version=state.version,
        )

        assert result.success
        assert result.new_state.wheel_value == WheelOutcome.money(600)

    def test_stale_snapshot_not_retried(self, manager):
        """A move made from an old snapshot is dropped, not replayed on the new one."""
        state, host = self._manager(manager, races=1)

        result = manager.solve(
            state.join_code, host.player_id, "WRONG", expected_version=state.version,
        )

        assert result.error_code == ErrorCode.STALE_WRITE
        assert not manager.load_game(state.join_code).history

class TestClaimTurn:
    """Tests for forcing the turn past a stuck seat."""

    def test_claim_passes_turn(self, shared_game, manager):
        state, host, guest = shared_game

        result = manager.claim_turn(state.join_code, guest.player_id, host.player_id)

        assert result.success
        assert result.new_state.current_player_id == guest.player_id

    def test_claim_after_turn_moved(self, shared_game, manager):
        state, host, guest = shared_game
        manager.end_turn(state.join_code, host.player_id)

        result = manager.claim_turn(state.join_code, guest.player_id, host.player_id)

        assert result.error_code == ErrorCode.WRONG_TURN

    def test_computer_cannot_claim(self, shared_game, manager):
        state, host, _ = shared_game
        computer = state.ai_players[0]

        result = manager.claim_turn(state.join_code, computer.player_id, host.player_id)

        assert not result.success


class TestTurnLease:
    """Tests for single-flight computer turns."""

    @pytest.fixture
    def ai_turn(self, solo_game, manager):
        state, host = solo_game
        result = manager.spin(state.join_code, host.player_id, WheelOutcome.lose_turn())
        return result.new_state

    def test_first_observer_wins(self, ai_turn, manager):
        seat = ai_turn.current_player_id
        code = ai_turn.join_code

        assert manager.acquire_turn_lease(code, seat, "client_a", ai_turn.version)
        latest = manager.load_game(code)
        assert not manager.acquire_turn_lease(code, seat, "client_b", latest.version)
        assert latest.ai_lease.owner_id == "client_a"

    def test_stale_version_refused(self, ai_turn, manager):
        code = ai_turn.join_code
        manager.heartbeat(code, ai_turn.host.player_id)

        assert not manager.acquire_turn_lease(code, ai_turn.current_player_id, "client_a", ai_turn.version)

    def test_owner_may_renew(self, ai_turn, manager):
        code = ai_turn.join_code
        seat = ai_turn.current_player_id
        manager.acquire_turn_lease(code, seat, "client_a", ai_turn.version)

        latest = manager.load_game(code)

        assert manager.acquire_turn_lease(code, seat, "client_a", latest.version)

    def test_expired_lease_taken_over(self, ai_turn, manager, scheduler):
        code = ai_turn.join_code
        seat = ai_turn.current_player_id
        manager.acquire_turn_lease(code, seat, "client_a", ai_turn.version)
        scheduler.advance(manager.settings.ai_lease_seconds + 1)

        latest = manager.load_game(code)

        assert manager.acquire_turn_lease(code, seat, "client_b", latest.version)

    def test_human_seat_refused(self, solo_game, manager):
        state, host = solo_game

        assert not manager.acquire_turn_lease(state.join_code, host.player_id, "client_a", state.version)

    def test_lease_cleared_on_new_round(self, ai_turn, manager):
        code = ai_turn.join_code
        manager.acquire_turn_lease(code, ai_turn.current_player_id, "client_a", ai_turn.version)
        latest = manager.load_game(code)
        result = manager.submit(code, Action.solve(latest.current_player_id, latest.puzzle.text))

        state = manager.advance_round(code, requested_by=latest.host.player_id)

        assert result.success
        assert state.ai_lease is None
