"""
Tests for the client view: connecting, following snapshots and sending intents.
"""

import pytest

from ..engine_core.errors import ErrorCode
from ..engine_core.state import GameStatus
from ..engine_core.wheel import WheelOutcome
from ..identity import IdentityResolver
from ..session import ClientView


@pytest.fixture
def resolver():
    return IdentityResolver()


def connect(manager, scheduler, name, resolver=None, code="ABC123", **kwargs) -> ClientView:
    view = ClientView(manager, code, name, scheduler, resolver=resolver or IdentityResolver(), **kwargs)
    view.connect()
    return view


class TestConnect:
    """Tests for joining and following a game."""

    def test_first_client_creates_game(self, manager, scheduler):
        jen = connect(manager, scheduler, "Jen")

        assert jen.is_host
        assert jen.state.status == GameStatus.WAITING
        assert jen.me.name == "Jen"
        assert not jen.is_my_turn

    def test_clients_see_each_other(self, manager, scheduler):
        jen = connect(manager, scheduler, "Jen")
        sam = connect(manager, scheduler, "Sam")

        assert sam.player_id in jen.state.players
        assert jen.state.version == sam.state.version
        assert not sam.is_host

    def test_reconnect_keeps_seat(self, manager, scheduler, resolver):
        jen = connect(manager, scheduler, "Jen", resolver=resolver)
        jen.close()

        again = connect(manager, scheduler, "Jen", resolver=resolver)

        assert again.player_id == jen.player_id
        assert again.state.human_count == 1

    def test_name_recovers_seat_without_stored_id(self, manager, scheduler):
        """A new device with the same name lands on the existing seat."""
        jen = connect(manager, scheduler, "Jen")

        other_device = connect(manager, scheduler, "Jen")

        assert other_device.player_id == jen.player_id

    def test_full_table_reported(self, manager, scheduler):
        for name in ("Jen", "Sam", "Kim"):
            connect(manager, scheduler, name)

        lee = connect(manager, scheduler, "Lee")

        assert lee.player_id is None
        assert "3 players" in lee.last_error

    def test_on_update_called(self, manager, scheduler):
        seen = []
        jen = connect(manager, scheduler, "Jen", on_update=seen.append)

        connect(manager, scheduler, "Sam")

        assert seen[-1].version == jen.state.version
        assert len(seen) >= 2

    def test_render(self, manager, scheduler):
        jen = connect(manager, scheduler, "Jen")

        text = jen.render()

        assert "Game ABC123" in text
        assert "Jen (you)" in text
        assert "Computer 1 (computer)" in text


class TestIntents:
    """Tests for sending moves and handling rejections."""

    @pytest.fixture
    def table(self, manager, scheduler):
        """Shared game: Jen (host, on turn) and Sam."""
        jen = connect(manager, scheduler, "Jen")
        sam = connect(manager, scheduler, "Sam")
        jen.start()
        return jen, sam

    def test_start(self, table):
        jen, sam = table

        assert jen.is_my_turn
        assert not sam.is_my_turn
        assert sam.state.status == GameStatus.ACTIVE

    def test_spin_lands_after_delay(self, table, manager, scheduler):
        jen, sam = table

        jen.spin()
        assert sam.state.is_spinning

        scheduler.advance(manager.settings.spin_delay)

        assert not sam.state.is_spinning
        assert sam.state.last_spin_result is not None

    def test_rule_break_shown(self, table):
        jen, _ = table

        result = jen.guess_letter("B")

        assert not result.success
        assert jen.last_error == "Spin the wheel first"

    def test_out_of_turn_dropped_quietly(self, table):
        _, sam = table

        result = sam.solve("ANYTHING")

        assert not result.success
        assert result.dropped
        assert sam.last_error is None

    def test_move_from_stale_view_dropped(self, table, manager):
        """A view that missed an update cannot act on what it last saw."""
        jen, _ = table
        jen.close()
        manager.spin(jen.join_code, jen.player_id, WheelOutcome.money(500))

        result = jen.solve(jen.state.puzzle.text)

        assert result.error_code == ErrorCode.STALE_WRITE
        assert jen.last_error is None
        assert manager.load_game(jen.join_code).status == GameStatus.ACTIVE

    def test_solve(self, table, manager):
        jen, sam = table

        jen.solve(jen.state.puzzle.text)

        assert sam.state.status == GameStatus.FINISHED
        assert sam.state.winner_id == jen.player_id

    def test_host_only_actions(self, table):
        _, sam = table

        sam.restart()

        assert sam.last_error == "Only the host can do that"

    def test_claim_cancels_pending_spin(self, table, manager, scheduler):
        """A pending spin landing is cancelled once the turn moves on."""
        jen, sam = table
        jen.spin()

        sam.claim_turn()
        scheduler.advance(manager.settings.spin_delay + 1)

        state = manager.load_game(jen.join_code)
        assert state.current_player_id == sam.player_id
        assert state.last_spin_result is None
        assert scheduler.pending == 0

    def test_offline_and_reconnect(self, table, manager, store):
        jen, _ = table
        store.set_available(False)

        assert jen.guess_letter("B") is None
        assert jen.offline
        assert "Retry" in jen.last_error

        store.set_available(True)
        jen.reconnect()
        assert not jen.offline

    def test_leave(self, table, manager):
        jen, sam = table

        jen.leave()

        assert jen.state is None
        assert sam.is_host
        assert sam.is_my_turn

    def test_last_leave_deletes_game(self, manager, scheduler):
        seen = []
        jen = connect(manager, scheduler, "Jen")
        manager.store.subscribe("ABC123", seen.append)

        jen.leave()

        assert manager.get_game("ABC123") is None
        assert seen[-1] is None


class TestSoloPlay:
    """Tests for a single player with computer seats run by the client."""

    def test_computer_seats_play(self, manager, scheduler):
        jen = connect(manager, scheduler, "Jen")
        jen.start()

        manager.spin(jen.join_code, jen.player_id, WheelOutcome.lose_turn())
        scheduler.run_pending(limit=500)

        state = manager.load_game(jen.join_code)
        assert state.round_complete or jen.is_my_turn
        assert scheduler.pending == 0

    def test_computer_seats_off(self, manager, scheduler):
        jen = connect(manager, scheduler, "Jen", run_computer_seats=False)
        jen.start()

        manager.spin(jen.join_code, jen.player_id, WheelOutcome.lose_turn())
        scheduler.run_pending()

        state = manager.load_game(jen.join_code)
        assert not state.players[state.current_player_id].is_human
