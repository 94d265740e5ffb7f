"""
Pytest fixtures for Spinword tests.
"""

import random

import pytest

from ..settings import GameSettings
from ..engine_core.state import (
    GameState, GameStatus, PlayerState, PuzzleState, RotationMode,
)
from ..engine_core.reducer import Reducer
from ..engine_core.wheel import Wheel
from ..puzzles import PuzzleCatalog, PuzzleGenerator
from ..session import SessionManager, ManualScheduler
from ..store import InMemoryStore


TEST_PHRASES = ("GREAT IDEA", "GOOD LUCK", "TRUE LOVE", "FRESH START")


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings()


@pytest.fixture
def reducer(settings) -> Reducer:
    return Reducer(settings=settings)


@pytest.fixture
def puzzle() -> PuzzleState:
    return PuzzleState(text="GREAT IDEA", category="PHRASE")


@pytest.fixture
def solo_state(puzzle) -> GameState:
    """Active round-1 game: one human host and two computer seats."""
    return GameState(
        game_id="game_1",
        join_code="ABC123",
        status=GameStatus.ACTIVE,
        rotation_mode=RotationMode.SOLO,
        current_player_id="p1",
        puzzle=puzzle,
        players={
            "p1": PlayerState(player_id="p1", name="Jen", is_host=True),
            "c1": PlayerState(player_id="c1", name="Computer 1", is_human=False),
            "c2": PlayerState(player_id="c2", name="Computer 2", is_human=False),
        },
    )


@pytest.fixture
def shared_state(puzzle) -> GameState:
    """Active round-1 game: two humans and one filler computer seat."""
    return GameState(
        game_id="game_2",
        join_code="XYZ789",
        status=GameStatus.ACTIVE,
        rotation_mode=RotationMode.SHARED,
        current_player_id="p1",
        puzzle=puzzle,
        players={
            "p1": PlayerState(player_id="p1", name="Jen", is_host=True),
            "p2": PlayerState(player_id="p2", name="Sam"),
            "c1": PlayerState(player_id="c1", name="Computer 1", is_human=False),
        },
    )


@pytest.fixture
def catalog() -> PuzzleCatalog:
    return PuzzleCatalog({"PHRASE": TEST_PHRASES})


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler(start=1000.0)


@pytest.fixture
def store(scheduler) -> InMemoryStore:
    return InMemoryStore(clock=scheduler.clock)


@pytest.fixture
def manager(store, catalog, scheduler, settings) -> SessionManager:
    """Session manager with seeded randomness and the manual clock."""
    return SessionManager(
        store=store,
        generator=PuzzleGenerator(catalog, rng=random.Random(1)),
        wheel=Wheel(rng=random.Random(2)),
        settings=settings,
        clock=scheduler.clock,
        rng=random.Random(3),
    )
