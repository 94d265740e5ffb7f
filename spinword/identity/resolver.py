"""
Identity Resolver - Durable player ids per (join code, display name).

A client keeps one player id per game and name so that a reconnect lands
on the same seat. The id is stored client-side through an IdentityStore.
If the stored id is missing from a snapshot, the seat is recovered by
display name and the stored id migrated to it.

Stores:
- InMemoryIdentityStore: per-process, used by tests and the API
- JsonFileIdentityStore: one JSON file on local disk, survives restarts
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
import json
import logging
import threading
import uuid

from ..engine_core.state import GameState, PlayerState


logger = logging.getLogger(__name__)


def _key(join_code: str, display_name: str) -> str:
    return f"{join_code.upper()}:{display_name}"


class IdentityStore(ABC):
    """Where a client keeps its player ids."""

    @abstractmethod
    def load(self, join_code: str, display_name: str) -> str | None:
        pass

    @abstractmethod
    def save(self, join_code: str, display_name: str, player_id: str) -> None:
        pass


class InMemoryIdentityStore(IdentityStore):

    def __init__(self):
        self._ids: dict[str, str] = {}

    def load(self, join_code: str, display_name: str) -> str | None:
        return self._ids.get(_key(join_code, display_name))

    def save(self, join_code: str, display_name: str, player_id: str) -> None:
        self._ids[_key(join_code, display_name)] = player_id


class JsonFileIdentityStore(IdentityStore):
    """
    Identity store backed by a JSON file.

    The whole mapping is rewritten on every save; it holds a handful of
    entries per client.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable identity file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, join_code: str, display_name: str) -> str | None:
        with self._lock:
            return self._read().get(_key(join_code, display_name))

    def save(self, join_code: str, display_name: str, player_id: str) -> None:
        with self._lock:
            data = self._read()
            data[_key(join_code, display_name)] = player_id
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)


def new_player_id() -> str:
    return f"player_{uuid.uuid4().hex[:12]}"


class IdentityResolver:
    """
    Resolves the player id a client should use for a game.

    Usage:
        resolver = IdentityResolver(InMemoryIdentityStore())
        player_id = resolver.resolve("ABC123", "Jen")
        seat = resolver.reconcile("ABC123", "Jen", snapshot)
    """

    def __init__(self, store: IdentityStore | None = None):
        self.store = store or InMemoryIdentityStore()

    def resolve(self, join_code: str, display_name: str) -> str:
        """Stored id for this game and name, creating one on first use."""
        player_id = self.store.load(join_code, display_name)
        if player_id is None:
            player_id = new_player_id()
            self.store.save(join_code, display_name, player_id)
            logger.debug("New identity %s for %s in %s", player_id, display_name, join_code)
        return player_id

    def remember(self, join_code: str, display_name: str, player_id: str) -> None:
        self.store.save(join_code, display_name, player_id)

    def reconcile(
        self,
        join_code: str,
        display_name: str,
        state: GameState,
    ) -> PlayerState | None:
        """
        Find this client's seat in a snapshot.

        Falls back to matching by display name when the stored id is not
        seated, and migrates the stored id to the recovered seat.
        """
        player_id = self.store.load(join_code, display_name)
        if player_id is not None and player_id in state.players:
            return state.players[player_id]

        seat = state.find_by_name(display_name)
        if seat is None or not seat.is_human:
            return None

        if seat.player_id != player_id:
            logger.info(
                "Recovered seat %s for %s in %s (stored id was %s)",
                seat.player_id, display_name, join_code, player_id,
            )
            self.store.save(join_code, display_name, seat.player_id)
        return seat
