"""
Store Adapter - Keyed record storage with change notification.

Records are plain JSON-shaped dicts keyed by join code. Every write bumps
the record's `version` and stamps `last_updated`; a writer that passes
`expected_version` gets StaleWrite if someone else wrote first. Version 0
stands for "no record yet", so `set(key, value, expected_version=0)` only
creates.

Subscribers get a snapshot of the record after each write, or None once
the record is removed. Callbacks run after the lock is released, in the
writer's thread.

The in-memory store is a dict behind a threading.Lock, safe to call from
both sync request handlers and async websocket code.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Callable
import logging
import threading
import time

from ..engine_core.errors import StaleWrite, StoreUnavailable


logger = logging.getLogger(__name__)

Record = dict[str, Any]
Subscriber = Callable[[Record | None], None]
Unsubscribe = Callable[[], None]


class StoreAdapter(ABC):
    """Interface every record store implements."""

    @abstractmethod
    def get(self, key: str) -> Record | None:
        """Current snapshot of a record, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: Record, expected_version: int | None = None) -> Record:
        """Replace a record whole. Returns the stored snapshot."""
        pass

    @abstractmethod
    def patch(self, key: str, fields: Record, expected_version: int | None = None) -> Record:
        """Merge top-level fields into an existing record."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def subscribe(self, key: str, callback: Subscriber) -> Unsubscribe:
        """Watch one record. Returns a function that stops the watch."""
        pass


class InMemoryStore(StoreAdapter):
    """
    Process-local store.

    Usage:
        store = InMemoryStore()
        store.set("ABC123", {"status": "waiting"}, expected_version=0)
        unsubscribe = store.subscribe("ABC123", print)
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._records: dict[str, Record] = {}
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._available = True

    def set_available(self, available: bool) -> None:
        """Simulate the backing service going away or coming back."""
        self._available = available

    def _check_available(self) -> None:
        if not self._available:
            raise StoreUnavailable("Record store is unavailable")

    def _check_version(self, key: str, expected_version: int | None) -> int:
        current = self._records.get(key)
        actual = current.get("version", 0) if current else 0
        if expected_version is not None and expected_version != actual:
            raise StaleWrite(
                f"Record {key} is at version {actual}, expected {expected_version}",
                expected=expected_version,
                actual=actual,
            )
        return actual

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def get(self, key: str) -> Record | None:
        self._check_available()
        with self._lock:
            record = self._records.get(key)
            return deepcopy(record) if record is not None else None

    def set(self, key: str, value: Record, expected_version: int | None = None) -> Record:
        self._check_available()
        with self._lock:
            actual = self._check_version(key, expected_version)
            record = deepcopy(value)
            record["version"] = actual + 1
            record["last_updated"] = self._clock()
            self._records[key] = record
            snapshot = deepcopy(record)
            callbacks = list(self._subscribers.get(key, ()))

        logger.debug("Stored %s at version %d", key, snapshot["version"])
        self._notify(callbacks, snapshot)
        return deepcopy(snapshot)

    def patch(self, key: str, fields: Record, expected_version: int | None = None) -> Record:
        self._check_available()
        with self._lock:
            if key not in self._records:
                raise KeyError(key)
            actual = self._check_version(key, expected_version)
            record = self._records[key]
            record.update(deepcopy(fields))
            record["version"] = actual + 1
            record["last_updated"] = self._clock()
            snapshot = deepcopy(record)
            callbacks = list(self._subscribers.get(key, ()))

        logger.debug("Patched %s (%s) at version %d", key, ", ".join(fields), snapshot["version"])
        self._notify(callbacks, snapshot)
        return deepcopy(snapshot)

    def remove(self, key: str) -> None:
        self._check_available()
        with self._lock:
            existed = self._records.pop(key, None) is not None
            callbacks = list(self._subscribers.get(key, ()))

        if existed:
            logger.debug("Removed %s", key)
            self._notify(callbacks, None)

    def subscribe(self, key: str, callback: Subscriber) -> Unsubscribe:
        with self._lock:
            self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(key, None)

        return unsubscribe

    def subscriber_count(self, key: str) -> int:
        with self._lock:
            return len(self._subscribers.get(key, ()))

    def _notify(self, callbacks: list[Subscriber], snapshot: Record | None) -> None:
        for callback in callbacks:
            try:
                callback(deepcopy(snapshot) if snapshot is not None else None)
            except Exception:
                logger.exception("Store subscriber failed")
