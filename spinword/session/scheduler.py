"""
Scheduler - Cancellable delayed callbacks.

Pacing delays (the wheel animation, an AI seat "thinking") are timers that
produce a follow-up action, never blocking waits. Every scheduled callback
returns a token that can be cancelled when the state it was scheduled
against moves on.

Implementations:
- ThreadingScheduler: one threading.Timer per callback
- ManualScheduler: runs callbacks when its clock is advanced; used in tests
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable
import heapq
import itertools
import logging
import threading


logger = logging.getLogger(__name__)


class Scheduler(ABC):

    @abstractmethod
    def schedule(self, delay: float, fn: Callable[[], None]) -> int:
        """Run `fn` after `delay` seconds. Returns a cancel token."""
        pass

    @abstractmethod
    def cancel(self, token: int) -> bool:
        """Cancel a pending callback. False if it already ran or was cancelled."""
        pass

    def cancel_all(self, tokens) -> None:
        for token in list(tokens):
            self.cancel(token)


def _run(token: int, fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception:
        logger.exception("Scheduled callback %d failed", token)


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by daemon timers."""

    def __init__(self):
        self._timers: dict[int, threading.Timer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def schedule(self, delay: float, fn: Callable[[], None]) -> int:
        token = next(self._ids)

        def fire():
            with self._lock:
                if self._timers.pop(token, None) is None:
                    return
            _run(token, fn)

        timer = threading.Timer(max(0.0, delay), fire)
        timer.daemon = True
        with self._lock:
            self._timers[token] = timer
        timer.start()
        return token

    def cancel(self, token: int) -> bool:
        with self._lock:
            timer = self._timers.pop(token, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()


@dataclass(order=True)
class _Pending:
    due: float
    token: int
    fn: Callable[[], None] = field(compare=False)


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by an explicit clock.

    Usage:
        scheduler = ManualScheduler()
        scheduler.schedule(1.5, step)
        scheduler.advance(2.0)   # runs step
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue: list[_Pending] = []
        self._cancelled: set[int] = set()
        self._ids = itertools.count(1)

    def clock(self) -> float:
        return self.now

    def schedule(self, delay: float, fn: Callable[[], None]) -> int:
        token = next(self._ids)
        heapq.heappush(self._queue, _Pending(self.now + max(0.0, delay), token, fn))
        return token

    def cancel(self, token: int) -> bool:
        if any(p.token == token for p in self._queue) and token not in self._cancelled:
            self._cancelled.add(token)
            return True
        return False

    @property
    def pending(self) -> int:
        return sum(1 for p in self._queue if p.token not in self._cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running everything that falls due. Returns the count run."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            item = heapq.heappop(self._queue)
            self.now = max(self.now, item.due)
            if item.token in self._cancelled:
                self._cancelled.discard(item.token)
                continue
            _run(item.token, item.fn)
            ran += 1
        self.now = target
        return ran

    def run_pending(self, limit: int = 1000) -> int:
        """Run callbacks in due order regardless of delay, including ones they schedule."""
        ran = 0
        while self._queue and ran < limit:
            item = heapq.heappop(self._queue)
            self.now = max(self.now, item.due)
            if item.token in self._cancelled:
                self._cancelled.discard(item.token)
                continue
            _run(item.token, item.fn)
            ran += 1
        return ran
