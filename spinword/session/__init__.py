"""
Session Module - Shared games and the clients connected to them.

A game lives in the record store under its join code:
- Created on first join, deleted when the last player leaves
- Every change goes through the reducer against the latest snapshot
- Every write fans out to all subscribed clients

Computer seats are played by whichever connected client wins the turn
lease for that seat and state version.
"""

from .manager import SessionManager, reconcile_seats, repair_turn, target_computer_seats
from .scheduler import Scheduler, ThreadingScheduler, ManualScheduler
from .automa import AutomaRunner
from .client import ClientView

__all__ = [
    "SessionManager",
    "reconcile_seats",
    "repair_turn",
    "target_computer_seats",
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
    "AutomaRunner",
    "ClientView",
]
