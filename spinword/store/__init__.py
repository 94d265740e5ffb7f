"""
Store - Versioned record storage and the game record codec.
"""

from .adapter import StoreAdapter, InMemoryStore
from .records import GameRecord, state_to_record, state_from_record

__all__ = [
    "StoreAdapter",
    "InMemoryStore",
    "GameRecord",
    "state_to_record",
    "state_from_record",
]
