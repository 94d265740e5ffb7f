"""
Identity - Durable player ids across reconnects.
"""

from .resolver import (
    IdentityStore,
    InMemoryIdentityStore,
    JsonFileIdentityStore,
    IdentityResolver,
    new_player_id,
)

__all__ = [
    "IdentityStore",
    "InMemoryIdentityStore",
    "JsonFileIdentityStore",
    "IdentityResolver",
    "new_player_id",
]
