"""
Spinword - Multiplayer wheel-spin word puzzle engine

Players share one game record: they spin a wheel, call letters, buy
vowels and solve a hidden phrase. The engine provides:
- Deterministic turn resolution
- Seat management with computer players filling empty seats
- Optimistic-concurrency sync between connected clients
- A heuristic computer player
"""

__version__ = "0.1.0"
