"""
Bots module - Computer seat implementations.

Provides:
- BotPolicy: Interface for bot decision-making
- ComputerAgent: Letter-frequency heuristic player
"""

from .policy import BotPolicy, BotDecision, seat_may_act
from .computer_agent import ComputerAgent, LETTER_FREQUENCY

__all__ = [
    "BotPolicy",
    "BotDecision",
    "seat_may_act",
    "ComputerAgent",
    "LETTER_FREQUENCY",
]
