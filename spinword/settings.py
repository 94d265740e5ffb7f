"""
Settings - Rule constants and pacing values.

Every number the engine, the agent and the session layer depend on lives
here so a deployment can tune pacing without touching game code.

Environment variables (all optional):
    SPINWORD_VOWEL_COST             Price of a vowel outside the final round
    SPINWORD_FINAL_ROUND            Round number at which the final round starts
    SPINWORD_SPIN_DELAY             Seconds between starting and resolving a spin
    SPINWORD_AI_THINK_DELAY         Seconds an AI seat "thinks" before acting
    SPINWORD_AI_LEASE_SECONDS       Lifetime of an AI turn lease
    SPINWORD_MAX_WRITE_RETRIES      Optimistic-write retries before giving up
"""

from __future__ import annotations
from dataclasses import dataclass
import os


VOWELS = frozenset("AEIOU")
CONSONANTS = frozenset("BCDFGHJKLMNPQRSTVWXYZ")
ALPHABET = VOWELS | CONSONANTS


@dataclass(frozen=True)
class GameSettings:
    """Rule and pacing configuration shared by every component."""
    # Seats
    seat_count: int = 3
    max_human_seats: int = 3

    # Letters
    vowel_cost: int = 250

    # Final round
    final_round: int = 4
    final_round_consonants: int = 3
    final_round_vowels: int = 1
    final_round_letters: str = "RSTLNE"

    # Pacing (seconds)
    spin_delay: float = 3.0
    ai_think_delay: float = 1.5
    ai_lease_seconds: float = 10.0

    # Optimistic concurrency
    max_write_retries: int = 5

    # Computer agent
    ai_letter_pool: int = 5
    ai_solve_threshold: float = 0.3
    ai_solve_chance: float = 0.3
    ai_solve_accuracy: float = 0.7

    @classmethod
    def from_env(cls) -> GameSettings:
        """Build settings from SPINWORD_* environment variables."""
        defaults = cls()
        return cls(
            vowel_cost=int(os.getenv("SPINWORD_VOWEL_COST", defaults.vowel_cost)),
            final_round=int(os.getenv("SPINWORD_FINAL_ROUND", defaults.final_round)),
            spin_delay=float(os.getenv("SPINWORD_SPIN_DELAY", defaults.spin_delay)),
            ai_think_delay=float(os.getenv("SPINWORD_AI_THINK_DELAY", defaults.ai_think_delay)),
            ai_lease_seconds=float(
                os.getenv("SPINWORD_AI_LEASE_SECONDS", defaults.ai_lease_seconds)
            ),
            max_write_retries=int(
                os.getenv("SPINWORD_MAX_WRITE_RETRIES", defaults.max_write_retries)
            ),
        )


DEFAULT_SETTINGS = GameSettings()
