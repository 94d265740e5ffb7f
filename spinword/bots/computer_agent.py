"""
Computer Agent - Heuristic player for computer seats.

Strategy:
1. At the start of a turn (no spin pending), maybe solve, otherwise spin
2. With a spin pending, call a letter; solve only if none is left to call
3. Letters come from the English frequency order, filtered by letters not
   yet called, picked uniformly among the top few
4. A solve is attempted by chance once enough of the puzzle is showing,
   rolled once per turn, and always once no letters are left to call
5. A solve attempt is right with a fixed probability; a wrong attempt
   swaps one letter of the answer

The agent never buys vowels and never plays the final round.
"""

from __future__ import annotations
import logging
import random

from ..settings import ALPHABET, GameSettings, DEFAULT_SETTINGS
from ..engine_core.state import GameState
from ..engine_core.action import Action
from ..engine_core.wheel import Wheel
from .policy import BotPolicy, BotDecision, seat_may_act


logger = logging.getLogger(__name__)

LETTER_FREQUENCY = "ETAOINSHRDLCUMWFGYPBVKJXQZ"


class ComputerAgent(BotPolicy):
    """
    Heuristic computer player.

    Usage:
        agent = ComputerAgent(rng=random.Random(11))
        decision = agent.decide(state, "computer_1")
    """

    def __init__(
        self,
        settings: GameSettings | None = None,
        rng: random.Random | None = None,
        wheel: Wheel | None = None,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self.rng = rng or random.Random()
        self.wheel = wheel or Wheel(rng=self.rng)

    def decide(self, state: GameState, seat_id: str) -> BotDecision | None:
        if not seat_may_act(state, seat_id):
            return None

        candidates = self.letter_candidates(state)
        details = {
            "revealed_ratio": state.puzzle.revealed_ratio if state.puzzle else 0.0,
            "candidates": candidates,
        }

        if state.wheel_value is None:
            if self.should_solve(state, candidates):
                return self._solve(state, seat_id, details)
            outcome = self.wheel.spin()
            return BotDecision(
                action=Action.spin(seat_id, outcome),
                explanation=f"Spinning: landed on {outcome.describe()}",
                evaluation_details=details,
            )

        if self.must_solve(state, candidates):
            return self._solve(state, seat_id, details)

        letter = self.rng.choice(candidates)
        return BotDecision(
            action=Action.guess_letter(seat_id, letter),
            explanation=f"Calling {letter} from {''.join(candidates)}",
            evaluation_details=details,
        )

    def letter_candidates(self, state: GameState) -> list[str]:
        """Top unused letters by English frequency."""
        unused = [c for c in LETTER_FREQUENCY if c not in state.used_letters]
        return unused[:self.settings.ai_letter_pool]

    def must_solve(self, state: GameState, candidates: list[str]) -> bool:
        """No letter call can help any more."""
        if state.puzzle is None:
            return False
        return not candidates or state.puzzle.is_fully_revealed

    def should_solve(self, state: GameState, candidates: list[str]) -> bool:
        """Start-of-turn check; rolls the solve chance at most once."""
        if state.puzzle is None:
            return False
        if self.must_solve(state, candidates):
            return True
        if state.puzzle.revealed_ratio >= self.settings.ai_solve_threshold:
            return self.rng.random() < self.settings.ai_solve_chance
        return False

    def _solve(self, state: GameState, seat_id: str, details: dict) -> BotDecision:
        answer = state.puzzle.text
        correct = self.rng.random() < self.settings.ai_solve_accuracy
        attempt = answer if correct else self._wrong_answer(answer)
        logger.debug("Seat %s attempting solve (%s)", seat_id, "right" if correct else "wrong")
        return BotDecision(
            action=Action.solve(seat_id, attempt),
            explanation=f"Solving: {attempt}",
            evaluation_details={**details, "intends_correct": correct},
        )

    def _wrong_answer(self, answer: str) -> str:
        """The answer with one letter changed."""
        positions = [i for i, c in enumerate(answer) if c in ALPHABET]
        if not positions:
            return answer + "?"
        i = self.rng.choice(positions)
        replacement = self.rng.choice(sorted(ALPHABET - {answer[i]}))
        return answer[:i] + replacement + answer[i + 1:]
