"""
Puzzle Generator - Picks fresh puzzles without repeats.

Keeps the set of puzzle texts already used. When every puzzle in the
requested pool has been used, the used set is cleared and picking starts
over from the full pool.
"""

from __future__ import annotations
import logging
import random

from ..engine_core.state import PuzzleState
from .catalog import PuzzleCatalog


logger = logging.getLogger(__name__)


class PuzzleGenerator:
    """
    Draws puzzles from a catalog.

    Usage:
        generator = PuzzleGenerator(PuzzleCatalog(), rng=random.Random(3))
        puzzle = generator.next()
    """

    def __init__(
        self,
        catalog: PuzzleCatalog | None = None,
        rng: random.Random | None = None,
        used: set[str] | None = None,
    ):
        self.catalog = catalog or PuzzleCatalog()
        self.rng = rng or random.Random()
        self.used: set[str] = set(used or ())

    def _available(self, category: str | None) -> list[PuzzleState]:
        return [p for p in self.catalog.puzzles(category) if p.text not in self.used]

    def next(self, category: str | None = None) -> PuzzleState:
        """Pick an unused puzzle and mark it used."""
        available = self._available(category)
        if not available:
            logger.info("Puzzle pool exhausted after %d puzzles, starting over", len(self.used))
            if category is None:
                self.reset()
            else:
                self.used -= {p.text for p in self.catalog.puzzles(category)}
            available = self._available(category)

        puzzle = self.rng.choice(available)
        self.mark_used(puzzle.text)
        logger.debug(
            "Picked puzzle %r (%s), %d fresh remaining",
            puzzle.text, puzzle.category, len(available) - 1,
        )
        return puzzle

    def mark_used(self, text: str) -> None:
        self.used.add(text.upper())

    def reset(self) -> None:
        self.used.clear()

    def remaining(self, category: str | None = None) -> int:
        return len(self._available(category))

    def is_exhausted(self) -> bool:
        return self.remaining() == 0
