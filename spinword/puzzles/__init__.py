"""
Puzzles - Puzzle catalog and no-repeat generator.
"""

from .catalog import PuzzleCatalog, BeforeAfter, ThenNow, build_puzzle
from .generator import PuzzleGenerator

__all__ = [
    "PuzzleCatalog",
    "BeforeAfter",
    "ThenNow",
    "build_puzzle",
    "PuzzleGenerator",
]
