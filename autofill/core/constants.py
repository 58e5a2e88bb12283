"""Shared constants and enumerations for the grid filler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class CellState(str, Enum):
    """All supported cell states in the grid."""

    BLOCK = "BLOCK"
    EMPTY = "EMPTY"
    LETTER = "LETTER"


class Direction(str, Enum):
    """Word directions supported by the grid."""

    ACROSS = "across"
    DOWN = "down"

    @property
    def step(self) -> Tuple[int, int]:
        return (0, 1) if self is Direction.ACROSS else (1, 0)


class SearchOutcome(str, Enum):
    """Terminal result of a fill attempt."""

    SOLVED = "solved"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class SearchState(str, Enum):
    """Phases the search driver moves through."""

    SELECTING = "SELECTING"
    PLACING = "PLACING"
    RECURSING = "RECURSING"
    BACKTRACKING = "BACKTRACKING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    CANCELLED = "CANCELLED"


# Glyphs used on the wire and in progress snapshots.
BLOCK_MARKER = "#"
EMPTY_GLYPH = "."
BLANK = "_"

EMPTY_MARKERS = frozenset({"", " ", EMPTY_GLYPH, BLANK})


@dataclass(frozen=True)
class Bounds:
    """Simple rectangle bounds helper."""

    rows: int
    cols: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols
