"""Data models supporting the grid filler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .constants import CellState, Direction, SearchOutcome

if TYPE_CHECKING:
    from ..engine.grid import FillGrid


Coord = Tuple[int, int]


@dataclass
class Cell:
    """Represents a grid cell."""

    state: CellState = CellState.EMPTY
    letter: Optional[str] = None

    def is_open(self) -> bool:
        return self.state in {CellState.EMPTY, CellState.LETTER}

    def is_empty(self) -> bool:
        return self.state == CellState.EMPTY


@dataclass(eq=False)
class WordSlot:
    """A numbered across or down run of cells waiting for a word.

    Geometry (``number``, ``direction``, ``cells``) never changes once the slot
    is extracted. The remaining fields are search caches and are rewritten as
    the grid changes.
    """

    number: int
    direction: Direction
    cells: Tuple[Coord, ...]
    candidates: List[str] = field(default_factory=list, repr=False)
    remaining_count: Optional[int] = None
    best_candidate: Optional[str] = None
    best_score: Optional[int] = None
    answer: Optional[str] = None

    @property
    def length(self) -> int:
        return len(self.cells)

    @property
    def id(self) -> str:
        return f"{self.number}-{self.direction.value}"

    @property
    def start(self) -> Coord:
        return self.cells[0]

    def clear_score(self) -> None:
        self.best_candidate = None
        self.best_score = None

    def reset(self) -> None:
        self.candidates = []
        self.remaining_count = None
        self.answer = None
        self.clear_score()


@dataclass
class ScoreResult:
    """Lookahead verdict for one slot."""

    best_candidate: Optional[str]
    best_score: int
    scores: Dict[str, int] = field(default_factory=dict, repr=False)


@dataclass
class SearchStats:
    selections: int = 0
    placements: int = 0
    backtracks: int = 0
    dead_ends: int = 0
    max_depth: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "selections": self.selections,
            "placements": self.placements,
            "backtracks": self.backtracks,
            "dead_ends": self.dead_ends,
            "max_depth": self.max_depth,
        }


@dataclass
class SearchResult:
    """Outcome of one search call.

    ``grid`` is only set when ``outcome`` is :attr:`SearchOutcome.SOLVED`.
    """

    outcome: SearchOutcome
    grid: Optional["FillGrid"] = None
    assignments: Dict[str, str] = field(default_factory=dict)
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def solved(self) -> bool:
        return self.outcome == SearchOutcome.SOLVED
