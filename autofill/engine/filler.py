"""Grid fill orchestration.

One fill runs in four phases:
  1. Input: parse the grid, compute or check the numbering, extract slots.
  2. Pre-flight: reject slot lengths the lexicon cannot cover, before any write.
  3. Fill: backtracking search driver, or the CP-SAT backend.
  4. Validate: re-check the filled grid against the lexicon and the input.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from ..core.constants import SearchOutcome
from ..core.exceptions import ValidationError
from ..core.models import Coord, SearchResult, SearchStats, WordSlot
from ..data.lexicon import LexiconSource, check_coverage
from ..io.progress import ProgressReporter
from ..utils.logger import get_logger
from .cpsat import solve_with_cpsat
from .grid import FillGrid
from .numbering import compute_numbering, numbering_to_jsonable, parse_numbering, validate_numbering
from .patterns import PatternMatcher
from .search import CancellationToken, SearchDriver
from .slots import extract_slots, slot_lengths
from .strategies import make_ordering, make_selector
from .validator import GridValidator


LOGGER = get_logger(__name__)

BACKENDS = ("backtracking", "cpsat")
CPSAT_DEFAULT_TIMEOUT = 30.0


@dataclass
class FillConfig:
    slot_selection: str = "most_constrained"
    candidate_order: str = "lexicographic"
    backend: str = "backtracking"
    timeout_seconds: Optional[float] = None
    seed: Optional[int] = None
    validate: bool = True


@dataclass
class FillResult:
    outcome: SearchOutcome
    grid: Optional[FillGrid]
    slots: List[WordSlot]
    answers: Dict[str, str] = field(default_factory=dict)
    numbering: Dict[Coord, int] = field(default_factory=dict)
    stats: SearchStats = field(default_factory=SearchStats)
    elapsed_seconds: float = 0.0
    validation_messages: List[str] = field(default_factory=list)

    @property
    def solved(self) -> bool:
        return self.outcome == SearchOutcome.SOLVED

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "grid": self.grid.to_strings() if self.grid is not None else None,
            "answers": dict(self.answers),
            "numbering": numbering_to_jsonable(self.numbering),
            "slots": [
                {
                    "id": slot.id,
                    "start": list(slot.start),
                    "direction": slot.direction.value,
                    "length": slot.length,
                    "answer": self.answers.get(slot.id),
                }
                for slot in self.slots
            ],
            "stats": self.stats.as_dict(),
            "elapsed_seconds": round(self.elapsed_seconds, 4),
        }


GridInput = Union[FillGrid, Sequence[Any]]


class GridFiller:
    """High-level orchestrator: grid input, pre-flight, search, validation."""

    def __init__(
        self,
        lexicon: LexiconSource,
        config: Optional[FillConfig] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.config = config or FillConfig()
        if self.config.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.config.backend}'. Known: {', '.join(BACKENDS)}")
        self.lexicon = lexicon
        self.reporter = reporter
        # Shared across sequential fills; the cache only depends on the lexicon.
        self.matcher = PatternMatcher(lexicon)
        self.validator = GridValidator(lexicon)

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def fill(
        self,
        rows: GridInput,
        numbering: Optional[Mapping[Any, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FillResult:
        """Fill ``rows`` and return the outcome with the filled grid when solved.

        ``cancel_token`` is only polled by the backtracking driver; the cpsat
        backend stops on ``timeout_seconds`` instead.
        """
        started = time.perf_counter()
        original = rows.copy() if isinstance(rows, FillGrid) else FillGrid.from_rows(rows)
        grid = original.copy()

        labels = self._resolve_numbering(grid, numbering)
        slots = extract_slots(grid, labels)
        check_coverage(self.lexicon, slot_lengths(slots))

        LOGGER.info(
            "Filling %sx%s grid: %s slots, %s blank cells (backend=%s)",
            grid.bounds.rows,
            grid.bounds.cols,
            len(slots),
            grid.empty_cell_count(),
            self.config.backend,
        )

        used_words: Set[str] = set()
        if self.config.backend == "cpsat":
            if cancel_token is not None:
                LOGGER.warning("cancel_token is ignored by the cpsat backend; use timeout_seconds")
            timeout = self.config.timeout_seconds
            search = solve_with_cpsat(
                grid,
                slots,
                self.matcher,
                used_words,
                timeout=CPSAT_DEFAULT_TIMEOUT if timeout is None else timeout,
            )
        else:
            search = self._run_driver(slots, grid, used_words, cancel_token)

        result = FillResult(
            outcome=search.outcome,
            grid=search.grid if search.solved else None,
            slots=slots,
            answers=dict(search.assignments),
            numbering=labels,
            stats=search.stats,
        )
        if result.solved and self.config.validate:
            validation = self.validator.validate(grid, slots, original)
            result.validation_messages = validation.messages
            if not validation.ok:
                raise ValidationError(f"Grid validation failed: {validation.messages}")

        result.elapsed_seconds = time.perf_counter() - started
        LOGGER.info(
            "Fill finished: %s in %.3fs (%s placements, %s backtracks)",
            result.outcome.value,
            result.elapsed_seconds,
            result.stats.placements,
            result.stats.backtracks,
        )
        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _resolve_numbering(self, grid: FillGrid, numbering: Optional[Mapping[Any, Any]]) -> Dict[Coord, int]:
        if numbering is None:
            labels = compute_numbering(grid)
        else:
            labels = parse_numbering(numbering)
        validate_numbering(grid, labels)
        return labels

    def _run_driver(
        self,
        slots: List[WordSlot],
        grid: FillGrid,
        used_words: Set[str],
        cancel_token: Optional[CancellationToken],
    ) -> SearchResult:
        driver = SearchDriver(
            self.matcher,
            selector=make_selector(self.config.slot_selection),
            ordering=make_ordering(self.config.candidate_order, self.config.seed),
            reporter=self.reporter,
            cancel_token=cancel_token,
            timeout_seconds=self.config.timeout_seconds,
        )
        return driver.solve(slots, grid, used_words)
