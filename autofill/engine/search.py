"""Backtracking search driver.

The driver fills slots depth-first over an explicit stack of frames. Each frame
holds the slot chosen at that depth, its ordered candidates and the placement
currently on the grid. A placement records everything it changed (grid cells,
the used-word set, the remaining-slot list), so backtracking is an exact undo
rather than a copy of the state per branch.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set

from ..core.constants import SearchOutcome, SearchState
from ..core.models import SearchResult, SearchStats, WordSlot
from ..io.progress import NullProgressReporter, ProgressReporter
from ..utils.logger import get_logger
from .grid import FillGrid
from .intersections import IntersectionIndex
from .patterns import PatternMatcher
from .scoring import HeuristicScorer
from .strategies import (CandidateOrdering, LexicographicOrdering,
                         MostConstrainedSelector, SlotSelector)


LOGGER = get_logger(__name__)


class CancellationToken:
    """Thread-safe flag a caller can set to stop a running search."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class Placement:
    """One word written into one slot, with everything needed to take it back."""

    slot: WordSlot
    word: str
    position: int
    remaining: List[WordSlot]
    used_words: Set[str]
    neighbours: List[WordSlot]
    undo_grid: Callable[[], None]
    added_word: bool = True

    def undo(self) -> None:
        self.undo_grid()
        if self.added_word:
            self.used_words.discard(self.word)
        self.remaining.insert(self.position, self.slot)
        self.slot.answer = None
        for neighbour in self.neighbours:
            neighbour.clear_score()


@dataclass
class _Frame:
    slot: WordSlot
    candidates: List[str]
    next_index: int = 0
    placement: Optional[Placement] = field(default=None, repr=False)


class SearchDriver:
    """Heuristic-guided exhaustive backtracking over word slots.

    ``state`` tracks the current phase; after ``solve`` returns it holds
    SUCCESS, FAILURE or CANCELLED to match the outcome.
    """

    def __init__(
        self,
        matcher: PatternMatcher,
        selector: Optional[SlotSelector] = None,
        ordering: Optional[CandidateOrdering] = None,
        scorer: Optional[HeuristicScorer] = None,
        reporter: Optional[ProgressReporter] = None,
        cancel_token: Optional[CancellationToken] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.matcher = matcher
        self.selector = selector or MostConstrainedSelector()
        self.ordering = ordering or LexicographicOrdering()
        self.scorer = scorer
        self.reporter = reporter or NullProgressReporter()
        self.cancel_token = cancel_token
        self.timeout_seconds = timeout_seconds
        self.state = SearchState.SELECTING
        self._deadline: Optional[float] = None
        self._index: Optional[IntersectionIndex] = None
        self._active_scorer: Optional[HeuristicScorer] = scorer

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def solve(self, slots: Sequence[WordSlot], grid: FillGrid, used_words: Set[str]) -> SearchResult:
        """Fill every slot in ``slots`` or report why not.

        ``grid`` and ``used_words`` are mutated in place. On SOLVED they hold
        the placed words; on EXHAUSTED or CANCELLED they are restored to
        exactly their state at call time.
        """

        remaining = list(slots)
        for slot in remaining:
            slot.reset()
        self._index = IntersectionIndex(remaining)
        self._active_scorer = self.scorer or HeuristicScorer(self.matcher, self._index)
        self._deadline = (
            time.monotonic() + self.timeout_seconds if self.timeout_seconds is not None else None
        )

        stats = SearchStats()
        stack: List[_Frame] = []
        LOGGER.info(
            "Search started: %s slots, %s already used words", len(remaining), len(used_words)
        )

        while True:
            self.state = SearchState.SELECTING
            self._report(grid)
            if not remaining:
                self.state = SearchState.SUCCESS
                LOGGER.info(
                    "Search solved after %s placements, %s backtracks",
                    stats.placements,
                    stats.backtracks,
                )
                return SearchResult(
                    outcome=SearchOutcome.SOLVED,
                    grid=grid,
                    assignments={slot.id: slot.answer or "" for slot in slots},
                    stats=stats,
                )
            if self._should_stop():
                self.state = SearchState.CANCELLED
                self._unwind(stack)
                LOGGER.info("Search cancelled after %s placements", stats.placements)
                return SearchResult(outcome=SearchOutcome.CANCELLED, stats=stats)

            frame = self._select(remaining, grid, used_words, stats)

            while not self._place_next(frame, remaining, grid, used_words, stats):
                self.state = SearchState.BACKTRACKING
                if not stack:
                    self.state = SearchState.FAILURE
                    LOGGER.info(
                        "Search exhausted after %s placements, %s backtracks",
                        stats.placements,
                        stats.backtracks,
                    )
                    return SearchResult(outcome=SearchOutcome.EXHAUSTED, stats=stats)
                frame = stack.pop()
                self._retract(frame)
                stats.backtracks += 1

            self.state = SearchState.RECURSING
            stack.append(frame)
            stats.max_depth = max(stats.max_depth, len(stack))

    def place(
        self,
        slot: WordSlot,
        word: str,
        remaining: List[WordSlot],
        grid: FillGrid,
        used_words: Set[str],
    ) -> Placement:
        """Write ``word`` into ``slot`` and take the slot out of ``remaining``."""

        undo_grid = grid.place_word_undoable(slot, word)
        added_word = word not in used_words
        used_words.add(word)
        position = remaining.index(slot)
        remaining.pop(position)
        slot.answer = word

        index = self._index or IntersectionIndex(remaining + [slot])
        neighbours = index.intersecting(slot)
        for neighbour in neighbours:
            neighbour.clear_score()

        return Placement(
            slot=slot,
            word=word,
            position=position,
            remaining=remaining,
            used_words=used_words,
            neighbours=neighbours,
            undo_grid=undo_grid,
            added_word=added_word,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def _select(
        self,
        remaining: List[WordSlot],
        grid: FillGrid,
        used_words: Set[str],
        stats: SearchStats,
    ) -> _Frame:
        stats.selections += 1
        for slot in remaining:
            slot.candidates = self.matcher.filter(grid.pattern(slot), used_words)
            slot.remaining_count = len(slot.candidates)

        if self.selector.requires_scores:
            for slot in remaining:
                if slot.best_score is None:
                    result = self._active_scorer.score(slot, remaining, grid, used_words)
                    slot.best_candidate = result.best_candidate
                    slot.best_score = result.best_score

        slot = self.selector.select(remaining)
        scores = None
        if self.ordering.requires_scores and slot.candidates:
            scores = dict(self._active_scorer.rank(slot, remaining, grid, used_words))
        candidates = self.ordering.order(slot.candidates, scores)

        if not candidates:
            stats.dead_ends += 1
            LOGGER.debug("Dead end at %s (pattern %s)", slot.id, grid.pattern(slot))
        return _Frame(slot=slot, candidates=candidates)

    def _place_next(
        self,
        frame: _Frame,
        remaining: List[WordSlot],
        grid: FillGrid,
        used_words: Set[str],
        stats: SearchStats,
    ) -> bool:
        if frame.next_index >= len(frame.candidates):
            return False
        self.state = SearchState.PLACING
        word = frame.candidates[frame.next_index]
        frame.next_index += 1
        frame.placement = self.place(frame.slot, word, remaining, grid, used_words)
        stats.placements += 1
        return True

    def _retract(self, frame: _Frame) -> None:
        if frame.placement is not None:
            LOGGER.debug("Backtracking %s from %s", frame.slot.id, frame.placement.word)
            frame.placement.undo()
            frame.placement = None

    def _unwind(self, stack: List[_Frame]) -> None:
        while stack:
            self._retract(stack.pop())

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    def _report(self, grid: FillGrid) -> None:
        try:
            self.reporter.update(grid.render())
        except Exception as exc:  # reporters are observational only
            LOGGER.warning("Progress reporter failed: %s", exc)

    def _should_stop(self) -> bool:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline


def solve(
    slots: Sequence[WordSlot],
    grid: FillGrid,
    used_words: Set[str],
    matcher: PatternMatcher,
    **driver_options,
) -> SearchResult:
    """Convenience wrapper around :meth:`SearchDriver.solve`."""

    return SearchDriver(matcher, **driver_options).solve(slots, grid, used_words)
