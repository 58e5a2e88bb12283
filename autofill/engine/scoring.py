"""Max-min lookahead scoring of a slot's candidates."""

from __future__ import annotations

from collections import Counter
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from ..core.models import Coord, ScoreResult, WordSlot
from .grid import FillGrid
from .intersections import IntersectionIndex
from .patterns import PatternMatcher


class HeuristicScorer:
    """Estimate how alive a slot stays, judged by its weakest neighbour.

    For each candidate the scorer tentatively writes the candidate's letter
    into every crossing cell and counts how many words of the neighbour's
    remaining pool still fit. The candidate's score is the minimum of those
    counts; the slot's score is the maximum over its candidates.
    """

    def __init__(self, matcher: PatternMatcher, index: Optional[IntersectionIndex] = None) -> None:
        self.matcher = matcher
        self.index = index

    def score(
        self,
        slot: WordSlot,
        all_slots: Sequence[WordSlot],
        grid: FillGrid,
        used_words: AbstractSet[str],
    ) -> ScoreResult:
        ranked = self.rank(slot, all_slots, grid, used_words)
        best_candidate: Optional[str] = None
        best_score = 0
        for candidate, value in ranked:
            if value > best_score:
                best_score = value
                best_candidate = candidate
        return ScoreResult(
            best_candidate=best_candidate,
            best_score=best_score,
            scores=dict(ranked),
        )

    def rank(
        self,
        slot: WordSlot,
        all_slots: Sequence[WordSlot],
        grid: FillGrid,
        used_words: AbstractSet[str],
    ) -> List[Tuple[str, int]]:
        """Return ``(candidate, score)`` for every candidate, in sorted word order."""

        candidates = self.matcher.filter(grid.pattern(slot), used_words)
        if not candidates:
            return []

        # Letter histograms of each neighbour pool at the crossing position.
        # A filled crossing cell leaves the neighbour's pattern unchanged, and
        # every candidate agrees with it, so the histogram lookup still yields
        # the full pool size there.
        histograms: List[Tuple[int, Counter]] = []
        for other, index, other_index in self._crossings(slot, all_slots):
            pool = self.matcher.filter(grid.pattern(other), used_words)
            histograms.append((index, Counter(word[other_index] for word in pool)))

        if not histograms:
            return [(candidate, len(candidates)) for candidate in candidates]

        ranked: List[Tuple[str, int]] = []
        for candidate in candidates:
            ranked.append((candidate, min(hist[candidate[index]] for index, hist in histograms)))
        return ranked

    def _crossings(self, slot: WordSlot, all_slots: Sequence[WordSlot]) -> List[Tuple[WordSlot, int, int]]:
        if self.index is not None:
            within = set(all_slots)
            return [
                (crossing.other, crossing.index, crossing.other_index)
                for crossing in self.index.crossings(slot, within)
            ]
        found: List[Tuple[WordSlot, int, int]] = []
        positions: Dict[Coord, int] = {coord: index for index, coord in enumerate(slot.cells)}
        for other in all_slots:
            if other is slot:
                continue
            for other_index, coord in enumerate(other.cells):
                if coord in positions:
                    found.append((other, positions[coord], other_index))
        return found
