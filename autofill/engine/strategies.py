"""Slot-selection and candidate-ordering strategies for the search driver."""

from __future__ import annotations

import random
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from ..core.models import WordSlot


class SlotSelector(Protocol):
    """Pick the next slot to fill from the unresolved ones."""

    requires_scores: bool

    def select(self, slots: Sequence[WordSlot]) -> WordSlot:
        ...


class CandidateOrdering(Protocol):
    """Decide the order in which a slot's candidates are tried."""

    requires_scores: bool

    def order(self, candidates: Sequence[str], scores: Optional[Mapping[str, int]] = None) -> List[str]:
        ...


class MostConstrainedSelector:
    """Fail-first: fewest remaining candidates, ties broken by input order."""

    requires_scores = False

    def select(self, slots: Sequence[WordSlot]) -> WordSlot:
        # min() returns the first of several equal minima.
        return min(slots, key=lambda slot: slot.remaining_count or 0)


class InputOrderSelector:
    """Fill slots strictly in extraction order."""

    requires_scores = False

    def select(self, slots: Sequence[WordSlot]) -> WordSlot:
        return slots[0]


class WeakestLookaheadSelector:
    """Lowest lookahead score first, then fewest candidates, then input order."""

    requires_scores = True

    def select(self, slots: Sequence[WordSlot]) -> WordSlot:
        return min(slots, key=lambda slot: (slot.best_score or 0, slot.remaining_count or 0))


class LexicographicOrdering:
    requires_scores = False

    def order(self, candidates: Sequence[str], scores: Optional[Mapping[str, int]] = None) -> List[str]:
        return sorted(candidates)


class LookaheadOrdering:
    """Highest lookahead score first; equal scores stay alphabetical."""

    requires_scores = True

    def order(self, candidates: Sequence[str], scores: Optional[Mapping[str, int]] = None) -> List[str]:
        scores = scores or {}
        return sorted(candidates, key=lambda word: (-scores.get(word, 0), word))


class ShuffledOrdering:
    """Seeded random order, reproducible for a given seed and lexicon."""

    requires_scores = False

    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = random.Random(seed)

    def order(self, candidates: Sequence[str], scores: Optional[Mapping[str, int]] = None) -> List[str]:
        ordered = sorted(candidates)
        self.rng.shuffle(ordered)
        return ordered


SLOT_SELECTORS: Dict[str, type] = {
    "most_constrained": MostConstrainedSelector,
    "input_order": InputOrderSelector,
    "weakest_lookahead": WeakestLookaheadSelector,
}

CANDIDATE_ORDERINGS: Dict[str, type] = {
    "lexicographic": LexicographicOrdering,
    "lookahead": LookaheadOrdering,
    "shuffled": ShuffledOrdering,
}


def make_selector(name: str) -> SlotSelector:
    try:
        return SLOT_SELECTORS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown slot selection '{name}'. Known: {', '.join(sorted(SLOT_SELECTORS))}"
        ) from None


def make_ordering(name: str, seed: Optional[int] = None) -> CandidateOrdering:
    if name == "shuffled":
        return ShuffledOrdering(seed)
    try:
        return CANDIDATE_ORDERINGS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown candidate order '{name}'. Known: {', '.join(sorted(CANDIDATE_ORDERINGS))}"
        ) from None
