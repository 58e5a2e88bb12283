"""Which slots cross which, and where."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from ..core.models import Coord, WordSlot


@dataclass(frozen=True)
class Crossing:
    """A neighbour of a slot and the shared cell's index in both slots."""

    other: WordSlot
    index: int
    other_index: int


def intersecting(slot: WordSlot, all_slots: Sequence[WordSlot]) -> List[WordSlot]:
    """Every other slot sharing at least one cell with ``slot``."""

    target = set(slot.cells)
    return [other for other in all_slots if other is not slot and target.intersection(other.cells)]


class IntersectionIndex:
    """Adjacency lists computed once; cell geometry never changes in a search."""

    def __init__(self, slots: Sequence[WordSlot]) -> None:
        self.slots = list(slots)
        self._crossings: Dict[WordSlot, List[Crossing]] = {slot: [] for slot in self.slots}
        owners: Dict[Coord, List[Tuple[WordSlot, int]]] = defaultdict(list)
        for slot in self.slots:
            for index, coord in enumerate(slot.cells):
                owners[coord].append((slot, index))
        for entries in owners.values():
            for slot, index in entries:
                for other, other_index in entries:
                    if other is not slot:
                        self._crossings[slot].append(Crossing(other, index, other_index))

    def crossings(
        self,
        slot: WordSlot,
        within: Optional[AbstractSet[WordSlot]] = None,
    ) -> List[Crossing]:
        """Crossings of ``slot``, optionally restricted to neighbours in ``within``."""

        found = self._crossings.get(slot, [])
        if within is None:
            return list(found)
        return [crossing for crossing in found if crossing.other in within]

    def intersecting(
        self,
        slot: WordSlot,
        within: Optional[AbstractSet[WordSlot]] = None,
    ) -> List[WordSlot]:
        neighbours: List[WordSlot] = []
        for crossing in self.crossings(slot, within):
            if crossing.other not in neighbours:
                neighbours.append(crossing.other)
        return neighbours
