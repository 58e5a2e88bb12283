"""Turn a grid plus its numbering into word slots."""

from __future__ import annotations

from typing import List, Mapping

from ..core.constants import Direction
from ..core.exceptions import EmptyGridError, NoSlotsError
from ..core.models import Coord, WordSlot
from ..utils.logger import get_logger
from .grid import FillGrid


LOGGER = get_logger(__name__)


def extract_slots(grid: FillGrid, numbering: Mapping[Coord, int]) -> List[WordSlot]:
    """Emit the across and down slots starting at each numbered cell.

    Labels are visited in ascending order and, for a shared start cell, the
    across slot precedes the down slot. That order is the tie-break order used
    by the search driver.
    """

    if grid.open_cell_count() == 0:
        raise EmptyGridError("Grid has no usable cells")

    slots: List[WordSlot] = []
    for (row, col), number in sorted(numbering.items(), key=lambda item: (item[1], item[0])):
        for direction in (Direction.ACROSS, Direction.DOWN):
            if not grid.starts_slot(row, col, direction):
                continue
            cells = grid.run_from(row, col, direction)
            slots.append(WordSlot(number=number, direction=direction, cells=cells))

    if not slots:
        raise NoSlotsError("No slot of length two or more exists in the grid")

    LOGGER.debug("Extracted %s slots from %s numbered cells", len(slots), len(numbering))
    return slots


def slot_lengths(slots: List[WordSlot]) -> List[int]:
    return sorted({slot.length for slot in slots})
