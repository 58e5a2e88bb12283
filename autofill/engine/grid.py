"""Grid representation and helper utilities."""

from __future__ import annotations

import copy
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..core.constants import (BLANK, BLOCK_MARKER, EMPTY_GLYPH, EMPTY_MARKERS,
                              Bounds, CellState, Direction)
from ..core.exceptions import EmptyGridError, GridFormatError, SlotPlacementError
from ..core.models import Cell, Coord, WordSlot
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

RawCell = Optional[str]


class FillGrid:
    """Mutable grid of blocks, blanks and letters owned by one fill request."""

    def __init__(self, cells: List[List[Cell]]) -> None:
        if not cells or not cells[0]:
            raise EmptyGridError("Grid has no rows or columns")
        width = len(cells[0])
        if any(len(row) != width for row in cells):
            raise GridFormatError("Grid rows have different lengths")
        self.cells = cells
        self.bounds = Bounds(rows=len(cells), cols=width)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[RawCell] | str]) -> "FillGrid":
        """Parse caller rows into a grid.

        A row is either a string (one character per cell) or a sequence of
        cell values: ``"#"`` for a block, ``None``/``""``/``"."``/``"_"`` for
        an empty cell, or a single letter for a pre-filled cell.
        """

        parsed: List[List[Cell]] = []
        for r, row in enumerate(rows):
            values: Iterable[RawCell] = list(row) if isinstance(row, str) else row
            parsed.append([_parse_cell(value, r, c) for c, value in enumerate(values)])
        return cls(parsed)

    def copy(self) -> "FillGrid":
        return FillGrid(copy.deepcopy(self.cells))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def is_open(self, row: int, col: int) -> bool:
        """True for an in-bounds cell that is not a block."""
        return self.bounds.contains(row, col) and self.cells[row][col].is_open()

    def open_cell_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.is_open())

    def empty_cell_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.is_empty())

    def letter_at(self, row: int, col: int) -> Optional[str]:
        return self.cells[row][col].letter

    def starts_slot(self, row: int, col: int, direction: Direction) -> bool:
        """True if ``(row, col)`` begins a run of two or more open cells."""

        if not self.is_open(row, col):
            return False
        dr, dc = direction.step
        before_blocked = not self.is_open(row - dr, col - dc)
        after_open = self.is_open(row + dr, col + dc)
        return before_blocked and after_open

    def run_from(self, row: int, col: int, direction: Direction) -> Tuple[Coord, ...]:
        dr, dc = direction.step
        coords: List[Coord] = []
        r, c = row, col
        while self.is_open(r, c):
            coords.append((r, c))
            r += dr
            c += dc
        return tuple(coords)

    def pattern(self, slot: WordSlot) -> str:
        return "".join(self.cells[r][c].letter or BLANK for r, c in slot.cells)

    def word_at(self, slot: WordSlot) -> Optional[str]:
        """Return the slot's letters, or ``None`` while any cell is blank."""
        pattern = self.pattern(slot)
        return None if BLANK in pattern else pattern

    def block_layout(self) -> List[List[bool]]:
        return [[cell.state == CellState.BLOCK for cell in row] for row in self.cells]

    # ------------------------------------------------------------------
    # Word placement
    # ------------------------------------------------------------------
    def place_word_undoable(self, slot: WordSlot, text: str) -> Callable[[], None]:
        """Write ``text`` into the slot's blank cells and return an undo callable.

        Cells already holding a letter must agree with ``text``; only cells
        that were blank are recorded, so undo restores exactly the prior state.
        """

        text = text.upper()
        if len(text) != slot.length:
            raise SlotPlacementError(f"Word length mismatch: {text!r} into {slot.id}")

        written: List[Tuple[int, int, int]] = []
        for index, (row, col) in enumerate(slot.cells):
            if not self.bounds.contains(row, col):
                raise SlotPlacementError("Word extends outside grid")
            cell = self.cells[row][col]
            if cell.state == CellState.BLOCK:
                raise SlotPlacementError(f"Word overlaps block at {(row, col)}")
            existing = cell.letter
            if existing and existing != text[index]:
                raise SlotPlacementError(
                    f"Letter conflict at {(row, col)}: {existing} vs {text[index]}"
                )
            if cell.state == CellState.EMPTY:
                written.append((index, row, col))

        for index, row, col in written:
            cell = self.cells[row][col]
            cell.state = CellState.LETTER
            cell.letter = text[index]

        def undo() -> None:
            for _, row, col in written:
                cell = self.cells[row][col]
                cell.state = CellState.EMPTY
                cell.letter = None

        return undo

    def place_word(self, slot: WordSlot, text: str) -> None:
        self.place_word_undoable(slot, text)

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_rows(self) -> List[List[Optional[str]]]:
        """Return caller-shaped rows: ``"#"``, ``None`` or a letter."""
        rows: List[List[Optional[str]]] = []
        for row in self.cells:
            rows.append(
                [BLOCK_MARKER if cell.state == CellState.BLOCK else cell.letter for cell in row]
            )
        return rows

    def to_strings(self) -> List[str]:
        return [
            "".join(
                BLOCK_MARKER if cell.state == CellState.BLOCK else (cell.letter or EMPTY_GLYPH)
                for cell in row
            )
            for row in self.cells
        ]

    def render(self) -> str:
        """Space-separated snapshot, one line per row, blanks as ``.``."""
        return "\n".join(" ".join(line) for line in self.to_strings())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FillGrid):
            return NotImplemented
        return self.to_rows() == other.to_rows()

    def __repr__(self) -> str:
        return f"FillGrid({self.bounds.rows}x{self.bounds.cols})"


def _parse_cell(value: RawCell, row: int, col: int) -> Cell:
    if value is None:
        return Cell()
    if not isinstance(value, str):
        raise GridFormatError(f"Unsupported cell value {value!r} at ({row},{col})")
    if value == BLOCK_MARKER:
        return Cell(state=CellState.BLOCK)
    if value in EMPTY_MARKERS:
        return Cell()
    if len(value) == 1 and value.isalpha() and value.isascii():
        return Cell(state=CellState.LETTER, letter=value.upper())
    raise GridFormatError(f"Unsupported cell value {value!r} at ({row},{col})")
