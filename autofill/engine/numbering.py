"""Grid numbering: label every cell that starts an across or down slot."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from ..core.constants import Direction
from ..core.exceptions import NumberingError
from ..core.models import Coord
from .grid import FillGrid

Numbering = Dict[Coord, int]


def compute_numbering(grid: FillGrid) -> Numbering:
    """Number slot starts row-major from 1."""

    numbering: Numbering = {}
    current = 1
    for r in range(grid.bounds.rows):
        for c in range(grid.bounds.cols):
            if grid.starts_slot(r, c, Direction.ACROSS) or grid.starts_slot(r, c, Direction.DOWN):
                numbering[(r, c)] = current
                current += 1
    return numbering


def parse_numbering(raw: Mapping[Any, Any]) -> Numbering:
    """Accept ``{(r, c): n}`` or the JSON form ``{"r,c": n}``."""

    numbering: Numbering = {}
    for key, value in raw.items():
        if isinstance(key, str):
            parts = key.split(",")
            if len(parts) != 2:
                raise NumberingError(f"Numbering key {key!r} is not 'row,col'")
            try:
                coord = (int(parts[0]), int(parts[1]))
            except ValueError as exc:
                raise NumberingError(f"Numbering key {key!r} is not 'row,col'") from exc
        else:
            try:
                row, col = key
                coord = (int(row), int(col))
            except (TypeError, ValueError) as exc:
                raise NumberingError(f"Numbering key {key!r} is not a (row, col) pair") from exc
        try:
            numbering[coord] = int(value)
        except (TypeError, ValueError) as exc:
            raise NumberingError(f"Numbering label {value!r} at {coord} is not an integer") from exc
    return numbering


def numbering_to_jsonable(numbering: Mapping[Coord, int]) -> Dict[str, int]:
    return {f"{r},{c}": number for (r, c), number in sorted(numbering.items())}


def validate_numbering(grid: FillGrid, numbering: Mapping[Coord, int]) -> None:
    """Check that exactly the slot-starting cells carry distinct positive labels."""

    seen: Dict[int, Coord] = {}
    for (r, c), number in numbering.items():
        if not grid.bounds.contains(r, c):
            raise NumberingError(f"Numbered cell {(r, c)} is outside the grid")
        if not grid.is_open(r, c):
            raise NumberingError(f"Numbered cell {(r, c)} is a block")
        if number <= 0:
            raise NumberingError(f"Label {number} at {(r, c)} is not positive")
        if number in seen:
            raise NumberingError(f"Label {number} used at both {seen[number]} and {(r, c)}")
        seen[number] = (r, c)
        if not (grid.starts_slot(r, c, Direction.ACROSS) or grid.starts_slot(r, c, Direction.DOWN)):
            raise NumberingError(f"Numbered cell {(r, c)} does not start a slot")

    for r in range(grid.bounds.rows):
        for c in range(grid.bounds.cols):
            if (r, c) in numbering:
                continue
            if grid.starts_slot(r, c, Direction.ACROSS) or grid.starts_slot(r, c, Direction.DOWN):
                raise NumberingError(f"Cell {(r, c)} starts a slot but has no number")
