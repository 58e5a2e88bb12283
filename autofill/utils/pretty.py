"""Pretty-print helpers for filled grids."""

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING

from ..core.constants import BLOCK_MARKER, EMPTY_GLYPH, CellState

if TYPE_CHECKING:
    from ..engine.filler import FillResult
    from ..engine.grid import FillGrid


def cell_symbol(cell) -> str:
    if cell.state == CellState.BLOCK:
        return BLOCK_MARKER
    return cell.letter or EMPTY_GLYPH


def format_grid(grid: FillGrid) -> str:
    width = grid.bounds.cols
    header_cells = [f"{c:>2}" for c in range(width)]
    lines = ["    " + " ".join(header_cells)]
    lines.append("    " + "-" * (3 * width - 1))
    for r in range(grid.bounds.rows):
        row_render = " ".join(f"{cell_symbol(grid.cell(r, c)):>2}" for c in range(width))
        lines.append(f"{r:>2} | {row_render}")
    return "\n".join(lines)


def pretty_print_grid(grid: FillGrid, *, label: str | None = None, stream=None) -> None:
    """Print the grid in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_grid(grid), file=stream)


def print_fill_stats(result: FillResult, *, stream=None) -> None:
    """Print the filled grid (if any) and the search statistics."""

    stream = stream or sys.stdout
    print(f"Outcome: {result.outcome.value}", file=stream)
    if result.grid is not None:
        print(file=stream)
        print(format_grid(result.grid), file=stream)

    lengths = [slot.length for slot in result.slots]
    print(file=stream)
    print("--- Slots ---", file=stream)
    print(f"  Total slots:   {len(result.slots)}", file=stream)
    if lengths:
        print(f"  Length range:  {min(lengths)}-{max(lengths)} (avg {sum(lengths) / len(lengths):.1f})", file=stream)
        dist_parts = [f"{l}:{c}" for l, c in sorted(Counter(lengths).items())]
        print(f"  Distribution:  {' '.join(dist_parts)}", file=stream)

    stats = result.stats
    print(file=stream)
    print("--- Search ---", file=stream)
    print(f"  Selections:    {stats.selections}", file=stream)
    print(f"  Placements:    {stats.placements}", file=stream)
    print(f"  Backtracks:    {stats.backtracks}", file=stream)
    print(f"  Dead ends:     {stats.dead_ends}", file=stream)
    print(f"  Max depth:     {stats.max_depth}", file=stream)
    print(f"  Elapsed:       {result.elapsed_seconds:.3f}s", file=stream)

    if result.answers:
        print(file=stream)
        print("--- Answers ---", file=stream)
        for slot in result.slots:
            answer = result.answers.get(slot.id)
            if answer:
                print(f"  {slot.id:<10} {answer}", file=stream)

    if result.validation_messages:
        print(file=stream)
        print("--- Validation ---", file=stream)
        for msg in result.validation_messages:
            print(f"  {msg}", file=stream)
