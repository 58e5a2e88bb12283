"""CP-SAT grid filling backend using OR-Tools."""

from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from typing import AbstractSet, Dict, List, Optional, Sequence

from ortools.sat.python import cp_model

from ..core.constants import SearchOutcome
from ..core.models import Coord, SearchResult, SearchStats, WordSlot
from ..utils.logger import get_logger
from .grid import FillGrid
from .patterns import PatternMatcher

LOGGER = get_logger(__name__)

CellVar = object  # cp_model.IntVar for a blank cell, int for a fixed letter


def solve_with_cpsat(
    grid: FillGrid,
    slots: Sequence[WordSlot],
    matcher: PatternMatcher,
    used_words: AbstractSet[str] = frozenset(),
    timeout: float = 30.0,
    num_workers: int = 4,
) -> SearchResult:
    """Fill ``slots`` via CP-SAT and write the words onto ``grid``.

    Args:
        grid: FillGrid with fixed block layout; pre-filled letters are constants.
        slots: Every slot to fill.
        matcher: Pattern matcher for candidate lookup.
        used_words: Answers that no slot may repeat.
        timeout: Solver time limit in seconds.
        num_workers: CP-SAT search workers.

    Returns:
        A SearchResult: SOLVED with the grid filled in place, EXHAUSTED if the
        model is infeasible, CANCELLED if the time limit hit first.
    """
    stats = SearchStats()
    if not slots:
        return SearchResult(outcome=SearchOutcome.SOLVED, grid=grid, stats=stats)

    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Step 1: Cell letter variables
    # ------------------------------------------------------------------
    cell_vars: Dict[Coord, CellVar] = {}
    for slot in slots:
        for r, c in slot.cells:
            if (r, c) in cell_vars:
                continue
            existing = grid.letter_at(r, c)
            if existing:
                cell_vars[(r, c)] = ord(existing) - ord("A")
            else:
                cell_vars[(r, c)] = model.new_int_var(0, 25, f"L_{r}_{c}")

    # ------------------------------------------------------------------
    # Step 2: Per-slot word candidates + table constraints
    # ------------------------------------------------------------------
    for slot in slots:
        slot.candidates = matcher.filter(grid.pattern(slot), used_words)
        slot.remaining_count = len(slot.candidates)
        if not slot.candidates:
            LOGGER.debug("No candidates for slot %s (pattern %s)", slot.id, grid.pattern(slot))
            stats.dead_ends += 1
            return SearchResult(outcome=SearchOutcome.EXHAUSTED, stats=stats)

        cell_list = [cell_vars[coord] for coord in slot.cells]
        # Only add table constraint if there's at least one real IntVar
        if any(isinstance(v, cp_model.IntVar) for v in cell_list):
            tuples = [[ord(ch) - ord("A") for ch in word] for word in slot.candidates]
            model.add_allowed_assignments(cell_list, tuples)

    # ------------------------------------------------------------------
    # Step 3: Uniqueness constraints
    # ------------------------------------------------------------------
    # Group by length for pairwise uniqueness
    by_length: Dict[int, List[WordSlot]] = defaultdict(list)
    for slot in slots:
        by_length[slot.length].append(slot)

    for group in by_length.values():
        for s1, s2 in combinations(group, 2):
            _add_differ_constraint(model, cell_vars, s1, s2)

    # Forbid slots from matching already-placed words
    for slot in slots:
        for placed_word in used_words:
            if len(placed_word) == slot.length:
                _forbid_word(model, cell_vars, slot, placed_word)

    # ------------------------------------------------------------------
    # Step 4: Solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = num_workers

    LOGGER.info(
        "CP-SAT: %d slots, %d cell vars, solving (timeout=%0.1fs)...",
        len(slots),
        sum(1 for v in cell_vars.values() if isinstance(v, cp_model.IntVar)),
        timeout,
    )

    status = solver.solve(model)

    if status == cp_model.INFEASIBLE:
        LOGGER.info("CP-SAT: model infeasible")
        return SearchResult(outcome=SearchOutcome.EXHAUSTED, stats=stats)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.warning("CP-SAT: no solution found (status=%s)", solver.status_name(status))
        return SearchResult(outcome=SearchOutcome.CANCELLED, stats=stats)

    LOGGER.info("CP-SAT: solution found in %.2fs", solver.wall_time)

    # ------------------------------------------------------------------
    # Step 5: Extract solution
    # ------------------------------------------------------------------
    assignments: Dict[str, str] = {}
    for slot in slots:
        word = "".join(chr(_resolve_var(solver, cell_vars[coord]) + ord("A")) for coord in slot.cells)
        grid.place_word(slot, word)
        slot.answer = word
        assignments[slot.id] = word
        stats.placements += 1
    return SearchResult(outcome=SearchOutcome.SOLVED, grid=grid, assignments=assignments, stats=stats)


def _resolve_var(solver: cp_model.CpSolver, var_or_const: CellVar) -> int:
    """Get the value of a variable or constant."""
    if isinstance(var_or_const, cp_model.IntVar):
        return solver.value(var_or_const)
    return var_or_const


def _differ_at(model: cp_model.CpModel, v1: CellVar, v2: CellVar, name: str) -> Optional[object]:
    """Literal true iff the cells differ; True or None when both are fixed letters."""
    if not isinstance(v1, cp_model.IntVar) and not isinstance(v2, cp_model.IntVar):
        return True if v1 != v2 else None
    if v1 is v2:
        return None  # shared crossing cell can never differ
    if not isinstance(v1, cp_model.IntVar):
        v1, v2 = v2, v1
    b = model.new_bool_var(name)
    model.add(v1 != v2).only_enforce_if(b)
    model.add(v1 == v2).only_enforce_if(~b)
    return b


def _add_differ_constraint(
    model: cp_model.CpModel,
    cell_vars: Dict[Coord, CellVar],
    s1: WordSlot,
    s2: WordSlot,
) -> None:
    """Ensure two same-length slots cannot contain identical words."""
    diffs = []
    for pos in range(s1.length):
        v1 = cell_vars[s1.cells[pos]]
        v2 = cell_vars[s2.cells[pos]]
        literal = _differ_at(model, v1, v2, f"d_{s1.id}_{s2.id}_{pos}")
        if literal is True:
            return  # Already guaranteed different
        if literal is not None:
            diffs.append(literal)
    if diffs:
        model.add_bool_or(diffs)
    else:
        # Identical fixed letters everywhere: the two slots would repeat a word.
        model.add_bool_or([])


def _forbid_word(
    model: cp_model.CpModel,
    cell_vars: Dict[Coord, CellVar],
    slot: WordSlot,
    placed_word: str,
) -> None:
    """Forbid a slot from matching a specific placed word."""
    diffs = []
    for pos, coord in enumerate(slot.cells):
        letter_val = ord(placed_word[pos]) - ord("A")
        literal = _differ_at(model, cell_vars[coord], letter_val, f"ne_{slot.id}_{placed_word}_{pos}")
        if literal is True:
            return
        if literal is not None:
            diffs.append(literal)
    if diffs:
        model.add_bool_or(diffs)
    else:
        model.add_bool_or([])

