"""Deterministic rule validation for filled grids."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..core.exceptions import ValidationError
from ..core.models import Coord, WordSlot
from ..data.lexicon import LexiconSource
from ..utils.logger import get_logger
from .grid import FillGrid


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str] = field(default_factory=list)


class GridValidator:
    """Runs deterministic validation over a filled grid."""

    def __init__(self, lexicon: LexiconSource) -> None:
        self.lexicon = lexicon
        self._buckets: Dict[int, FrozenSet[str]] = {}

    def validate(
        self,
        grid: FillGrid,
        slots: Sequence[WordSlot],
        original: Optional[FillGrid] = None,
    ) -> ValidationResult:
        messages: List[str] = []
        try:
            self._check_letters_valid(grid, slots)
            self._check_crossings(grid, slots)
            self._check_words_in_lexicon(grid, slots)
            self._check_no_duplicate_words(grid, slots)
            if original is not None:
                self._check_layout_unchanged(grid, original)
        except ValidationError as exc:
            messages.append(str(exc))
            LOGGER.warning("Validation failed: %s", exc)
            return ValidationResult(ok=False, messages=messages)
        return ValidationResult(ok=True)

    def _check_letters_valid(self, grid: FillGrid, slots: Sequence[WordSlot]) -> None:
        for slot in slots:
            for r, c in slot.cells:
                letter = grid.letter_at(r, c)
                if not letter or not ("A" <= letter <= "Z"):
                    raise ValidationError(f"Invalid letter '{letter}' at ({r},{c}) in slot {slot.id}")

    def _check_crossings(self, grid: FillGrid, slots: Sequence[WordSlot]) -> None:
        # The grid holds one letter per cell, so crossings can only disagree
        # through the answers recorded on the slots.
        seen: Dict[Coord, str] = {}
        for slot in slots:
            word = slot.answer or grid.word_at(slot) or ""
            for coord, letter in zip(slot.cells, word):
                previous = seen.setdefault(coord, letter)
                if previous != letter:
                    raise ValidationError(
                        f"Crossing conflict at {coord}: '{previous}' vs '{letter}' in slot {slot.id}"
                    )

    def _check_words_in_lexicon(self, grid: FillGrid, slots: Sequence[WordSlot]) -> None:
        for slot in slots:
            word = grid.word_at(slot) or ""
            if word not in self._bucket(slot.length):
                raise ValidationError(f"Invalid word '{word}' in slot {slot.id}")

    def _bucket(self, length: int) -> FrozenSet[str]:
        # Sources may hand out any case; grid letters are always uppercase.
        bucket = self._buckets.get(length)
        if bucket is None:
            bucket = frozenset(word.upper() for word in self.lexicon.words_of_length(length))
            self._buckets[length] = bucket
        return bucket

    def _check_no_duplicate_words(self, grid: FillGrid, slots: Sequence[WordSlot]) -> None:
        seen: Dict[str, str] = {}
        for slot in slots:
            word = grid.word_at(slot)
            if not word:
                continue
            if word in seen:
                raise ValidationError(f"Duplicate word '{word}' in slots {seen[word]} and {slot.id}")
            seen[word] = slot.id

    def _check_layout_unchanged(self, grid: FillGrid, original: FillGrid) -> None:
        if grid.block_layout() != original.block_layout():
            raise ValidationError("Block layout differs from the input grid")
        for r, row in enumerate(original.to_rows()):
            for c, value in enumerate(row):
                if value not in (None, "#") and grid.letter_at(r, c) != value:
                    raise ValidationError(f"Pre-filled letter '{value}' at ({r},{c}) was overwritten")
