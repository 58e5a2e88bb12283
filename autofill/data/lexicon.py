"""Length-indexed answer lists loaded once before a fill."""

from __future__ import annotations

import csv
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Protocol, Set

from ..core.exceptions import LexiconCoverageError, LexiconLoadError
from ..utils.logger import get_logger
from .normalization import clean_answer


LOGGER = get_logger(__name__)

TABULAR_SUFFIXES = {".csv": ",", ".tsv": "\t"}


class LexiconSource(Protocol):
    """Anything able to hand out the answers of a given length."""

    def words_of_length(self, length: int) -> Set[str]:
        ...


@dataclass
class LexiconConfig:
    """Configuration for lexicon loading and filtering."""

    path: Path | str
    min_length: int = 2
    max_length: int = 24
    answer_column: str = "answer"


class Lexicon:
    """Immutable mapping from word length to the set of uppercase answers."""

    def __init__(
        self,
        words: Iterable[str] = (),
        min_length: int = 2,
        max_length: int = 24,
    ) -> None:
        buckets: Dict[int, Set[str]] = defaultdict(set)
        for raw in words:
            surface = clean_answer(raw)
            if not surface:
                continue
            if len(surface) < min_length or len(surface) > max_length:
                continue
            buckets[len(surface)].add(surface)
        self._buckets: Dict[int, FrozenSet[str]] = {
            length: frozenset(bucket) for length, bucket in buckets.items()
        }

    @classmethod
    def from_buckets(cls, buckets: Mapping[int, Iterable[str]]) -> "Lexicon":
        """Build a lexicon from explicit ``length -> words`` buckets.

        Words whose normalized length disagrees with their bucket key are
        re-bucketed under their real length.
        """

        words: List[str] = []
        for bucket in buckets.values():
            words.extend(bucket)
        return cls(words, min_length=1, max_length=10_000)

    @classmethod
    def from_config(cls, config: LexiconConfig) -> "Lexicon":
        words = read_word_file(Path(config.path), answer_column=config.answer_column)
        lexicon = cls(words, min_length=config.min_length, max_length=config.max_length)
        LOGGER.info("Loaded %s unique answers from %s", len(lexicon), config.path)
        return lexicon

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def words_of_length(self, length: int) -> FrozenSet[str]:
        return self._buckets.get(length, frozenset())

    def has_length(self, length: int) -> bool:
        return bool(self._buckets.get(length))

    def lengths(self) -> List[int]:
        return sorted(length for length, bucket in self._buckets.items() if bucket)

    def contains(self, word: str) -> bool:
        surface = clean_answer(word)
        return surface in self._buckets.get(len(surface), frozenset())

    def counts_by_length(self) -> Dict[int, int]:
        """Return the number of unique answers per length, shortest first."""

        return {length: len(self._buckets[length]) for length in self.lengths()}

    def missing_lengths(self, lengths: Iterable[int]) -> List[int]:
        return sorted({length for length in lengths if not self.has_length(length)})

    def ensure_covers(self, lengths: Iterable[int]) -> None:
        """Fail fast when any required slot length has no answers."""

        check_coverage(self, lengths)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self.contains(word)


def read_word_file(path: Path, answer_column: str = "answer") -> List[str]:
    """Read answers from a plain word list or a CSV/TSV clue export.

    Plain files hold one answer per line; blank lines and ``#`` comments are
    skipped. Tabular files must have a header row with ``answer_column``.
    """

    if not path.exists():
        raise LexiconLoadError(f"Missing word store: {path}")

    delimiter = TABULAR_SUFFIXES.get(path.suffix.lower())
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            if delimiter is None:
                return parse_word_lines(handle.read().splitlines())
            reader = csv.DictReader(handle, delimiter=delimiter)
            if not reader.fieldnames or answer_column not in reader.fieldnames:
                raise LexiconLoadError(
                    f"{path} has no '{answer_column}' column (found {reader.fieldnames})"
                )
            return [row.get(answer_column) or "" for row in reader]
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise LexiconLoadError(f"Cannot read word store {path}: {exc}") from exc


def parse_word_lines(lines: Iterable[str]) -> List[str]:
    entries: List[str] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return entries


def load_lexicon(
    path: Path | str,
    min_length: int = 2,
    max_length: int = 24,
    answer_column: str = "answer",
) -> Lexicon:
    return Lexicon.from_config(
        LexiconConfig(
            path=path,
            min_length=min_length,
            max_length=max_length,
            answer_column=answer_column,
        )
    )


def check_coverage(source: LexiconSource, lengths: Iterable[int]) -> None:
    """Pre-flight check against any lexicon source."""

    missing = sorted({length for length in lengths if not source.words_of_length(length)})
    if missing:
        LOGGER.error("Lexicon lacks answers for slot length(s) %s", missing)
        raise LexiconCoverageError(missing)
