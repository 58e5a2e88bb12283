"""Pattern construction and cached lexicon filtering."""

from __future__ import annotations

from collections import defaultdict
from typing import AbstractSet, Dict, List, Optional, Set, Tuple

from ..core.constants import BLANK
from ..core.exceptions import NoLexiconForLength
from ..data.lexicon import LexiconSource
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

PositionIndex = Dict[Tuple[int, str], Set[str]]


def normalize_pattern(pattern: str) -> str:
    return "".join(BLANK if char in {BLANK, ".", " ", "?"} else char.upper() for char in pattern)


class PatternMatcher:
    """Filter a lexicon bucket against a slot pattern.

    Raw matches are cached per literal pattern string. The same all-blank or
    partially filled pattern recurs across many search states, and a given
    string always yields the same raw list; the ``used_words`` exclusion is
    applied after the lookup so the cache never depends on search state.
    """

    def __init__(self, lexicon: LexiconSource) -> None:
        self.lexicon = lexicon
        self._cache: Dict[str, Tuple[str, ...]] = {}
        # Positional index: length -> (position, letter) -> set of words
        self._position_index: Dict[int, PositionIndex] = {}
        self._buckets: Dict[int, Tuple[str, ...]] = {}
        self.hits = 0
        self.misses = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def raw_matches(self, pattern: str) -> Tuple[str, ...]:
        """Every lexicon word matching ``pattern``, sorted, ignoring used words."""

        pattern = normalize_pattern(pattern)
        cached = self._cache.get(pattern)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = self._index_lookup(pattern)
        self._cache[pattern] = result
        return result

    def filter(self, pattern: str, used_words: Optional[AbstractSet[str]] = None) -> List[str]:
        """Return sorted candidates for ``pattern`` minus ``used_words``."""

        raw = self.raw_matches(pattern)
        if not used_words:
            return list(raw)
        return [word for word in raw if word not in used_words]

    def clear_cache(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    # ------------------------------------------------------------------
    # Index helpers
    # ------------------------------------------------------------------
    def _bucket(self, length: int) -> Tuple[str, ...]:
        bucket = self._buckets.get(length)
        if bucket is None:
            words = self.lexicon.words_of_length(length)
            if not words:
                raise NoLexiconForLength(length)
            bucket = tuple(sorted(word.upper() for word in words))
            self._buckets[length] = bucket
            index: PositionIndex = defaultdict(set)
            for word in bucket:
                for pos, char in enumerate(word):
                    index[(pos, char)].add(word)
            self._position_index[length] = index
        return bucket

    def _index_lookup(self, pattern: str) -> Tuple[str, ...]:
        """Use the positional index to find matches via set intersection."""

        bucket = self._bucket(len(pattern))
        index = self._position_index[len(pattern)]

        constraints: List[Set[str]] = []
        for pos, letter in enumerate(pattern):
            if letter == BLANK:
                continue
            match_set = index.get((pos, letter))
            if match_set is None:
                return ()
            constraints.append(match_set)

        if not constraints:
            return bucket

        # Intersect smallest sets first for speed
        constraints.sort(key=len)
        result = set(constraints[0])
        for other in constraints[1:]:
            result &= other
            if not result:
                return ()
        return tuple(sorted(result))
