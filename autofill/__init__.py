"""Crossword auto-fill: complete a partially specified grid from a lexicon.

This package exposes the public API surface via:

- ``autofill.engine.filler.GridFiller``: orchestrates one fill from grid input to result.
- ``autofill.data.lexicon.Lexicon``: length-indexed answers loaded from files or a word store.
- ``autofill.engine.search.SearchDriver``: the backtracking search used by the filler.
"""

from .data.lexicon import Lexicon, LexiconConfig, load_lexicon
from .engine.filler import FillConfig, FillResult, GridFiller
from .engine.search import CancellationToken, SearchDriver

__all__ = [
    "CancellationToken",
    "FillConfig",
    "FillResult",
    "GridFiller",
    "Lexicon",
    "LexiconConfig",
    "SearchDriver",
    "load_lexicon",
]

__version__ = "0.1.0"
