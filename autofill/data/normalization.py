"""Shared helpers for answer normalization."""

from __future__ import annotations

import re
import unicodedata

WORD_RE = re.compile(r"[^A-Za-z]")


def clean_answer(text: str) -> str:
    """Return a normalized uppercase ASCII representation of ``text``.

    Diacritics are folded onto their base letter and anything that is not a
    letter (spaces, hyphens, apostrophes, digits) is dropped, so ``"Café au
    lait"`` becomes ``"CAFEAULAIT"``.
    """

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return WORD_RE.sub("", stripped).upper()


__all__ = ["clean_answer"]
