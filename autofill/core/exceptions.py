"""Custom exception hierarchy for grid filling."""


class CrosswordError(Exception):
    """Base exception for filler failures."""


class InputError(CrosswordError):
    """Raised when the caller-supplied grid or numbering is unusable."""


class GridFormatError(InputError):
    """Raised when the grid is not rectangular or holds unknown cell values."""


class NumberingError(InputError):
    """Raised when the numbering map does not match the grid's slot starts."""


class NoSlotsError(InputError):
    """Raised when the grid contains no slot of length two or more."""


class EmptyGridError(NoSlotsError):
    """Raised when the grid has no usable (unblocked) cells at all."""


class LexiconLoadError(CrosswordError):
    """Raised when the word store cannot be read."""


class LexiconCoverageError(CrosswordError):
    """Raised when a slot length present in the grid has no lexicon words."""

    def __init__(self, missing_lengths) -> None:
        self.missing_lengths = sorted(missing_lengths)
        joined = ", ".join(str(length) for length in self.missing_lengths)
        super().__init__(f"No lexicon words with length(s): {joined}")


class NoLexiconForLength(LexiconCoverageError):
    """Raised by the pattern matcher when a length bucket is missing."""

    def __init__(self, length: int) -> None:
        super().__init__([length])
        self.length = length


class SlotPlacementError(CrosswordError):
    """Raised when a word cannot be written into a slot."""


class ValidationError(CrosswordError):
    """Raised when the filled grid integrity checks fail."""
