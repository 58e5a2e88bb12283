"""Progress reporters receiving grid snapshots during a search.

Reporters are purely observational: the search driver ignores anything they
raise, and nothing they do can change the outcome.
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, Protocol, TextIO

from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


class ProgressReporter(Protocol):
    def update(self, snapshot: str) -> None:
        """Receive the current grid render."""


class NullProgressReporter:
    def update(self, snapshot: str) -> None:
        return None


class LoggingProgressReporter:
    """Log every ``every``-th snapshot."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
        every: int = 1,
    ) -> None:
        self.logger = logger or LOGGER
        self.level = level
        self.every = max(1, every)
        self.count = 0

    def update(self, snapshot: str) -> None:
        self.count += 1
        if self.count % self.every == 0:
            self.logger.log(self.level, "Search step %s\n%s", self.count, snapshot)


class InlineProgressReporter:
    """Redraw the snapshot in place on a terminal stream."""

    def __init__(self, stream: Optional[TextIO] = None, every: int = 1, title: str = "") -> None:
        self.stream = stream or sys.stdout
        self.every = max(1, every)
        self.title = title
        self.count = 0
        self._last_lines = 0

    def update(self, snapshot: str) -> None:
        self.count += 1
        if self.count % self.every:
            return
        output = f"{self.title}\n{snapshot}" if self.title else snapshot
        lines = output.count("\n") + 1
        if self._last_lines:
            # Move the cursor back up over the previous frame, then clear below.
            self.stream.write(f"\x1b[{self._last_lines}A")
        self.stream.write("\x1b[0J")
        self.stream.write(output + "\n")
        self.stream.flush()
        self._last_lines = lines


class RecordingProgressReporter:
    """Keep every snapshot in memory."""

    def __init__(self) -> None:
        self.snapshots: List[str] = []

    def update(self, snapshot: str) -> None:
        self.snapshots.append(snapshot)


def make_reporter(name: str, stream: Optional[TextIO] = None) -> ProgressReporter:
    if name == "none":
        return NullProgressReporter()
    if name == "log":
        return LoggingProgressReporter(level=logging.INFO, every=100)
    if name == "inline":
        return InlineProgressReporter(stream=stream or sys.stderr, title="Filling crossword grid")
    raise ValueError(f"Unknown progress reporter '{name}'")
