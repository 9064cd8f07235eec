"""
Line-oriented phase ledger printed while the benchmark runs.

Each label is printed left-justified without a newline; the next call
completes the line with the time elapsed since that label.
"""

import sys
import time
from typing import Callable, Optional, TextIO

from lob_benchmark.metrics import format_duration


class PhaseLog:
    """Prints ``<label padded to width><extra text><elapsed>`` lines."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        clock: Callable[[], float] = time.perf_counter,
        width: int = 25
    ):
        self._stream = stream
        self._clock = clock
        self._width = width
        self._last: Optional[float] = None

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def log(self, label: str):
        now = self._clock()
        if self._last is not None:
            print(format_duration(now - self._last), file=self.stream)
        self._last = now
        print(f"{label:<{self._width}}", end="", file=self.stream, flush=True)

    def write(self, text: str):
        """Append text to the current line."""
        print(text, end="", file=self.stream, flush=True)

    def finish(self):
        """Terminate the last open line."""
        print(file=self.stream, flush=True)
