"""Wall-clock measurement and human-readable duration rendering."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Self


@dataclass(slots=True)
class Stopwatch:
    """Measures the wall-clock span of a ``with`` block, even when it raises."""

    clock: Callable[[], float] = time.monotonic
    _started: float | None = field(default=None, repr=False)
    _elapsed: float | None = field(default=None, repr=False)

    def __enter__(self) -> Self:
        self._started = self.clock()
        self._elapsed = None
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._started is not None:
            self._elapsed = self.clock() - self._started

    @property
    def elapsed(self) -> float:
        if self._elapsed is None:
            raise RuntimeError("Stopwatch has not finished measuring.")
        return self._elapsed


def interval_string(seconds: float) -> str:
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if minutes > 0:
        return f"{minutes} {_plural(minutes, 'minute')} {secs} {_plural(secs, 'second')}"
    return f"{secs} {_plural(secs, 'second')}"


def elapsed_line(seconds: float) -> str:
    return f"\nTime taken for this generator run: {interval_string(seconds)}."


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"
