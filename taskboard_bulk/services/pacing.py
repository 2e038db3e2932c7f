"""
Pacing strategies for the batch loop.

The mutator calls ``pause()`` after every batch to bound write pressure on
the shared store.  Pacing affects load only, never results, so tests use
``NoPacer``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class Pacer(Protocol):
    def pause(self) -> None: ...


class FixedIntervalPacer:
    """Sleep a fixed interval between batches."""

    def __init__(
        self,
        seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        self.seconds = seconds
        self._sleep = sleep

    def pause(self) -> None:
        if self.seconds > 0:
            self._sleep(self.seconds)


class NoPacer:
    """Run batches back to back."""

    def pause(self) -> None:
        return None
