"""Unique identifier generation for tool calls and agent nodes."""

import itertools
import threading
import time
from collections.abc import Callable
from typing import Protocol


class IdGenerator(Protocol):
    """Anything that hands out unique string ids."""

    def next(self) -> str:
        """Return a new id, never returned before by this generator."""
        ...


class SequentialIdGenerator:
    """Monotonic counter ids of the form ``<prefix>-<unix ms>-<n>``.

    Safe to share between threads. Pass ``clock=lambda: 0`` for ids that do
    not depend on wall-clock time.
    """

    def __init__(self, prefix: str = "tc", clock: Callable[[], float] | None = None):
        self.prefix = prefix
        self._clock = clock or time.time
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            seq = next(self._counter)
        return f"{self.prefix}-{int(self._clock() * 1000)}-{seq}"
