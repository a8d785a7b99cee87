"""Sequence counter shared by everything that writes events for one run."""

from __future__ import annotations

import threading


class SeqCounter:
    """Thread-safe monotonically increasing event sequence number."""

    __slots__ = ("_lock", "_value")

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def next(self) -> int:
        with self._lock:
            v = self._value
            self._value += 1
            return v
