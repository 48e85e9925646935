"""Per-term occurrence counts over a trailing window of logical time.

Deque-based: O(1) append, amortized O(1) eviction.  Entries must be recorded
in non-decreasing timestamp order for head-only eviction to keep every
remaining entry inside the window.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .models import TermEntry


class WindowCounter:
    __slots__ = ("window_size", "_window", "_counts", "_reference_clock")

    def __init__(self, window_size: int) -> None:
        if window_size < 0:
            raise ValueError(f"window_size must be >= 0, got {window_size}")
        self.window_size = window_size
        self._window: deque[TermEntry] = deque()
        self._counts: dict[str, int] = {}
        self._reference_clock: int | None = None

    def record(self, entry: TermEntry) -> None:
        self._counts[entry.term] = self._counts.get(entry.term, 0) + 1
        self._window.append(entry)

    def record_many(self, entries: Iterable[TermEntry]) -> int:
        """Record ``entries`` in order, returning how many were recorded."""
        recorded = 0
        for entry in entries:
            self.record(entry)
            recorded += 1
        return recorded

    def evict(self, reference_clock: int) -> int:
        """Expire entries older than ``window_size`` relative to ``reference_clock``.

        A zero-sized window keeps nothing past the next eviction.
        """
        self._reference_clock = reference_clock
        evicted = 0
        while self._window and (
            self.window_size == 0
            or reference_clock - self._window[0].timestamp > self.window_size
        ):
            head = self._window.popleft()
            remaining = self._counts[head.term] - 1
            if remaining <= 0:
                del self._counts[head.term]
            else:
                self._counts[head.term] = remaining
            evicted += 1
        return evicted

    @property
    def counts(self) -> dict[str, int]:
        """Snapshot of the current per-term counts."""
        return dict(self._counts)

    @property
    def reference_clock(self) -> int | None:
        return self._reference_clock

    @property
    def distinct_terms(self) -> int:
        return len(self._counts)

    def count(self, term: str) -> int:
        return self._counts.get(term, 0)

    def entries(self) -> list[TermEntry]:
        """Entries currently in the window, oldest first."""
        return list(self._window)

    def __len__(self) -> int:
        return len(self._window)
