"""Watermark-governed reorder buffer for late and out-of-order entries.

Entries are accepted in any order and held in a min-heap keyed by
timestamp.  The watermark trails the largest timestamp seen so far by the
allowed lateness; ``drain`` releases everything at or below it in
timestamp order.  Entries that arrive more than ``allowed_lateness`` behind
the watermark are dropped and only tallied.

Ties on timestamp are released in arrival order.
"""

from __future__ import annotations

import heapq
import itertools
import logging

from .models import BufferStats, TermEntry

logger = logging.getLogger(__name__)


class ReorderBuffer:
    """Reorders entries by timestamp behind a monotonic watermark."""

    def __init__(self, allowed_lateness: int = 30, capacity: int = 10_000) -> None:
        if allowed_lateness < 0:
            raise ValueError(f"allowed_lateness must be >= 0, got {allowed_lateness}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._allowed_lateness = allowed_lateness
        self._capacity = capacity
        self._heap: list[tuple[int, int, TermEntry]] = []
        self._sequence = itertools.count()
        # Entries released by an overflow flush, waiting for the next drain.
        self._overflow: list[TermEntry] = []
        self._watermark = 0
        self._max_observed = 0
        self._processed = 0
        self._dropped = 0
        self._forced_flushes = 0

    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def max_observed_timestamp(self) -> int:
        return self._max_observed

    @property
    def allowed_lateness(self) -> int:
        return self._allowed_lateness

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._heap)

    def accept(self, entry: TermEntry) -> bool:
        """Buffer ``entry`` unless it is too late to be admitted.

        Returns False when the entry was dropped.  A full buffer is emptied
        with :meth:`force_flush` first; the flushed entries are handed out by
        the next :meth:`drain`.
        """
        if entry.timestamp > self._max_observed:
            self._max_observed = entry.timestamp

        if entry.timestamp < self._watermark - self._allowed_lateness:
            self._dropped += 1
            logger.debug(
                "Dropping late entry %r at t=%d (watermark=%d, allowed_lateness=%d)",
                entry.term,
                entry.timestamp,
                self._watermark,
                self._allowed_lateness,
            )
            return False

        if len(self._heap) >= self._capacity:
            logger.warning(
                "Reorder buffer full (%d entries); forcing watermark to %d",
                len(self._heap),
                self._max_observed,
            )
            self._forced_flushes += 1
            self._overflow.extend(self.force_flush())

        heapq.heappush(self._heap, (entry.timestamp, next(self._sequence), entry))
        return True

    def advance_watermark(self) -> None:
        """Move the watermark up to ``max_observed - allowed_lateness``."""
        candidate = self._max_observed - self._allowed_lateness
        if candidate > self._watermark:
            self._watermark = candidate

    def drain(self) -> list[TermEntry]:
        """Release every buffered entry with ``timestamp <= watermark``."""
        ready: list[TermEntry] = []
        while self._heap and self._heap[0][0] <= self._watermark:
            _, _, entry = heapq.heappop(self._heap)
            ready.append(entry)
            self._processed += 1
        staged, self._overflow = self._overflow, []
        # Both runs are sorted; staged entries win ties as the older arrivals.
        released = list(heapq.merge(staged, ready, key=lambda e: e.timestamp))
        if released:
            logger.debug(
                "Drained %d entries at watermark %d (%d still buffered)",
                len(released),
                self._watermark,
                len(self._heap),
            )
        return released

    def force_flush(self) -> list[TermEntry]:
        """Advance the watermark to the max observed timestamp and release all.

        Entries still staged from an earlier overflow flush are not included;
        they belong to the next :meth:`drain`.
        """
        if self._max_observed > self._watermark:
            self._watermark = self._max_observed
        released: list[TermEntry] = []
        while self._heap:
            _, _, entry = heapq.heappop(self._heap)
            released.append(entry)
        self._processed += len(released)
        logger.info("Force-flushed %d buffered entries", len(released))
        return released

    def stats(self) -> BufferStats:
        return BufferStats(
            processed=self._processed,
            dropped=self._dropped,
            buffered=len(self._heap),
            forced_flushes=self._forced_flushes,
            watermark=self._watermark,
            max_observed_timestamp=self._max_observed,
        )
