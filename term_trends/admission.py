"""Admission policies deciding when entries may reach the window counter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .models import BufferStats, TermEntry, TrendConfig
from .watermark import ReorderBuffer


class AdmissionPolicy(Protocol):
    """Abstract admission contract."""

    def admit(self, entry: TermEntry) -> bool: ...

    def advance(self, timestamp: int) -> None: ...

    def release(self) -> list[TermEntry]: ...

    def flush(self) -> list[TermEntry]: ...

    @property
    def reference_clock(self) -> int: ...

    def stats(self) -> BufferStats: ...


@dataclass
class PassThroughAdmission(AdmissionPolicy):
    """Assumes input is already ordered; releases every entry immediately."""

    _pending: list[TermEntry] = field(default_factory=list)
    _clock: int = 0
    _max_observed: int = 0
    _processed: int = 0

    def admit(self, entry: TermEntry) -> bool:
        self._pending.append(entry)
        return True

    def advance(self, timestamp: int) -> None:
        self._clock = timestamp
        self._max_observed = max(self._max_observed, timestamp)

    def release(self) -> list[TermEntry]:
        released, self._pending = self._pending, []
        self._processed += len(released)
        return released

    def flush(self) -> list[TermEntry]:
        return self.release()

    @property
    def reference_clock(self) -> int:
        return self._clock

    def stats(self) -> BufferStats:
        return BufferStats(
            processed=self._processed,
            buffered=len(self._pending),
            watermark=self._clock,
            max_observed_timestamp=self._max_observed,
        )


@dataclass
class WatermarkAdmission(AdmissionPolicy):
    """Buffers entries and releases them as the watermark passes them."""

    buffer: ReorderBuffer

    def admit(self, entry: TermEntry) -> bool:
        return self.buffer.accept(entry)

    def advance(self, timestamp: int) -> None:
        # Driven by timestamps seen in accept(); an event whose terms were
        # all filtered out does not move the watermark.
        self.buffer.advance_watermark()

    def release(self) -> list[TermEntry]:
        return self.buffer.drain()

    def flush(self) -> list[TermEntry]:
        staged = self.buffer.drain()
        return staged + self.buffer.force_flush()

    @property
    def reference_clock(self) -> int:
        return self.buffer.watermark

    def stats(self) -> BufferStats:
        return self.buffer.stats()


def create_admission(config: TrendConfig) -> AdmissionPolicy:
    """Factory helper selecting the admission policy."""
    if config.late_handling:
        return WatermarkAdmission(
            buffer=ReorderBuffer(
                allowed_lateness=config.allowed_lateness,
                capacity=config.buffer_capacity,
            )
        )
    return PassThroughAdmission()
