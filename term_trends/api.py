"""Public API facade for the trending-terms pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .models import SessionReport, TermCount, TrendConfig
from .service import LineResult, TrendService


class TrendAPI:
    """High-level façade consumed by the CLI, the HTTP service or embedding code."""

    def __init__(self, config: TrendConfig) -> None:
        self._service = TrendService(config)

    @property
    def config(self) -> TrendConfig:
        return self._service.config

    @property
    def closed(self) -> bool:
        return self._service.closed

    def ingest_lines(self, lines: Iterable[str]) -> list[LineResult]:
        """Process raw ``[HH:MM:SS] text`` lines and query markers."""
        return list(self._service.process_lines(lines))

    def iter_lines(self, lines: Iterable[str]) -> Iterable[LineResult]:
        """Lazily process lines, yielding each result as it is produced."""
        return self._service.process_lines(lines)

    def ingest_file(self, path: str | Path) -> list[LineResult]:
        """Load an input file and ingest every line."""
        return self._service.ingest_file(Path(path))

    def ingest_events(self, events: Iterable[tuple[str, int]]) -> int:
        """Ingest already-parsed ``(text, timestamp)`` pairs; returns terms admitted."""
        return sum(self._service.process_event(text, ts) for text, ts in events)

    def top_k(self, k: int | None = None) -> list[TermCount]:
        """Return the current top-K terms."""
        return self._service.top_k(k)

    def report(self) -> SessionReport:
        """Return statistics without ending the session."""
        return self._service.report()

    def finish(self) -> SessionReport:
        """Flush residual buffered entries and return the final statistics."""
        return self._service.finish()


def build_api(config: TrendConfig | None = None) -> TrendAPI:
    """Convenience constructor with defaults."""
    return TrendAPI(config or TrendConfig())
