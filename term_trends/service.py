"""Service orchestrating tokenization, admission, windowed counting and ranking."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from .admission import AdmissionPolicy, create_admission
from .models import SessionReport, TermCount, TermEntry, TrendConfig
from .ranking import top_k
from .text import (
    InvalidQueryError,
    InvalidTimestampError,
    QueryLine,
    RegexTokenizer,
    StopwordFilter,
    Tokenizer,
    parse_line,
)
from .window import WindowCounter

logger = logging.getLogger(__name__)


class SessionClosedError(RuntimeError):
    """Raised when a finished session is used again."""


@dataclass
class LineResult:
    """Outcome of processing one raw input line."""

    line: str
    kind: str
    timestamp: int | None = None
    prefix: str = ""
    admitted: int = 0
    k: int | None = None
    ranking: list[TermCount] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TrendService:
    """Owns one processing session from first event to final flush."""

    def __init__(
        self,
        config: TrendConfig,
        *,
        tokenizer: Tokenizer | None = None,
        stopwords: StopwordFilter | None = None,
        admission: AdmissionPolicy | None = None,
    ) -> None:
        self.config = config
        self.tokenizer = tokenizer or RegexTokenizer()
        if stopwords is None:
            stopwords = (
                StopwordFilter.from_file(config.stopwords_path)
                if config.stopwords_path
                else StopwordFilter()
            )
        self.stopwords = stopwords
        self.admission = admission or create_admission(config)
        self.counter = WindowCounter(config.window_size)
        self._lock = threading.Lock()
        self._closed = False
        self._events_processed = 0
        self._events_rejected = 0
        self._terms_recorded = 0
        logger.info(
            "Session started: late_handling=%s window_size=%d allowed_lateness=%d capacity=%d",
            config.late_handling,
            config.window_size,
            config.allowed_lateness,
            config.buffer_capacity,
        )

    def process_event(self, text: str, timestamp: int) -> int:
        """Feed one timestamped event; returns the number of terms admitted."""
        with self._lock:
            self._ensure_open()
            return self._process_event(text, timestamp)

    def _process_event(self, text: str, timestamp: int) -> int:
        admitted = 0
        for term in self.stopwords.filter(self.tokenizer.tokenize(text)):
            if self.admission.admit(TermEntry(term=term, timestamp=timestamp)):
                admitted += 1
        self.admission.advance(timestamp)
        self._terms_recorded += self.counter.record_many(self.admission.release())
        self.counter.evict(self.admission.reference_clock)
        self._events_processed += 1
        return admitted

    def process_line(self, line: str) -> LineResult:
        """Parse and apply one raw input line.

        Malformed lines never raise; they come back with ``error`` set.
        """
        with self._lock:
            self._ensure_open()
            try:
                parsed = parse_line(line)
            except InvalidTimestampError as exc:
                self._events_rejected += 1
                logger.warning("Skipping line with bad timestamp: %s", exc)
                return LineResult(line=line, kind="event", error=str(exc))
            except InvalidQueryError as exc:
                logger.warning("Skipping bad query: %s", exc)
                return LineResult(line=line, kind="query", error=str(exc))

            if parsed is None:
                return LineResult(line=line, kind="ignored")
            if isinstance(parsed, QueryLine):
                ranking = top_k(self.counter.counts, parsed.k)
                return LineResult(line=line, kind="query", k=parsed.k, ranking=ranking)
            admitted = self._process_event(parsed.text, parsed.timestamp)
            return LineResult(
                line=line,
                kind="event",
                timestamp=parsed.timestamp,
                prefix=parsed.prefix,
                admitted=admitted,
            )

    def process_lines(self, lines: Iterable[str]) -> Iterator[LineResult]:
        for line in lines:
            if not line.strip():
                continue
            yield self.process_line(line)

    def ingest_file(self, path: Path) -> list[LineResult]:
        """Read a UTF-8 input file and process every line."""
        with path.open("r", encoding="utf-8") as fh:
            return list(self.process_lines(fh))

    def top_k(self, k: int | None = None) -> list[TermCount]:
        limit = k if k is not None else self.config.default_top_k
        with self._lock:
            return top_k(self.counter.counts, limit)

    def report(self) -> SessionReport:
        with self._lock:
            return self._report()

    def finish(self) -> SessionReport:
        """Flush every buffered entry into the window and close the session."""
        with self._lock:
            self._ensure_open()
            residual = self.admission.flush()
            self._terms_recorded += self.counter.record_many(residual)
            self.counter.evict(self.admission.reference_clock)
            self._closed = True
            logger.info("Session finished; flushed %d residual entries", len(residual))
            return self._report()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("session already finished")

    def _report(self) -> SessionReport:
        return SessionReport(
            late_handling=self.config.late_handling,
            events_processed=self._events_processed,
            events_rejected=self._events_rejected,
            terms_recorded=self._terms_recorded,
            distinct_terms=self.counter.distinct_terms,
            window_size=self.config.window_size,
            buffer=self.admission.stats(),
        )
