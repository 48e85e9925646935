"""Input parsing, tokenization and stopword filtering."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

QUERY_MARKER = "ACTION"

_TIMESTAMP_RE = re.compile(r"\[\s*(\d{1,2}):(\d{1,2}):(\d{1,2})\s*\]")
_QUERY_K_RE = re.compile(r"K=\s*([+-]?\d+)")
_CJK = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
# Ideographs become one-character terms; other runs of letters/digits stay whole.
_TOKEN_RE = re.compile(rf"[{_CJK}]|[^\W_{_CJK}]+")


class InvalidTimestampError(ValueError):
    """Raised when a line does not start with a valid ``[HH:MM:SS]`` prefix."""


class InvalidQueryError(ValueError):
    """Raised when a query line carries an unparseable ``K=`` argument."""


@dataclass(frozen=True)
class EventLine:
    timestamp: int
    text: str
    prefix: str


@dataclass(frozen=True)
class QueryLine:
    k: int


InputLine = EventLine | QueryLine


def parse_timestamp(prefix: str) -> int:
    """Convert a ``[HH:MM:SS]`` prefix to seconds of the day."""
    match = _TIMESTAMP_RE.fullmatch(prefix.strip())
    if match is None:
        raise InvalidTimestampError(f"invalid timestamp prefix {prefix!r}")
    hours, minutes, seconds = (int(part) for part in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidTimestampError(f"timestamp out of range {prefix!r}")
    return hours * 3600 + minutes * 60 + seconds


def parse_line(line: str) -> InputLine | None:
    """Classify a raw input line as an event or a top-K query.

    Returns None for query markers that carry no ``K=`` argument.
    """
    line = line.rstrip("\r\n")
    if QUERY_MARKER in line:
        if "K=" not in line:
            return None
        match = _QUERY_K_RE.search(line)
        if match is None:
            raise InvalidQueryError(f"unparseable K in query line {line!r}")
        return QueryLine(k=int(match.group(1)))

    end = line.find("]")
    prefix = line[: end + 1] if end >= 0 else line
    timestamp = parse_timestamp(prefix)
    return EventLine(timestamp=timestamp, text=line[end + 1 :], prefix=prefix.strip())


class Tokenizer(Protocol):
    """Maps raw text to an ordered sequence of candidate terms."""

    def tokenize(self, text: str) -> list[str]: ...


class RegexTokenizer(Tokenizer):
    """Unicode-aware tokenizer; lowercases and drops punctuation."""

    def tokenize(self, text: str) -> list[str]:
        if not text:
            return []
        return _TOKEN_RE.findall(text.lower())


class StopwordFilter:
    """Drops terms found in a fixed stop-set."""

    def __init__(self, stopwords: Iterable[str] = ()) -> None:
        self._stopwords = frozenset(word for word in stopwords if word)

    @classmethod
    def from_file(cls, path: str | Path) -> StopwordFilter:
        """Load a newline-delimited UTF-8 list; a missing file yields an empty filter."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                words = [line.rstrip("\r\n") for line in fh]
        except OSError as exc:
            logger.warning("Cannot read stopword file %s (%s); filtering disabled", path, exc)
            return cls()
        stopwords = cls(words)
        logger.info("Loaded %d stopwords from %s", len(stopwords), path)
        return stopwords

    def is_stopword(self, term: str) -> bool:
        return term in self._stopwords

    def filter(self, terms: Iterable[str]) -> list[str]:
        return [term for term in terms if term not in self._stopwords]

    def __len__(self) -> int:
        return len(self._stopwords)
