from __future__ import annotations

from pathlib import Path

import pytest

from term_trends.text import (
    EventLine,
    InvalidQueryError,
    InvalidTimestampError,
    QueryLine,
    RegexTokenizer,
    StopwordFilter,
    parse_line,
    parse_timestamp,
)


def test_parse_timestamp_to_seconds_of_day() -> None:
    assert parse_timestamp("[00:00:00]") == 0
    assert parse_timestamp("[01:02:03]") == 3723
    assert parse_timestamp("[23:59:59]") == 86_399


@pytest.mark.parametrize("prefix", ["", "12:00:00", "[12:00]", "[aa:bb:cc]", "[12-00-00]", "[25:00:00]"])
def test_parse_timestamp_rejects_malformed(prefix: str) -> None:
    with pytest.raises(InvalidTimestampError):
        parse_timestamp(prefix)


def test_parse_line_event_and_query() -> None:
    event = parse_line("[10:00:05] Hello world\r\n")
    assert event == EventLine(timestamp=36_005, text=" Hello world", prefix="[10:00:05]")

    assert parse_line("[ACTION] QUERY K=3") == QueryLine(k=3)
    assert parse_line("ACTION K=-2") == QueryLine(k=-2)
    assert parse_line("ACTION refresh") is None


def test_parse_line_errors() -> None:
    with pytest.raises(InvalidQueryError):
        parse_line("ACTION K=lots")
    with pytest.raises(InvalidTimestampError):
        parse_line("no timestamp here")


def test_tokenizer_lowercases_and_splits_ideographs() -> None:
    tokenizer = RegexTokenizer()
    assert tokenizer.tokenize("Hello, World! log_line 42") == ["hello", "world", "log", "line", "42"]
    assert tokenizer.tokenize("热词abc") == ["热", "词", "abc"]
    assert tokenizer.tokenize("") == []


def test_stopword_filter_from_file(tmp_path: Path) -> None:
    path = tmp_path / "stop.txt"
    path.write_bytes("the\r\n\nof\n的\n".encode("utf-8"))
    stopwords = StopwordFilter.from_file(path)
    assert len(stopwords) == 3
    assert stopwords.is_stopword("的")
    assert stopwords.filter(["the", "cat", "of", "mat"]) == ["cat", "mat"]


def test_missing_stopword_file_yields_empty_filter(tmp_path: Path) -> None:
    stopwords = StopwordFilter.from_file(tmp_path / "missing.txt")
    assert len(stopwords) == 0
    assert stopwords.filter(["a", "b"]) == ["a", "b"]
