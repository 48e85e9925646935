from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from term_trends.config import load_config, parse_config_text


def test_parse_config_text_skips_comments_and_malformed_lines() -> None:
    text = "# settings\r\nwindowSize=120\r\n\nnot a pair\nallowedLateness = 5\n"
    assert parse_config_text(text) == {"windowSize": "120", "allowedLateness": "5"}


def test_load_config_accepts_camel_case_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.txt"
    path.write_text(
        "inputFile=input1.txt\n"
        "enableLateDataHandling=false\n"
        "allowedLateness=45\n"
        "windowSize=300\n"
        "stopWordPath=dict/stop_words.utf8\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.late_handling is False
    assert config.allowed_lateness == 45
    assert config.window_size == 300
    assert config.stopwords_path == "dict/stop_words.utf8"


def test_overrides_win_over_file_values(tmp_path: Path) -> None:
    path = tmp_path / "config.txt"
    path.write_text("windowSize=300\nallowed_lateness=10\n", encoding="utf-8")
    config = load_config(path, window_size=60, allowed_lateness=None)
    assert config.window_size == 60
    assert config.allowed_lateness == 10


def test_missing_file_falls_back_to_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.txt")
    assert config.window_size == 600
    assert config.allowed_lateness == 30
    assert config.buffer_capacity == 10_000
    assert config.late_handling is True


def test_invalid_values_raise(tmp_path: Path) -> None:
    path = tmp_path / "config.txt"
    path.write_text("windowSize=-5\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(path)
