"""Loader for ``key=value`` configuration files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .models import TrendConfig

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {
    "window_size",
    "windowSize",
    "allowed_lateness",
    "allowedLateness",
    "buffer_capacity",
    "maxBufferSize",
    "late_handling",
    "enableLateDataHandling",
    "stopwords_path",
    "stopWordPath",
    "default_top_k",
}


def parse_config_text(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines, skipping blanks, comments and malformed lines."""
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.rstrip("\r")
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values


def load_config(path: str | Path | None = None, **overrides: Any) -> TrendConfig:
    """Build a :class:`TrendConfig` from an optional file plus explicit overrides.

    Overrides set to None are ignored so CLI flags that were not given do not
    mask file values.  A missing file falls back to defaults.
    """
    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot read config file %s (%s); using defaults", path, exc)
        else:
            parsed = parse_config_text(text)
            unknown = sorted(set(parsed) - _KNOWN_KEYS)
            if unknown:
                logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
            data.update({k: v for k, v in parsed.items() if k in _KNOWN_KEYS})
            logger.info("Loaded config from %s", path)
    for key, value in overrides.items():
        if value is None:
            continue
        data[key] = value
    return TrendConfig.model_validate(data)
