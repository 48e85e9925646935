from __future__ import annotations

import random

import pytest

from term_trends.models import BufferStats, TermEntry
from term_trends.watermark import ReorderBuffer


def _entry(timestamp: int, term: str = "word") -> TermEntry:
    return TermEntry(term=term, timestamp=timestamp)


def test_out_of_order_entry_stays_buffered_until_watermark_passes() -> None:
    buffer = ReorderBuffer(allowed_lateness=30, capacity=100)
    for ts in (100, 105, 90):
        assert buffer.accept(_entry(ts))
    buffer.advance_watermark()

    assert buffer.watermark == 75
    assert buffer.drain() == []
    assert len(buffer) == 3

    buffer.accept(_entry(125))
    buffer.advance_watermark()
    assert buffer.watermark == 95
    assert [e.timestamp for e in buffer.drain()] == [90]
    assert len(buffer) == 3


def test_entry_far_behind_watermark_is_dropped() -> None:
    buffer = ReorderBuffer(allowed_lateness=30)
    buffer.accept(_entry(80))
    buffer.advance_watermark()
    assert buffer.watermark == 50

    assert buffer.accept(_entry(10)) is False
    stats = buffer.stats()
    assert stats.dropped == 1
    assert stats.buffered == 1

    released = buffer.force_flush()
    assert [e.timestamp for e in released] == [80]


def test_entry_within_lateness_of_watermark_is_kept() -> None:
    buffer = ReorderBuffer(allowed_lateness=30)
    buffer.accept(_entry(80))
    buffer.advance_watermark()
    # 20 == watermark - allowed_lateness, not strictly below it
    assert buffer.accept(_entry(20)) is True
    assert [e.timestamp for e in buffer.drain()] == [20]


def test_drain_releases_in_timestamp_then_arrival_order() -> None:
    buffer = ReorderBuffer(allowed_lateness=0)
    buffer.accept(_entry(5, "b"))
    buffer.accept(_entry(3, "x"))
    buffer.accept(_entry(5, "a"))
    buffer.accept(_entry(3, "y"))
    buffer.advance_watermark()

    released = buffer.drain()
    assert [(e.timestamp, e.term) for e in released] == [(3, "x"), (3, "y"), (5, "b"), (5, "a")]
    assert buffer.stats().processed == 4


def test_force_flush_releases_everything_and_moves_watermark() -> None:
    buffer = ReorderBuffer(allowed_lateness=100)
    for ts in (40, 10, 30, 20):
        buffer.accept(_entry(ts))
    buffer.advance_watermark()
    assert buffer.watermark == 0
    before = buffer.stats()

    released = buffer.force_flush()
    after = buffer.stats()

    assert [e.timestamp for e in released] == [10, 20, 30, 40]
    assert buffer.watermark == 40
    assert after.buffered == 0
    assert after.processed - before.processed == before.buffered


def test_overflow_forces_flush_and_hands_entries_to_next_drain() -> None:
    buffer = ReorderBuffer(allowed_lateness=50, capacity=2)
    buffer.accept(_entry(100))
    buffer.accept(_entry(90))
    buffer.accept(_entry(95))

    stats = buffer.stats()
    assert stats.forced_flushes == 1
    assert stats.buffered == 1
    assert buffer.watermark == 100

    released = buffer.drain()
    assert [e.timestamp for e in released] == [90, 95, 100]
    assert len(buffer) == 0
    assert buffer.stats().processed == 3


def test_watermark_is_monotonic_and_bounded_by_max_observed() -> None:
    rng = random.Random(7)
    buffer = ReorderBuffer(allowed_lateness=15, capacity=25)
    previous = buffer.watermark
    for _ in range(500):
        buffer.accept(_entry(rng.randint(0, 2_000)))
        if rng.random() < 0.5:
            buffer.advance_watermark()
        if rng.random() < 0.3:
            buffer.drain()
        assert buffer.watermark >= previous
        assert buffer.watermark <= buffer.max_observed_timestamp
        previous = buffer.watermark


def test_dropped_entries_never_reappear() -> None:
    rng = random.Random(11)
    buffer = ReorderBuffer(allowed_lateness=10, capacity=1_000)
    dropped_terms: set[str] = set()
    released_terms: list[str] = []
    for i in range(400):
        term = f"t{i}"
        accepted = buffer.accept(_entry(rng.randint(0, 1_000), term))
        if not accepted:
            dropped_terms.add(term)
        buffer.advance_watermark()
        released_terms.extend(e.term for e in buffer.drain())
    released_terms.extend(e.term for e in buffer.force_flush())

    assert dropped_terms
    assert dropped_terms.isdisjoint(released_terms)
    stats = buffer.stats()
    assert stats.dropped == len(dropped_terms)
    assert stats.processed == len(released_terms) == 400 - len(dropped_terms)


@pytest.mark.parametrize("kwargs", [{"allowed_lateness": -1}, {"capacity": 0}])
def test_rejects_invalid_settings(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        ReorderBuffer(**kwargs)


def test_drop_rate_counts_drops_even_before_anything_is_released() -> None:
    assert BufferStats().drop_rate == 0.0
    assert BufferStats(dropped=2).drop_rate == 100.0
    assert BufferStats(processed=3, dropped=1).drop_rate == 25.0
