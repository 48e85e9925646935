"""Top-K extraction over windowed term counts."""

from __future__ import annotations

import heapq
from collections.abc import Mapping

from .models import TermCount


def top_k(counts: Mapping[str, int], k: int) -> list[TermCount]:
    """Return the ``k`` highest-count terms, highest first.

    Equal counts are ordered by term so results are reproducible.  A
    non-positive ``k`` yields an empty list; asking for more terms than
    are tracked returns all of them.
    """
    if k <= 0 or not counts:
        return []
    ranked = heapq.nsmallest(k, counts.items(), key=lambda item: (-item[1], item[0]))
    return [TermCount(term=term, count=count) for term, count in ranked]
