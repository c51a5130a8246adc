# eidetic/retrieval/dedupe.py
"""
Overlap deduplication of ranked search results.

Greedy, score-ordered: the best chunk per region of a file wins, lower
scoring chunks overlapping it are dropped. Results from different files
never conflict.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from eidetic.core.exceptions import InvalidInputError
from eidetic.vector_db.types import SearchResult


def _half_open(result: SearchResult) -> Tuple[int, int]:
    # Stored spans are inclusive; compare as [start, end + 1)
    return result.start_line, result.end_line + 1


def _overlaps(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def dedupe_results(results: Sequence[SearchResult], limit: int) -> List[SearchResult]:
    """
    Keep at most `limit` results, best score first, with no two accepted
    results from the same file sharing a line.

    Ties in score keep input order.

    Raises:
        InvalidInputError: If limit < 1.

    Example:
        a.ts 1-20 @0.9, a.ts 10-30 @0.8, b.ts 1-10 @0.7, limit=10
        -> [a.ts 1-20 @0.9, b.ts 1-10 @0.7]
    """
    if limit < 1:
        raise InvalidInputError(f"limit must be >= 1, got {limit}")

    ranked = sorted(results, key=lambda r: r.score, reverse=True)
    accepted: List[SearchResult] = []
    spans_by_file: Dict[str, List[Tuple[int, int]]] = {}

    for result in ranked:
        if len(accepted) >= limit:
            break
        span = _half_open(result)
        spans = spans_by_file.setdefault(result.relative_path, [])
        if any(_overlaps(span, other) for other in spans):
            continue
        accepted.append(result)
        spans.append(span)

    return accepted


__all__ = ["dedupe_results"]
