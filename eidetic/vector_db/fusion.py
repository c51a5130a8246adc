# eidetic/vector_db/fusion.py
"""
Hybrid ranking: dense similarity fused with full-text matches.

Text matches have no native score, so they are ranked by normalized term
frequency first. Both lists are then merged by a blended reciprocal rank:

    score = ALPHA * 1 / (K + rank + 1) + (1 - ALPHA) * raw_score

A point present in both lists accumulates both contributions.
"""

from __future__ import annotations

import re
from typing import Dict, List, Sequence

from eidetic.vector_db.types import ScoredPoint, SearchResult

RRF_K = 5
RRF_ALPHA = 0.7


def query_terms(query_text: str) -> List[str]:
    """Unique lower-cased whitespace terms, in first-seen order."""
    return list(dict.fromkeys(t for t in query_text.lower().split() if t))


def rank_by_term_frequency(points: Sequence[ScoredPoint], query_text: str) -> List[ScoredPoint]:
    """
    Order text-matched points by hits per word, scores normalized to [0, 1].
    """
    if not points:
        return []

    terms = query_terms(query_text)
    if not terms:
        return [ScoredPoint(id=p.id, payload=p.payload, score=0.0) for p in points]

    patterns = [re.compile(re.escape(t), re.IGNORECASE) for t in terms]
    scored = []
    for p in points:
        content = str(p.payload.get("content", ""))
        words = max(1, len(content.split()))
        hits = sum(len(pattern.findall(content)) for pattern in patterns)
        scored.append((p, hits / words))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    max_tf = scored[0][1]
    return [
        ScoredPoint(id=p.id, payload=p.payload, score=tf / max_tf if max_tf > 0 else 0.0)
        for p, tf in scored
    ]


def _blend(rank: int, raw: float) -> float:
    return RRF_ALPHA * (1.0 / (RRF_K + rank + 1)) + (1.0 - RRF_ALPHA) * raw


def reciprocal_rank_fusion(
    dense: Sequence[ScoredPoint],
    text: Sequence[ScoredPoint],
    limit: int,
) -> List[SearchResult]:
    """Merge dense and text rankings into at most limit results, best first."""
    fused: Dict[str, ScoredPoint] = {}
    for ranking in (dense, text):
        for rank, point in enumerate(ranking):
            contribution = _blend(rank, point.score)
            existing = fused.get(point.id)
            if existing is None:
                fused[point.id] = ScoredPoint(id=point.id, payload=point.payload, score=contribution)
            else:
                existing.score += contribution

    ordered = sorted(fused.values(), key=lambda p: p.score, reverse=True)[:limit]
    return [SearchResult.from_payload(p.payload, p.score) for p in ordered]


__all__ = [
    "RRF_K",
    "RRF_ALPHA",
    "query_terms",
    "rank_by_term_frequency",
    "reciprocal_rank_fusion",
]
