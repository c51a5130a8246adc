# eidetic/memory/reconciler.py
"""
Fact reconciliation: decide ADD / UPDATE / NONE for a new fact.

Rules, in order:
1. A candidate with the same normalized hash -> NONE (already known)
2. Candidates at or above the similarity threshold -> UPDATE the most
   similar one (first-seen wins ties)
3. Otherwise -> ADD
"""

from __future__ import annotations

import hashlib
import math
from typing import Iterable, Sequence

from eidetic.core.exceptions import InvalidInputError
from eidetic.memory.models import ExistingMatch, ReconcileAction, ReconcileResult

DEFAULT_SIMILARITY_THRESHOLD = 0.92


def hash_fact(text: str) -> str:
    """
    MD5 of the trimmed, lower-cased text.

    Examples:
        >>> hash_fact("  Uses PNPM ") == hash_fact("uses pnpm")
        True
    """
    return hashlib.md5(text.strip().lower().encode("utf-8")).hexdigest()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 for empty vectors, mismatched dimensions or a zero norm.
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    denom = norm_a * norm_b
    return dot / denom if denom else 0.0


def reconcile(
    new_hash: str,
    new_vector: Sequence[float],
    candidates: Iterable[ExistingMatch],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> ReconcileResult:
    """
    Reconcile a new fact against existing candidates.

    Args:
        new_hash: hash_fact() of the new fact.
        new_vector: Embedding of the new fact.
        candidates: Nearest stored facts, each with its search score.
        threshold: Minimum cosine similarity for a near-duplicate.

    Raises:
        InvalidInputError: If new_hash is empty or threshold is outside [0, 1].
    """
    if not new_hash:
        raise InvalidInputError("new_hash must not be empty")
    if not 0.0 <= threshold <= 1.0:
        raise InvalidInputError(f"threshold must be within [0, 1], got {threshold}")

    candidates = list(candidates)

    for candidate in candidates:
        if candidate.hash == new_hash:
            return ReconcileResult(
                action=ReconcileAction.NONE,
                existing_id=candidate.id,
                existing_text=candidate.text,
            )

    # Highest search score among near-duplicates; first seen wins ties
    best = None
    for candidate in candidates:
        if cosine_similarity(new_vector, candidate.vector) < threshold:
            continue
        if best is None or candidate.score > best.score:
            best = candidate

    if best is not None:
        return ReconcileResult(
            action=ReconcileAction.UPDATE,
            existing_id=best.id,
            existing_text=best.text,
        )

    return ReconcileResult(action=ReconcileAction.ADD)


__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "hash_fact",
    "cosine_similarity",
    "reconcile",
]
