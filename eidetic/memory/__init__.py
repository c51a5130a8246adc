# eidetic/memory/__init__.py
"""
Semantic memory: facts extracted from free text, reconciled before storage.

The store itself lives in eidetic.memory.store.
"""

from eidetic.memory.models import (
    ExistingMatch,
    ExtractedFact,
    MemoryAction,
    MemoryItem,
    ReconcileAction,
    ReconcileResult,
)
from eidetic.memory.reconciler import cosine_similarity, hash_fact, reconcile

__all__ = [
    "ExistingMatch",
    "ExtractedFact",
    "MemoryAction",
    "MemoryItem",
    "ReconcileAction",
    "ReconcileResult",
    "cosine_similarity",
    "hash_fact",
    "reconcile",
]
