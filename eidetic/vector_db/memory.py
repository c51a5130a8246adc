# eidetic/vector_db/memory.py
"""
In-process VectorIndex.

Brute-force cosine search over points held in dicts, with the same hybrid
ranking as the Qdrant adapter. Used by tests and for small local runs.
Not thread-safe; callers serialize writes per collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eidetic.core.exceptions import VectorDBError
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import VECTOR_DB
from eidetic.memory.reconciler import cosine_similarity
from eidetic.vector_db.fusion import query_terms, rank_by_term_frequency, reciprocal_rank_fusion
from eidetic.vector_db.types import (
    CodeDocument,
    HybridSearchParams,
    ScoredPoint,
    SearchResult,
    StoredPoint,
    SymbolEntry,
    symbol_from_payload,
)

logger = get_logger(__name__)


@dataclass
class _Collection:
    dimension: int
    points: Dict[str, StoredPoint] = field(default_factory=dict)


class InMemoryVectorIndex:
    """
    Dict-backed VectorIndex.

    Example:
        >>> index = InMemoryVectorIndex()
        >>> index.create_collection("eidetic_demo", 3)
        >>> index.has_collection("eidetic_demo")
        True
    """

    plugin_name = "memory"

    def __init__(self) -> None:
        self._collections: Dict[str, _Collection] = {}

    def _get(self, name: str) -> _Collection:
        collection = self._collections.get(name)
        if collection is None:
            raise VectorDBError(f"Collection '{name}' does not exist")
        return collection

    def _check_dimension(self, name: str, collection: _Collection, vector: List[float]) -> None:
        if len(vector) != collection.dimension:
            raise VectorDBError(
                f"Vector dimension {len(vector)} does not match collection "
                f"'{name}' dimension {collection.dimension}"
            )

    def create_collection(self, name: str, dimension: int) -> None:
        if name in self._collections:
            raise VectorDBError(f"Collection '{name}' already exists")
        if dimension < 1:
            raise VectorDBError(f"Invalid dimension {dimension} for collection '{name}'")
        logger.debug(f"{VECTOR_DB} Creating in-memory collection '{name}' (dim={dimension})")
        self._collections[name] = _Collection(dimension=dimension)

    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def drop_collection(self, name: str) -> None:
        self._collections.pop(name, None)

    def insert(self, name: str, documents: List[CodeDocument]) -> None:
        collection = self._get(name)
        for doc in documents:
            self._check_dimension(name, collection, doc.vector)
            collection.points[doc.id] = StoredPoint(
                id=doc.id, vector=list(doc.vector), payload=doc.to_payload()
            )

    def _filtered(self, collection: _Collection, params: HybridSearchParams) -> List[StoredPoint]:
        points = list(collection.points.values())
        if params.extension_filter:
            allowed = set(params.extension_filter)
            points = [p for p in points if p.payload.get("file_extension") in allowed]
        return points

    def search(self, name: str, params: HybridSearchParams) -> List[SearchResult]:
        collection = self._get(name)
        fetch_limit = params.limit * 2
        points = self._filtered(collection, params)

        dense = sorted(
            (
                ScoredPoint(
                    id=p.id,
                    payload=p.payload,
                    score=cosine_similarity(params.query_vector, p.vector),
                )
                for p in points
            ),
            key=lambda sp: sp.score,
            reverse=True,
        )[:fetch_limit]

        text: List[ScoredPoint] = []
        terms = query_terms(params.query_text)
        if terms:
            for p in points:
                content = str(p.payload.get("content", "")).lower()
                if all(t in content for t in terms):
                    text.append(ScoredPoint(id=p.id, payload=p.payload, score=0.0))
                    if len(text) >= fetch_limit:
                        break

        return reciprocal_rank_fusion(
            dense, rank_by_term_frequency(text, params.query_text), params.limit
        )

    def get_by_id(self, name: str, point_id: str) -> Optional[StoredPoint]:
        point = self._get(name).points.get(point_id)
        if point is None:
            return None
        return StoredPoint(id=point.id, vector=list(point.vector), payload=dict(point.payload))

    def update_point(
        self, name: str, point_id: str, vector: List[float], payload: Dict[str, Any]
    ) -> None:
        collection = self._get(name)
        self._check_dimension(name, collection, vector)
        collection.points[point_id] = StoredPoint(
            id=point_id, vector=list(vector), payload=dict(payload)
        )

    def delete_by_path(self, name: str, relative_path: str) -> None:
        collection = self._get(name)
        stale = [
            pid for pid, p in collection.points.items()
            if p.payload.get("relative_path") == relative_path
        ]
        for pid in stale:
            del collection.points[pid]
        logger.debug(f"{VECTOR_DB} Deleted {len(stale)} points for '{relative_path}' from '{name}'")

    def list_symbols(self, name: str) -> List[SymbolEntry]:
        entries = []
        for p in self._get(name).points.values():
            entry = symbol_from_payload(p.payload)
            if entry is not None:
                entries.append(entry)
        return entries

    def scroll(self, name: str) -> List[StoredPoint]:
        """Copies of every point in the collection, in insertion order."""
        return [
            StoredPoint(id=p.id, vector=list(p.vector), payload=dict(p.payload))
            for p in self._get(name).points.values()
        ]

    def count(self, name: str) -> int:
        return len(self._get(name).points)


__all__ = ["InMemoryVectorIndex"]
