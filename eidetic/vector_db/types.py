# eidetic/vector_db/types.py
"""
Typed models and the VectorIndex protocol.

Points carry a flat payload. Code chunks use these keys:

    content, relative_path, start_line, end_line, file_extension, language,
    file_category, symbol_name, symbol_kind, symbol_signature, parent_symbol

Core functions (dedupe, repo map, reconcile) treat everything here as
plain data; only adapters talk to a real store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Documents and results
# =============================================================================


class CodeDocument(BaseModel):
    """A chunk with its vector, ready for insertion."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    vector: List[float]
    relative_path: str
    start_line: int
    end_line: int
    file_extension: str
    language: str
    file_category: str = "source"
    symbol_name: Optional[str] = None
    symbol_kind: Optional[str] = None
    symbol_signature: Optional[str] = None
    parent_symbol: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"id", "vector"}, exclude_none=True)


class SearchResult(BaseModel):
    """One ranked hit. Line spans are 1-based and inclusive."""

    model_config = ConfigDict(frozen=True)

    content: str
    relative_path: str
    start_line: int
    end_line: int
    file_extension: str = ""
    language: str = ""
    score: float
    file_category: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], score: float) -> "SearchResult":
        return cls(
            content=str(payload.get("content", "")),
            relative_path=str(payload.get("relative_path", "")),
            start_line=int(payload.get("start_line", 0)),
            end_line=int(payload.get("end_line", 0)),
            file_extension=str(payload.get("file_extension", "")),
            language=str(payload.get("language", "")),
            score=score,
            file_category=payload.get("file_category"),
        )


class SymbolEntry(BaseModel):
    """A declared symbol, as listed for the repo map."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: str
    relative_path: str
    start_line: int
    signature: Optional[str] = None
    parent_name: Optional[str] = None


class HybridSearchParams(BaseModel):
    """Dense vector plus full-text query, with an optional extension filter."""

    query_vector: List[float]
    query_text: str = ""
    limit: int = Field(default=10, ge=1)
    extension_filter: Optional[List[str]] = None


@dataclass
class StoredPoint:
    """A point as read back from the store."""

    id: str
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScoredPoint:
    """Intermediate ranked point used during fusion."""

    id: str
    payload: Dict[str, Any]
    score: float


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class VectorIndex(Protocol):
    """
    Capability surface of a vector store.

    Implementations raise VectorDBError for backend failures.
    """

    def create_collection(self, name: str, dimension: int) -> None: ...

    def has_collection(self, name: str) -> bool: ...

    def drop_collection(self, name: str) -> None: ...

    def insert(self, name: str, documents: List[CodeDocument]) -> None: ...

    def search(self, name: str, params: HybridSearchParams) -> List[SearchResult]: ...

    def get_by_id(self, name: str, point_id: str) -> Optional[StoredPoint]: ...

    def update_point(
        self, name: str, point_id: str, vector: List[float], payload: Dict[str, Any]
    ) -> None: ...

    def delete_by_path(self, name: str, relative_path: str) -> None: ...

    def list_symbols(self, name: str) -> List[SymbolEntry]: ...


def symbol_from_payload(payload: Dict[str, Any]) -> Optional[SymbolEntry]:
    """SymbolEntry for a chunk payload carrying symbol metadata, else None."""
    name = payload.get("symbol_name")
    kind = payload.get("symbol_kind")
    if not name or not kind:
        return None
    return SymbolEntry(
        name=str(name),
        kind=str(kind),
        relative_path=str(payload.get("relative_path", "")),
        start_line=int(payload.get("start_line", 0)),
        signature=payload.get("symbol_signature"),
        parent_name=payload.get("parent_symbol"),
    )


__all__ = [
    "CodeDocument",
    "SearchResult",
    "SymbolEntry",
    "HybridSearchParams",
    "StoredPoint",
    "ScoredPoint",
    "VectorIndex",
    "symbol_from_payload",
]
