# eidetic/vector_db/__init__.py
"""
Vector store abstraction.

Adapters:
- eidetic.vector_db.memory.InMemoryVectorIndex (brute force, no services)
- eidetic.vector_db.qdrant.QdrantVectorIndex (qdrant-client)
"""

from eidetic.vector_db.types import (
    CodeDocument,
    HybridSearchParams,
    SearchResult,
    StoredPoint,
    SymbolEntry,
    VectorIndex,
)

__all__ = [
    "CodeDocument",
    "HybridSearchParams",
    "SearchResult",
    "StoredPoint",
    "SymbolEntry",
    "VectorIndex",
]
