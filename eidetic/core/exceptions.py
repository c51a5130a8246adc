# eidetic/core/exceptions.py
"""
All exceptions raised by eidetic.

Hierarchy:
    EideticError
    ├── ConfigError (eidetic.core.config) - configuration failures
    ├── InvalidInputError - empty or malformed input to a core function
    ├── IndexingError - indexing / cleanup run failures
    ├── SearchError - query against a missing or broken index
    ├── EmbeddingError - embedding provider failures
    ├── VectorDBError - vector store failures
    └── MemoryStoreError - memory store failures

Core functions (diff, split, dedupe, reconcile) raise only InvalidInputError.
Environmental failures belong to the adapters and executors around them.
"""

from __future__ import annotations


class EideticError(Exception):
    """Base class for every eidetic error."""

    pass


class InvalidInputError(EideticError, ValueError):
    """Input rejected by a core function (empty text, empty query, missing id, ...)."""

    pass


class IndexingError(EideticError):
    """Indexing or cleanup run failed."""

    pass


class SearchError(EideticError):
    """Search could not be performed."""

    pass


class EmbeddingError(EideticError):
    """Embedding provider failed or returned invalid data."""

    pass


class VectorDBError(EideticError):
    """Vector store operation failed."""

    pass


class MemoryStoreError(EideticError):
    """Memory store operation failed."""

    pass


__all__ = [
    "EideticError",
    "InvalidInputError",
    "IndexingError",
    "SearchError",
    "EmbeddingError",
    "VectorDBError",
    "MemoryStoreError",
]
