# eidetic/core/__init__.py
"""
Core contracts shared by every eidetic subsystem.

- Chunk: the unit of embedding and retrieval
- EideticConfig: explicit configuration value, built once and passed down
- Exception hierarchy
- Path helpers (project identity, data directories)
"""

from .chunk import Chunk
from .config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    EideticConfig,
    load_config,
    load_yaml,
)
from .exceptions import (
    EideticError,
    EmbeddingError,
    IndexingError,
    InvalidInputError,
    MemoryStoreError,
    SearchError,
    VectorDBError,
)
from .paths import EideticPaths, doc_collection_name, normalize_path, path_to_collection_name

__all__ = [
    "Chunk",
    "EideticConfig",
    "load_config",
    "load_yaml",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "EideticError",
    "InvalidInputError",
    "IndexingError",
    "SearchError",
    "EmbeddingError",
    "VectorDBError",
    "MemoryStoreError",
    "EideticPaths",
    "normalize_path",
    "path_to_collection_name",
    "doc_collection_name",
]
