# eidetic/ingestion/hashing.py
"""
Content hashing for incremental indexing.

This is the single source of truth for file identity in the snapshot system.

Design:
- Hash is computed over content, never modification time
- Line endings are normalized first, so a CRLF checkout of an unchanged
  file does not register as modified
- Same content in different paths = same hash (content-addressable)
"""

from __future__ import annotations

import hashlib
import uuid
from pathlib import Path
from typing import Union

HASH_PREFIX = "sha256:"


def _normalize(data: bytes) -> bytes:
    return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")


def compute_bytes_hash(data: bytes) -> str:
    """
    Compute the SHA-256 content hash of raw bytes after line-ending normalization.

    Returns:
        SHA-256 hash as hex string with "sha256:" prefix
    """
    return f"{HASH_PREFIX}{hashlib.sha256(_normalize(data)).hexdigest()}"


def compute_text_hash(text: str) -> str:
    """
    Compute the content hash of in-memory text.

    Identical to compute_file_hash() for a file holding the same text.
    """
    return compute_bytes_hash(text.encode("utf-8"))


def compute_file_hash(path: Union[str, Path]) -> str:
    """
    Compute the content hash of a file.

    Raises:
        FileNotFoundError: If file doesn't exist
        IsADirectoryError: If path is a directory
        PermissionError: If file can't be read

    Examples:
        >>> compute_file_hash("empty.txt")
        'sha256:e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    p = Path(path)

    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if p.is_dir():
        raise IsADirectoryError(f"Path is a directory: {path}")

    return compute_bytes_hash(p.read_bytes())


def compute_chunk_id(relative_path: str, content_hash: str, chunk_index: int) -> str:
    """
    Deterministic point ID for a chunk.

    Same file + same content + same position = same ID, so re-indexing
    unchanged content upserts over itself. Formatted as a UUID because
    Qdrant only accepts UUIDs or integers as point IDs.
    """
    key = "|".join([relative_path, content_hash, str(chunk_index)])
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return str(uuid.UUID(hex=digest[:32]))


__all__ = [
    "HASH_PREFIX",
    "compute_bytes_hash",
    "compute_text_hash",
    "compute_file_hash",
    "compute_chunk_id",
]
