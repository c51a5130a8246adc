# eidetic/core/paths.py
"""
Central path management for eidetic.

Design principles:
- normalize_path() is called at every boundary; all stored paths are
  absolute, forward-slashed, without a trailing slash
- project identity is a pure function of the normalized root path
- data locations derive from the configured data_dir, never from globals
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Union

from eidetic.core.config import EideticConfig

COLLECTION_PREFIX = "eidetic_"
DOC_COLLECTION_PREFIX = "eidetic_doc_"


def normalize_path(input_path: Union[str, Path]) -> str:
    """
    Expand ~, resolve to absolute, use forward slashes, drop trailing slash.

    Examples:
        >>> normalize_path("/tmp/project/")
        '/tmp/project'
    """
    resolved = Path(input_path).expanduser().resolve().as_posix()
    if len(resolved) > 1 and resolved.endswith("/"):
        resolved = resolved[:-1]
    return resolved


def path_to_collection_name(absolute_path: Union[str, Path]) -> str:
    """
    Deterministic project identity for a root path.

    Used both as the vector collection name and as the snapshot file stem.
    """
    safe = normalize_path(absolute_path).lower()
    safe = re.sub(r"[^a-z0-9]", "_", safe)
    safe = re.sub(r"_+", "_", safe).strip("_")
    return f"{COLLECTION_PREFIX}{safe}"


def doc_collection_name(library: str) -> str:
    """Collection holding the cached documentation of one library."""
    safe = re.sub(r"[^a-z0-9]", "_", library.strip().lower())
    safe = re.sub(r"_+", "_", safe).strip("_")
    return f"{DOC_COLLECTION_PREFIX}{safe}"


class EideticPaths:
    """
    Data locations under the configured data_dir.

    Usage:
        paths = EideticPaths(config)
        paths.snapshot_file("/abs/project")
    """

    def __init__(self, config: EideticConfig) -> None:
        self._data_dir = Path(normalize_path(config.data_dir))

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def snapshot_dir(self) -> Path:
        """Location: {data_dir}/snapshots/"""
        return self._data_dir / "snapshots"

    def snapshot_file(self, root_path: Union[str, Path]) -> Path:
        """Location: {data_dir}/snapshots/{project_id}.json"""
        return self.snapshot_dir() / f"{path_to_collection_name(root_path)}.json"

    def memory_db(self) -> Path:
        """Location: {data_dir}/memory/history.db"""
        return self._data_dir / "memory" / "history.db"

    def doc_metadata_file(self) -> Path:
        """Location: {data_dir}/docs/metadata.json"""
        return self._data_dir / "docs" / "metadata.json"


__all__ = [
    "EideticPaths",
    "normalize_path",
    "path_to_collection_name",
    "doc_collection_name",
    "COLLECTION_PREFIX",
    "DOC_COLLECTION_PREFIX",
]
