# eidetic/ingestion/chunking/base.py
"""
Base protocol for splitter plugins.

Each splitter must implement:
- plugin_name: str - The plugin identifier (e.g., "line", "symbol")
- splitter_id: str - Unique ID including params that affect output (e.g., "line:60:5:2500")
- split(text, language, file_path) -> List[Chunk]

The splitter_id is recorded with indexed chunks so that a change in
chunking parameters is visible downstream.
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from eidetic.core.chunk import Chunk


@runtime_checkable
class Splitter(Protocol):
    """
    Protocol for splitters.

    Contract:
    - Output is ordered by start_line, finite and deterministic
    - Every chunk is non-blank and within the configured character cap
    - Blank input raises InvalidInputError

    Example:
        >>> splitter = LineWindowSplitter(chunk_lines=60, overlap_lines=5)
        >>> splitter.splitter_id
        'line:60:5:2500'
    """

    plugin_name: str

    @property
    def splitter_id(self) -> str:
        """Deterministic ID for this splitter configuration."""
        ...

    def split(self, text: str, language: str, file_path: str) -> List[Chunk]:
        """
        Split text into chunks.

        Args:
            text: Full file content.
            language: Language name (e.g. "python"); "unknown" is allowed.
            file_path: Path relative to the project root, copied onto each chunk.

        Returns:
            Chunks ordered by start_line.
        """
        ...


__all__ = ["Splitter", "Chunk"]
