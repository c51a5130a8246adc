# eidetic/ingestion/chunking/__init__.py
"""
Chunking subsystem for ingestion.

Provides:
- Splitter protocol for implementing splitters
- LineWindowSplitter: overlapping line windows
- SymbolAwareSplitter: declaration chunks over tree-sitter, line windows elsewhere
- enforce_size_bound: the character cap shared by both

Usage:
    from eidetic.ingestion.chunking import build_splitter

    splitter = build_splitter(config)
    chunks = splitter.split(text, "python", "pkg/module.py")
"""

from eidetic.core.config import EideticConfig
from eidetic.ingestion.chunking.base import Chunk, Splitter
from eidetic.ingestion.chunking.bounds import enforce_size_bound
from eidetic.ingestion.chunking.plugins.line import LineWindowSplitter
from eidetic.ingestion.chunking.plugins.symbol import SymbolAwareSplitter


def build_splitter(config: EideticConfig) -> SymbolAwareSplitter:
    """Symbol-aware splitter configured from chunk_lines, overlap_lines and max_chunk_chars."""
    return SymbolAwareSplitter(
        fallback=LineWindowSplitter(
            chunk_lines=config.chunk_lines,
            overlap_lines=config.overlap_lines,
            max_chunk_chars=config.max_chunk_chars,
        )
    )


__all__ = [
    # Protocol
    "Splitter",
    "Chunk",
    # Plugins
    "LineWindowSplitter",
    "SymbolAwareSplitter",
    # Helpers
    "enforce_size_bound",
    "build_splitter",
]
