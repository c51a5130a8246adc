# eidetic/ingestion/chunking/plugins/line.py
"""
Line-window splitter - fixed-size overlapping line windows.

Splits text into windows of chunk_lines lines, each sharing overlap_lines
lines with the previous one, then enforces the character cap.

Splitter ID format: "line:{chunk_lines}:{overlap_lines}:{max_chunk_chars}"
Example: "line:60:5:2500"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from eidetic.core.chunk import Chunk
from eidetic.core.exceptions import InvalidInputError
from eidetic.ingestion.chunking.bounds import enforce_size_bound
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import CHUNKING

logger = get_logger(__name__)


@dataclass
class LineWindowSplitter:
    """
    Overlapping line-window splitter.

    The window advances by max(1, chunk_lines - overlap_lines), and stops
    once a window reaches the last line, so every line is covered and
    adjacent chunks share at most overlap_lines lines.

    Example:
        >>> splitter = LineWindowSplitter(chunk_lines=60, overlap_lines=5)
        >>> [(c.start_line, c.end_line) for c in splitter.split(text_200_lines, "python", "a.py")]
        [(1, 60), (56, 115), (111, 170), (166, 200)]
    """

    plugin_name: str = field(default="line", repr=False)
    chunk_lines: int = 60
    overlap_lines: int = 5
    max_chunk_chars: int = 2500

    def __post_init__(self) -> None:
        """Validate parameters and clamp the overlap below the window size."""
        if self.chunk_lines < 1:
            raise ValueError(f"chunk_lines must be >= 1, got {self.chunk_lines}")
        if self.overlap_lines < 0:
            raise ValueError(f"overlap_lines must be >= 0, got {self.overlap_lines}")
        if self.max_chunk_chars < 1:
            raise ValueError(f"max_chunk_chars must be >= 1, got {self.max_chunk_chars}")
        self.overlap_lines = min(self.overlap_lines, self.chunk_lines - 1)

    @property
    def splitter_id(self) -> str:
        return f"{self.plugin_name}:{self.chunk_lines}:{self.overlap_lines}:{self.max_chunk_chars}"

    @property
    def step(self) -> int:
        return max(1, self.chunk_lines - self.overlap_lines)

    def windows(self, line_count: int) -> List[Tuple[int, int]]:
        """0-based half-open (start, end) line windows for line_count lines."""
        spans = []
        start = 0
        while start < line_count:
            end = min(start + self.chunk_lines, line_count)
            spans.append((start, end))
            if end >= line_count:
                break
            start += self.step
        return spans

    def split(self, text: str, language: str, file_path: str) -> List[Chunk]:
        """
        Split text into overlapping, size-bounded line windows.

        Raises:
            InvalidInputError: If text is empty or whitespace-only.
        """
        if not text or not text.strip():
            raise InvalidInputError(f"Cannot split empty text ({file_path})")

        lines = text.split("\n")
        chunks: List[Chunk] = []
        for start, end in self.windows(len(lines)):
            content = "\n".join(lines[start:end])
            if not content.strip():
                continue
            chunks.append(
                Chunk(
                    content=content,
                    start_line=start + 1,
                    end_line=end,
                    language=language,
                    file_path=file_path,
                )
            )

        bounded = enforce_size_bound(chunks, self.max_chunk_chars)
        logger.debug(
            f"{CHUNKING} {file_path}: {len(lines)} lines -> {len(bounded)} line-window chunks"
        )
        return bounded


__all__ = ["LineWindowSplitter"]
