# eidetic/ingestion/chunking/bounds.py
"""
Character-cap enforcement shared by every splitter.

A chunk longer than the cap is re-split by a small accumulator:

    ACCUMULATING --(next line would overflow)--> FLUSH_PENDING
    FLUSH_PENDING --(buffer emitted)-----------> ACCUMULATING

A single line longer than the cap cannot be split on a line boundary, so it
is hard-cut into cap-sized slices with no overlap. Whitespace-only pieces
are dropped. Symbol metadata of the original chunk is kept on every piece.
"""

from __future__ import annotations

from enum import Enum
from typing import List

from eidetic.core.chunk import Chunk
from eidetic.core.exceptions import InvalidInputError


class _State(Enum):
    ACCUMULATING = "accumulating"
    FLUSH_PENDING = "flush_pending"


class _Accumulator:
    def __init__(self, chunk: Chunk, max_chars: int) -> None:
        self._chunk = chunk
        self._max_chars = max_chars
        self._lines: List[str] = []
        self._size = 0
        self._first_line = chunk.start_line
        self.state = _State.ACCUMULATING
        self.out: List[Chunk] = []

    def _emit(self, content: str, start_line: int, end_line: int) -> None:
        if not content.strip():
            return
        self.out.append(
            self._chunk.model_copy(
                update={"content": content, "start_line": start_line, "end_line": end_line}
            )
        )

    def _flush(self) -> None:
        if self._lines:
            self._emit(
                "\n".join(self._lines),
                self._first_line,
                self._first_line + len(self._lines) - 1,
            )
        self._lines = []
        self._size = 0
        self.state = _State.ACCUMULATING

    def _hard_cut(self, line: str, line_no: int) -> None:
        for offset in range(0, len(line), self._max_chars):
            self._emit(line[offset : offset + self._max_chars], line_no, line_no)

    def feed(self, line: str, line_no: int) -> None:
        if len(line) > self._max_chars:
            self._flush()
            self._hard_cut(line, line_no)
            return

        added = len(line) + (1 if self._lines else 0)
        if self._lines and self._size + added > self._max_chars:
            self.state = _State.FLUSH_PENDING
            self._flush()
            added = len(line)

        if not self._lines:
            self._first_line = line_no
        self._lines.append(line)
        self._size += added

    def finish(self) -> List[Chunk]:
        self._flush()
        return self.out


def split_oversized(chunk: Chunk, max_chars: int) -> List[Chunk]:
    """Re-split one chunk so that no piece exceeds max_chars."""
    acc = _Accumulator(chunk, max_chars)
    for offset, line in enumerate(chunk.content.split("\n")):
        acc.feed(line, chunk.start_line + offset)
    return acc.finish()


def enforce_size_bound(chunks: List[Chunk], max_chars: int) -> List[Chunk]:
    """
    Return chunks with every oversized chunk replaced by its bounded pieces.

    Order is preserved; chunks already within the cap pass through untouched.
    """
    if max_chars < 1:
        raise InvalidInputError(f"max_chars must be >= 1, got {max_chars}")

    bounded: List[Chunk] = []
    for chunk in chunks:
        if len(chunk.content) <= max_chars:
            bounded.append(chunk)
        else:
            bounded.extend(split_oversized(chunk, max_chars))
    return bounded


__all__ = ["enforce_size_bound", "split_oversized"]
