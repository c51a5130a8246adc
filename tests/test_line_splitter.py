# tests/test_line_splitter.py
"""
Tests for LineWindowSplitter.
"""

import pytest

from eidetic.core.exceptions import InvalidInputError
from eidetic.ingestion.chunking import LineWindowSplitter

pytestmark = pytest.mark.tier1


def numbered(n: int) -> str:
    return "\n".join(f"line {i}" for i in range(1, n + 1))


class TestWindows:
    """Tests for window placement."""

    def test_200_lines_default_windows(self):
        """60-line windows with 5 lines of overlap over 200 lines."""
        chunks = LineWindowSplitter().split(numbered(200), "text", "a.txt")

        assert [(c.start_line, c.end_line) for c in chunks] == [
            (1, 60),
            (56, 115),
            (111, 170),
            (166, 200),
        ]

    def test_short_text_single_chunk(self):
        chunks = LineWindowSplitter().split("a\nb\nc", "text", "a.txt")

        assert len(chunks) == 1
        assert (chunks[0].start_line, chunks[0].end_line) == (1, 3)
        assert chunks[0].content == "a\nb\nc"

    def test_every_line_covered(self):
        splitter = LineWindowSplitter(chunk_lines=7, overlap_lines=3)
        chunks = splitter.split(numbered(50), "text", "a.txt")

        covered = set()
        for c in chunks:
            covered.update(range(c.start_line, c.end_line + 1))

        assert covered == set(range(1, 51))

    def test_adjacent_overlap_bounded(self):
        splitter = LineWindowSplitter(chunk_lines=10, overlap_lines=4)
        chunks = splitter.split(numbered(45), "text", "a.txt")

        for prev, nxt in zip(chunks, chunks[1:]):
            shared = prev.end_line - nxt.start_line + 1
            assert 0 <= shared <= 4

    def test_content_matches_lines(self):
        text = numbered(30)
        lines = text.split("\n")
        chunks = LineWindowSplitter(chunk_lines=8, overlap_lines=2).split(text, "text", "a.txt")

        for c in chunks:
            assert c.content == "\n".join(lines[c.start_line - 1 : c.end_line])

    def test_overlap_clamped_below_window(self):
        """overlap >= chunk_lines still advances one line at a time."""
        splitter = LineWindowSplitter(chunk_lines=3, overlap_lines=10)

        assert splitter.overlap_lines == 2
        assert splitter.step == 1

    def test_whitespace_only_windows_skipped(self):
        text = "a\n" + "\n" * 20 + "b"
        chunks = LineWindowSplitter(chunk_lines=5, overlap_lines=0).split(text, "text", "a.txt")

        assert all(c.content.strip() for c in chunks)
        assert chunks[0].start_line == 1
        assert chunks[-1].end_line == 22

    def test_metadata(self):
        chunk = LineWindowSplitter().split("x = 1", "python", "pkg/mod.py")[0]

        assert chunk.language == "python"
        assert chunk.file_path == "pkg/mod.py"
        assert chunk.symbol_name is None


class TestSizeBound:
    """Character cap enforced on top of windows."""

    def test_single_huge_line_hard_cut(self):
        """A 10 000-char line is cut into cap-sized pieces of that one line."""
        text = "x" * 10_000
        chunks = LineWindowSplitter(max_chunk_chars=2500).split(text, "text", "min.js")

        assert len(chunks) == 4
        assert all(len(c.content) <= 2500 for c in chunks)
        assert all((c.start_line, c.end_line) == (1, 1) for c in chunks)
        assert "".join(c.content for c in chunks) == text

    def test_no_chunk_exceeds_cap(self):
        text = "\n".join("y" * (i * 37 % 400) for i in range(1, 200))
        chunks = LineWindowSplitter(max_chunk_chars=300).split(text, "text", "a.txt")

        assert chunks
        assert max(len(c.content) for c in chunks) <= 300


class TestValidation:
    """Input and parameter validation."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(InvalidInputError):
            LineWindowSplitter().split(text, "text", "a.txt")

    @pytest.mark.parametrize(
        "kwargs",
        [{"chunk_lines": 0}, {"overlap_lines": -1}, {"max_chunk_chars": 0}],
    )
    def test_bad_parameters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            LineWindowSplitter(**kwargs)

    def test_splitter_id(self):
        assert LineWindowSplitter().splitter_id == "line:60:5:2500"

    def test_deterministic(self):
        text = numbered(123)
        splitter = LineWindowSplitter(chunk_lines=11, overlap_lines=3)

        assert splitter.split(text, "t", "a") == splitter.split(text, "t", "a")
