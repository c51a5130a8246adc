# tests/test_searcher.py
"""
Tests for search_code and result formatting.
"""

from pathlib import Path

import pytest

from eidetic.core.exceptions import InvalidInputError, SearchError
from eidetic.core.paths import path_to_collection_name
from eidetic.retrieval.searcher import (
    MAX_LIMIT,
    clamp_limit,
    format_compact_results,
    format_search_results,
    search_code,
)
from eidetic.vector_db.types import CodeDocument, SearchResult

pytestmark = pytest.mark.tier2


def doc(i: int, path: str, start: int, end: int, content: str, embedder) -> CodeDocument:
    return CodeDocument(
        id=f"00000000-0000-0000-0000-{i:012d}",
        content=content,
        vector=embedder.embed(content),
        relative_path=path,
        start_line=start,
        end_line=end,
        file_extension=Path(path).suffix,
        language="python" if path.endswith(".py") else "typescript",
    )


@pytest.fixture
def indexed(tmp_path, embedder, index):
    collection = path_to_collection_name(tmp_path)
    index.create_collection(collection, embedder.dimension)
    index.insert(
        collection,
        [
            doc(1, "auth/session.py", 1, 20, "def refresh_session token expiry", embedder),
            doc(2, "auth/session.py", 15, 40, "refresh session token rotate", embedder),
            doc(3, "web/login.ts", 1, 10, "login form submit token", embedder),
            doc(4, "db/models.py", 1, 30, "class Order model table", embedder),
        ],
    )
    return tmp_path


class TestSearchCode:
    """Tests for search_code."""

    def test_overlapping_chunks_deduped(self, indexed, embedder, index):
        results = search_code(indexed, "refresh session token", embedder, index)

        session_hits = [r for r in results if r.relative_path == "auth/session.py"]
        assert len(session_hits) == 1
        assert results[0].relative_path == "auth/session.py"

    def test_extension_filter(self, indexed, embedder, index):
        results = search_code(indexed, "token", embedder, index, extension_filter=[".ts"])

        assert [r.relative_path for r in results] == ["web/login.ts"]

    def test_limit(self, indexed, embedder, index):
        results = search_code(indexed, "token", embedder, index, limit=1)

        assert len(results) == 1

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query(self, indexed, embedder, index, query):
        with pytest.raises(InvalidInputError):
            search_code(indexed, query, embedder, index)

    def test_not_indexed(self, tmp_path, embedder, index):
        with pytest.raises(SearchError, match="not indexed"):
            search_code(tmp_path / "elsewhere", "token", embedder, index)


class TestClampLimit:
    @pytest.mark.parametrize(
        "limit, expected", [(None, 10), (0, 1), (-3, 1), (7, 7), (500, MAX_LIMIT)]
    )
    def test_clamp(self, limit, expected):
        assert clamp_limit(limit) == expected


class TestFormatting:
    """Tests for markdown rendering."""

    RESULTS = [
        SearchResult(
            content="def f():\n    pass",
            relative_path="a.py",
            start_line=3,
            end_line=4,
            language="python",
            score=0.87654,
        )
    ]

    def test_no_results(self):
        assert format_search_results([], "q", "/p") == 'No results found for "q" in /p.'
        assert format_compact_results([], "q", "/p") == 'No results found for "q" in /p.'

    def test_full(self):
        out = format_search_results(self.RESULTS, "f", "/p")

        assert "### Result 1 of 1" in out
        assert "**File:** `a.py` (lines 3-4)" in out
        assert "**Score:** 0.8765" in out
        assert "```python\ndef f():\n    pass\n```" in out

    def test_compact(self):
        out = format_compact_results(self.RESULTS, "f", "/p")

        assert "| 1 | `a.py` | 3-4 | 0.88 | ~5 |" in out

    def test_language_sanitized_in_fence(self):
        weird = [self.RESULTS[0].model_copy(update={"language": "py`thon<script>"})]

        assert "```pythonscript\n" in format_search_results(weird, "f", "/p")
