# tests/test_repo_map.py
"""
Tests for repo map rendering and symbol listing.
"""

import pytest

from eidetic.core.exceptions import InvalidInputError
from eidetic.core.paths import path_to_collection_name
from eidetic.retrieval.repo_map import (
    EMPTY_MAP,
    TRUNCATION_MARKER,
    VectorIndexSymbolSource,
    dedupe_symbols,
    generate_repo_map,
    list_symbols_table,
    matches_path_filter,
    render_repo_map,
)
from eidetic.vector_db.memory import InMemoryVectorIndex
from eidetic.vector_db.types import CodeDocument, SymbolEntry


def sym(path, name, kind, line, signature=None, parent=None) -> SymbolEntry:
    return SymbolEntry(
        name=name,
        kind=kind,
        relative_path=path,
        start_line=line,
        signature=signature,
        parent_name=parent,
    )


SYMBOLS = [
    sym("src/models.py", "save", "method", 8, "def save(self)", "User"),
    sym("src/models.py", "User", "class", 4, "class User(BaseModel)"),
    sym("src/models.py", "load_user", "function", 12, "def load_user(user_id: str)"),
    sym("src/api.ts", "handler", "function", 1),
]


@pytest.mark.tier1
class TestRenderRepoMap:
    """Tests for render_repo_map."""

    def test_grouped_sorted_and_nested(self):
        assert render_repo_map(SYMBOLS) == "\n".join(
            [
                "src/api.ts:",
                "  [function] handler",
                "src/models.py:",
                "  [class] class User(BaseModel)",
                "    [method] def save(self)",
                "  [function] def load_user(user_id: str)",
            ]
        )

    def test_empty(self):
        assert render_repo_map([]) == EMPTY_MAP

    def test_orphan_method_rendered_top_level(self):
        out = render_repo_map([sym("a.py", "run", "method", 3, "def run(self)", "Gone")])

        assert out == "a.py:\n  [method] def run(self)"

    def test_truncated_within_budget(self):
        many = [sym(f"pkg/mod_{i:03}.py", f"func_{i}", "function", 1) for i in range(500)]

        out = render_repo_map(many, max_tokens=100)

        assert len(out) <= 400
        assert out.endswith("\n" + TRUNCATION_MARKER)
        assert out.startswith("pkg/mod_000.py:")

    @pytest.mark.parametrize("max_tokens", [4, 5, 40, 250])
    def test_never_exceeds_budget(self, max_tokens):
        many = [sym(f"f{i}.py", f"n{i}", "function", i, "x" * (i % 50)) for i in range(200)]

        out = render_repo_map(many, max_tokens=max_tokens)

        assert len(out) <= max_tokens * 4

    def test_budget_smaller_than_marker(self):
        with pytest.raises(InvalidInputError):
            render_repo_map(SYMBOLS, max_tokens=3)

    def test_deterministic(self):
        assert render_repo_map(SYMBOLS) == render_repo_map(list(reversed(SYMBOLS)))


@pytest.mark.tier1
class TestDedupeSymbols:
    """Tests for dedupe_symbols."""

    def test_signature_preferred(self):
        entries = [sym("a.py", "f", "function", 1), sym("a.py", "f", "function", 1, "def f()")]

        (only,) = dedupe_symbols(entries)

        assert only.signature == "def f()"

    def test_first_with_signature_kept(self):
        entries = [sym("a.py", "f", "function", 1, "def f()"), sym("a.py", "f", "function", 9, "def f(x)")]

        (only,) = dedupe_symbols(entries)

        assert only.signature == "def f()"

    def test_kind_distinguishes(self):
        entries = [sym("a.go", "Server", "struct", 1), sym("a.go", "Server", "impl", 9)]

        assert len(dedupe_symbols(entries)) == 2


@pytest.mark.tier1
class TestPathFilter:
    """Tests for matches_path_filter."""

    @pytest.mark.parametrize(
        "path, pattern, expected",
        [
            ("src/core/a.py", "src/**", True),
            ("src/core/a.py", "src/*.py", False),
            ("src/a.py", "src/*.py", True),
            ("lib/a.py", "src/**", False),
            ("src/a.py", "src/a.py", True),
        ],
    )
    def test_patterns(self, path, pattern, expected):
        assert matches_path_filter(path, pattern) is expected


@pytest.mark.tier2
class TestIndexBacked:
    """generate_repo_map / list_symbols_table over an in-memory index."""

    @pytest.fixture
    def source(self, tmp_path):
        index = InMemoryVectorIndex()
        collection = path_to_collection_name(tmp_path)
        index.create_collection(collection, 2)
        docs = [
            CodeDocument(
                id="1", content="class User: ...", vector=[1.0, 0.0], relative_path="src/models.py",
                start_line=4, end_line=9, file_extension=".py", language="python",
                symbol_name="User", symbol_kind="class", symbol_signature="class User",
            ),
            CodeDocument(
                id="2", content="def save(self): ...", vector=[0.0, 1.0], relative_path="src/models.py",
                start_line=8, end_line=9, file_extension=".py", language="python",
                symbol_name="save", symbol_kind="method", symbol_signature="def save(self)",
                parent_symbol="User",
            ),
            CodeDocument(
                id="3", content="import os", vector=[1.0, 1.0], relative_path="src/models.py",
                start_line=1, end_line=2, file_extension=".py", language="python",
            ),
            CodeDocument(
                id="4", content="function main() {}", vector=[1.0, 1.0], relative_path="web/main.ts",
                start_line=1, end_line=1, file_extension=".ts", language="typescript",
                symbol_name="main", symbol_kind="function", symbol_signature="function main()",
            ),
        ]
        index.insert(collection, docs)
        return VectorIndexSymbolSource(index)

    def test_generate(self, tmp_path, source):
        out = generate_repo_map(tmp_path, source)

        assert "src/models.py:\n  [class] class User\n    [method] def save(self)" in out
        assert "web/main.ts:" in out

    def test_generate_with_path_filter(self, tmp_path, source):
        out = generate_repo_map(tmp_path, source, path_filter="web/**")

        assert out == "web/main.ts:\n  [function] function main()"

    def test_table_with_filters(self, tmp_path, source):
        out = list_symbols_table(tmp_path, source, kind_filter="METHOD")

        assert out.splitlines() == [
            "Name | Kind | Location",
            "-----|------|--------",
            "save | method | src/models.py:8",
        ]

    def test_table_name_filter_no_match(self, tmp_path, source):
        assert list_symbols_table(tmp_path, source, name_filter="nothing") == "(no symbols found)"
