# tests/test_preview.py
"""
Tests for the indexing dry run.
"""

from pathlib import Path

import pytest

from eidetic.core.config import EideticConfig
from eidetic.ingestion.diff import preview as preview_module
from eidetic.ingestion.diff import preview_codebase

pytestmark = pytest.mark.tier2


def write(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("x" * size, encoding="utf-8")


@pytest.fixture
def mixed(project: Path) -> Path:
    write(project / "README.md", 30)
    write(project / "lib/c.ts", 30)
    write(project / "src/a.py", 30)
    write(project / "src/b.PY", 30)
    return project


class TestPreviewCounts:
    """File, extension and directory breakdown."""

    def test_counts(self, mixed, config):
        result = preview_codebase(mixed, config)

        assert result.total_files == 4
        assert result.by_extension == {".md": 1, ".ts": 1, ".py": 2}
        assert result.top_directories == [("src", 2), ("(root)", 1), ("lib", 1)]

    def test_token_and_cost_estimate(self, mixed, config):
        result = preview_codebase(mixed, config)

        # 120 bytes at 3 chars per token, text-embedding-3-small at $0.02 / 1M
        assert result.estimated_tokens == 40
        assert result.estimated_cost_usd == pytest.approx(40 / 1_000_000 * 0.02)

    def test_unknown_model_costs_nothing(self, mixed, tmp_path):
        config = EideticConfig(
            embedding_provider="ollama", data_dir=tmp_path / "data"
        )

        result = preview_codebase(mixed, config)

        assert result.estimated_tokens == 40
        assert result.estimated_cost_usd == 0.0

    def test_ignored_files_not_counted(self, mixed, config):
        (mixed / ".gitignore").write_text("lib/\n", encoding="utf-8")

        assert preview_codebase(mixed, config).total_files == 3

    def test_top_directories_capped(self, project, config):
        for i in range(12):
            write(project / f"pkg{i:02d}/m.py", 1)

        assert len(preview_codebase(project, config).top_directories) == 10


class TestPreviewWarnings:
    """Warnings about empty, huge or lopsided projects."""

    def test_empty_project(self, project, config):
        result = preview_codebase(project, config)

        assert result.total_files == 0
        assert result.estimated_tokens == 0
        assert len(result.warnings) == 1
        assert "No indexable files" in result.warnings[0]

    def test_no_warning_at_half(self, mixed, config):
        assert preview_codebase(mixed, config).warnings == []

    def test_dominant_directory(self, mixed, config):
        write(mixed / "src/d.py", 10)

        warnings = preview_codebase(mixed, config).warnings

        assert len(warnings) == 1
        assert "'src/'" in warnings[0]
        assert "60%" in warnings[0]

    def test_root_never_flagged(self, project, config):
        write(project / "a.py", 5)
        write(project / "b.py", 5)
        write(project / "lib/c.py", 5)

        assert preview_codebase(project, config).warnings == []

    def test_large_codebase(self, project, config, monkeypatch):
        files = [f"pkg{i % 10}/f{i}.py" for i in range(5001)]
        monkeypatch.setattr(preview_module, "scan_files", lambda *args: files)

        result = preview_codebase(project, config)

        assert result.total_files == 5001
        # Listed files do not exist on disk
        assert result.estimated_tokens == 0
        assert len(result.warnings) == 1
        assert "5,001 files" in result.warnings[0]
