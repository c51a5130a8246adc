# tests/test_executor.py
"""
Tests for the index executor and vector cleanup.

Projects use markdown files so every file goes through line windows; the
symbol path is covered in test_symbol_splitter.py.
"""

from pathlib import Path
from typing import List

import pytest

from eidetic.core.exceptions import IndexingError
from eidetic.core.paths import path_to_collection_name
from eidetic.ingestion.diff import cleanup_vectors, index_codebase
from eidetic.ingestion.hashing import compute_chunk_id, compute_file_hash
from eidetic.ingestion.state import SnapshotStore

from tests.conftest import FakeEmbedder, write_lines

pytestmark = pytest.mark.tier2


def paths_in(index, project: Path) -> List[str]:
    return sorted({p.payload["relative_path"] for p in index.scroll(path_to_collection_name(project))})


@pytest.fixture
def seeded(project: Path) -> Path:
    write_lines(project / "docs/intro.md", 25, "intro")
    write_lines(project / "docs/usage.md", 8, "usage")
    write_lines(project / "notes.md", 3, "note")
    return project


class TestFullIndex:
    """First run and forced runs index everything."""

    def test_first_run(self, seeded, embedder, index, config):
        result = index_codebase(seeded, embedder, index, config)

        assert result.total_files == 3
        assert result.added == 3
        assert result.modified == 0
        assert result.skipped == 0
        # intro: 25 lines with 10/2 windows -> 1-10, 9-18, 17-25
        assert result.total_chunks == 3 + 1 + 1
        assert result.parse_failures == []
        assert paths_in(index, seeded) == ["docs/intro.md", "docs/usage.md", "notes.md"]
        assert SnapshotStore(config).exists(seeded)

    def test_payload(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)

        points = [
            p for p in index.scroll(path_to_collection_name(seeded))
            if p.payload["relative_path"] == "docs/intro.md"
        ]
        first = min(points, key=lambda p: p.payload["start_line"])

        assert first.payload["file_extension"] == ".md"
        assert first.payload["language"] == "markdown"
        assert first.payload["file_category"] == "doc"
        assert (first.payload["start_line"], first.payload["end_line"]) == (1, 10)
        assert first.id == compute_chunk_id(
            "docs/intro.md", compute_file_hash(seeded / "docs/intro.md"), 0
        )

    def test_batches_follow_config(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)

        assert sorted(len(batch) for batch in embedder.batch_calls) == [1, 4]

    def test_force_reindexes_everything(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)

        result = index_codebase(seeded, embedder, index, config, force=True)

        assert result.added == 3
        assert result.skipped == 0
        assert index.count(path_to_collection_name(seeded)) == 5

    def test_missing_snapshot_rebuilds_collection(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)
        SnapshotStore(config).delete(seeded)
        (seeded / "notes.md").unlink()

        result = index_codebase(seeded, embedder, index, config)

        assert result.added == 2
        assert paths_in(index, seeded) == ["docs/intro.md", "docs/usage.md"]

    def test_progress_reported(self, seeded, embedder, index, config):
        seen = []

        index_codebase(seeded, embedder, index, config, on_progress=lambda pct, msg: seen.append(pct))

        assert seen[0] == 0
        assert seen[-1] == 100
        assert seen == sorted(seen)


class TestIncremental:
    """Re-runs only touch what changed."""

    def test_unchanged_project_skipped(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)
        calls = len(embedder.batch_calls)

        result = index_codebase(seeded, embedder, index, config)

        assert result.skipped == 3
        assert result.total_chunks == 0
        assert len(embedder.batch_calls) == calls

    def test_added_modified_removed(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)
        write_lines(seeded / "docs/usage.md", 8, "changed")
        write_lines(seeded / "guide.md", 4, "guide")
        (seeded / "notes.md").unlink()

        result = index_codebase(seeded, embedder, index, config)

        assert (result.added, result.modified, result.removed, result.skipped) == (1, 1, 1, 1)
        assert result.total_chunks == 2
        assert paths_in(index, seeded) == ["docs/intro.md", "docs/usage.md", "guide.md"]

        usage = [
            p.payload["content"] for p in index.scroll(path_to_collection_name(seeded))
            if p.payload["relative_path"] == "docs/usage.md"
        ]
        assert len(usage) == 1
        assert usage[0].startswith("changed 1")

    def test_crlf_only_change_is_not_modified(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)
        path = seeded / "notes.md"
        path.write_bytes(path.read_bytes().replace(b"\n", b"\r\n"))

        result = index_codebase(seeded, embedder, index, config)

        assert result.modified == 0


class TestFailures:
    """Error and degraded paths."""

    def test_no_files(self, project, embedder, index, config):
        with pytest.raises(IndexingError, match="No indexable files"):
            index_codebase(project, embedder, index, config)

    def test_undecodable_file_reported(self, seeded, embedder, index, config):
        (seeded / "broken.md").write_bytes(b"\xff\xfe\x00\x81 not utf-8")

        result = index_codebase(seeded, embedder, index, config)

        assert result.parse_failures == ["broken.md"]
        assert "broken.md" not in paths_in(index, seeded)
        assert result.total_chunks == 5

    def test_empty_file_is_not_a_failure(self, seeded, embedder, index, config):
        (seeded / "empty.md").write_text("   \n", encoding="utf-8")

        result = index_codebase(seeded, embedder, index, config)

        assert result.parse_failures == []
        assert "empty.md" not in paths_in(index, seeded)

    def test_vector_count_mismatch(self, seeded, index, config):
        class DroppingEmbedder(FakeEmbedder):
            def embed_batch(self, texts):
                return super().embed_batch(texts)[:-1]

        with pytest.raises(IndexingError, match="count mismatch"):
            index_codebase(seeded, DroppingEmbedder(), index, config)

        assert not SnapshotStore(config).exists(seeded)


class TestCleanupVectors:
    """Tests for cleanup_vectors."""

    def test_removes_deleted_files(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)
        (seeded / "notes.md").unlink()

        result = cleanup_vectors(seeded, index, config)

        assert result.removed_files == ["notes.md"]
        assert result.total_removed == 1
        assert "notes.md" not in paths_in(index, seeded)
        assert "notes.md" not in SnapshotStore(config).load(seeded)

    def test_nothing_removed(self, seeded, embedder, index, config):
        index_codebase(seeded, embedder, index, config)

        assert cleanup_vectors(seeded, index, config).removed_files == []

    def test_requires_snapshot(self, seeded, index, config):
        with pytest.raises(IndexingError, match="No snapshot"):
            cleanup_vectors(seeded, index, config)
