# eidetic/ingestion/diff/differ.py
"""
Diff computation for incremental indexing.

Compares two snapshots ({relative_path: FileEntry}) and reports which paths
were added, modified or removed. Content hashes are the only change signal,
so clones, checkouts and formatters that touch mtimes don't trigger reindexing.

This module ONLY computes the diff - it does NOT act on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

from eidetic.ingestion.state.schema import FileEntry
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import INGEST

logger = get_logger(__name__)


@dataclass(frozen=True)
class DiffResult:
    """
    Result of diff computation.

    The three tuples are sorted and mutually disjoint.
    """

    added: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()

    @property
    def changed(self) -> Tuple[str, ...]:
        """Paths whose content must be (re)split: added + modified."""
        return tuple(sorted(self.added + self.modified))

    @property
    def stale(self) -> Tuple[str, ...]:
        """Paths whose existing vectors must be deleted: removed + modified."""
        return tuple(sorted(self.removed + self.modified))

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)

    @property
    def summary(self) -> str:
        return (
            f"added={len(self.added)}, "
            f"modified={len(self.modified)}, "
            f"removed={len(self.removed)}"
        )


def diff_snapshots(
    previous: Mapping[str, FileEntry],
    current: Mapping[str, FileEntry],
) -> DiffResult:
    """
    Compute added / modified / removed paths between two snapshots.

    Pure function.

    Args:
        previous: Snapshot from the last successful run (may be empty).
        current: Snapshot of the source as it is now.

    Returns:
        DiffResult with sorted, disjoint path tuples.
    """
    added = sorted(path for path in current if path not in previous)
    removed = sorted(path for path in previous if path not in current)
    modified = sorted(
        path
        for path, entry in current.items()
        if path in previous and previous[path].content_hash != entry.content_hash
    )

    result = DiffResult(added=tuple(added), modified=tuple(modified), removed=tuple(removed))
    logger.debug(f"{INGEST} Diff computed: {result.summary}")
    return result


__all__ = ["DiffResult", "diff_snapshots"]
