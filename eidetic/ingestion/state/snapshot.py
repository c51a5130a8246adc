# eidetic/ingestion/state/snapshot.py
"""
Snapshot persistence.

One JSON file per project at {data_dir}/snapshots/{project_id}.json.

Key responsibilities:
- Load (malformed or unreadable files count as absent, forcing a full reindex)
- Save atomically via a temp file
- Delete on full de-indexing

Key non-responsibilities:
- NO diffing (see eidetic.ingestion.diff.differ)
- NO locking: one writer per project is the caller's job
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from eidetic.core.config import EideticConfig
from eidetic.core.paths import EideticPaths
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import STATE

from .schema import Snapshot, parse_snapshot, serialize_snapshot

logger = get_logger(__name__)


class SnapshotStore:
    """
    Reads and writes per-project snapshots.

    Usage:
        store = SnapshotStore(config)
        previous = store.load("/abs/project")   # None when absent or corrupt
        store.save("/abs/project", current)
    """

    def __init__(self, config: EideticConfig) -> None:
        self._paths = EideticPaths(config)

    def path_for(self, root_path: Union[str, Path]) -> Path:
        return self._paths.snapshot_file(root_path)

    def exists(self, root_path: Union[str, Path]) -> bool:
        return self.path_for(root_path).exists()

    def load(self, root_path: Union[str, Path]) -> Optional[Snapshot]:
        """
        Load the snapshot for a project.

        Returns:
            The snapshot, or None when missing or unparsable
        """
        path = self.path_for(root_path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"{STATE} Unreadable snapshot at {path}, ignoring: {e}")
            return None

        try:
            snapshot = parse_snapshot(raw)
        except ValidationError as e:
            logger.warning(
                f"{STATE} Corrupted snapshot at {path}, ignoring "
                f"({e.error_count()} validation error(s))"
            )
            return None

        logger.debug(f"{STATE} Loaded snapshot with {len(snapshot)} entries from {path}")
        return snapshot

    def save(self, root_path: Union[str, Path], snapshot: Snapshot) -> None:
        """Write the snapshot atomically."""
        path = self.path_for(root_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_suffix(".tmp")
        try:
            temp_path.write_text(serialize_snapshot(snapshot), encoding="utf-8")
            temp_path.replace(path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug(f"{STATE} Saved snapshot with {len(snapshot)} entries to {path}")

    def delete(self, root_path: Union[str, Path]) -> None:
        """Remove the snapshot; a missing file is fine."""
        self.path_for(root_path).unlink(missing_ok=True)


__all__ = ["SnapshotStore"]
