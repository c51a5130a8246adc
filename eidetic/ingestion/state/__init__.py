# eidetic/ingestion/state/__init__.py
from .documents import DocEntry, DocMetadataStore
from .schema import FileEntry, Snapshot, parse_snapshot, serialize_snapshot
from .snapshot import SnapshotStore

__all__ = [
    "FileEntry",
    "Snapshot",
    "SnapshotStore",
    "parse_snapshot",
    "serialize_snapshot",
    "DocEntry",
    "DocMetadataStore",
]
