# eidetic/ingestion/diff/__init__.py
from .differ import DiffResult, diff_snapshots
from .executor import (
    CleanupResult,
    IndexResult,
    TargetedIndexResult,
    cleanup_vectors,
    index_codebase,
    index_files,
)
from .preview import PreviewResult, preview_codebase
from .scanner import build_snapshot, extension_to_language, scan_files

__all__ = [
    "DiffResult",
    "diff_snapshots",
    "IndexResult",
    "CleanupResult",
    "TargetedIndexResult",
    "index_codebase",
    "index_files",
    "cleanup_vectors",
    "PreviewResult",
    "preview_codebase",
    "scan_files",
    "build_snapshot",
    "extension_to_language",
]
