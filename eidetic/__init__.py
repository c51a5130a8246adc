# eidetic/__init__.py
"""
eidetic - keeps a searchable code/document/memory index consistent with its source.

Public entry points:
    from eidetic.ingestion.diff.differ import diff_snapshots
    from eidetic.ingestion.chunking import build_splitter
    from eidetic.retrieval.dedupe import dedupe_results
    from eidetic.retrieval.repo_map import render_repo_map
    from eidetic.memory.reconciler import reconcile
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
