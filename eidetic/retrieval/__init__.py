# eidetic/retrieval/__init__.py
"""
Query side: code and documentation search, result deduplication and repo maps.

Usage:
    from eidetic.retrieval import search_code, format_search_results

    results = search_code(root, "where is the retry policy", embedder, index)
    print(format_search_results(results, query, root))
"""

from eidetic.retrieval.dedupe import dedupe_results
from eidetic.retrieval.documents import DocSearchResult, search_documents
from eidetic.retrieval.repo_map import (
    VectorIndexSymbolSource,
    dedupe_symbols,
    generate_repo_map,
    list_symbols_table,
    render_repo_map,
)
from eidetic.retrieval.searcher import format_compact_results, format_search_results, search_code

__all__ = [
    "dedupe_results",
    "dedupe_symbols",
    "render_repo_map",
    "generate_repo_map",
    "list_symbols_table",
    "VectorIndexSymbolSource",
    "search_code",
    "format_search_results",
    "format_compact_results",
    "DocSearchResult",
    "search_documents",
]
