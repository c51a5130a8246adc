# eidetic/retrieval/searcher.py
"""
Code search over an indexed project.

Flow: validate -> embed query -> over-fetch hybrid search -> overlap dedupe.
Formatting helpers render results as markdown.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

from eidetic.core.exceptions import InvalidInputError, SearchError
from eidetic.core.paths import normalize_path, path_to_collection_name
from eidetic.embedding.base import TextEmbedder
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import RETRIEVER
from eidetic.retrieval.dedupe import dedupe_results
from eidetic.vector_db.types import HybridSearchParams, SearchResult, VectorIndex

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50
OVERFETCH_FACTOR = 3


def clamp_limit(limit: Optional[int]) -> int:
    """Clamp a requested limit into [1, MAX_LIMIT]; None means DEFAULT_LIMIT."""
    if limit is None:
        return DEFAULT_LIMIT
    return min(max(1, limit), MAX_LIMIT)


def search_code(
    root_path: Union[str, Path],
    query: str,
    embedder: TextEmbedder,
    index: VectorIndex,
    limit: Optional[int] = None,
    extension_filter: Optional[Sequence[str]] = None,
) -> List[SearchResult]:
    """
    Search an indexed codebase.

    Raises:
        InvalidInputError: If query is blank.
        SearchError: If the project has not been indexed.
    """
    if not query or not query.strip():
        raise InvalidInputError("Search query must not be empty")

    normalized = normalize_path(root_path)
    collection = path_to_collection_name(normalized)

    if not index.has_collection(collection):
        raise SearchError(
            f"Codebase at '{normalized}' is not indexed. Index it before searching."
        )

    final_limit = clamp_limit(limit)
    fetch_limit = min(final_limit * OVERFETCH_FACTOR, MAX_LIMIT)

    query_vector = embedder.embed(query)
    results = index.search(
        collection,
        HybridSearchParams(
            query_vector=query_vector,
            query_text=query,
            limit=fetch_limit,
            extension_filter=list(extension_filter) if extension_filter else None,
        ),
    )

    deduped = dedupe_results(results, final_limit)
    logger.debug(
        f"{RETRIEVER} '{query}' in {normalized}: {len(results)} hits -> {len(deduped)} after dedupe"
    )
    return deduped


def format_compact_results(results: Sequence[SearchResult], query: str, root_path: str) -> str:
    """Markdown table of paths, line ranges, scores and token estimates."""
    if not results:
        return f'No results found for "{query}" in {root_path}.'

    lines = [
        f'Found {len(results)} result(s) for "{query}" in {root_path}:\n',
        "| # | File | Lines | Score | ~Tokens |",
        "|---|------|-------|-------|---------|",
    ]
    for i, r in enumerate(results, start=1):
        tokens = math.ceil(len(r.content) / 4)
        lines.append(
            f"| {i} | `{r.relative_path}` | {r.start_line}-{r.end_line} | {r.score:.2f} | ~{tokens} |"
        )
    lines.append("")
    lines.append("Read the listed line ranges to view full code.")
    return "\n".join(lines)


def format_search_results(results: Sequence[SearchResult], query: str, root_path: str) -> str:
    """Markdown with one fenced code block per result."""
    if not results:
        return f'No results found for "{query}" in {root_path}.'

    lines = [f'Found {len(results)} result(s) for "{query}" in {root_path}:\n']
    total = len(results)
    for i, r in enumerate(results, start=1):
        safe_lang = re.sub(r"[^a-zA-Z0-9_+-]", "", r.language)
        lines.append(f"### Result {i} of {total}")
        lines.append(f"**File:** `{r.relative_path}` (lines {r.start_line}-{r.end_line})")
        lines.append(f"**Language:** {r.language} | **Score:** {r.score:.4f}")
        lines.append(f"```{safe_lang}")
        lines.append(r.content)
        lines.append("```")
        lines.append("")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "clamp_limit",
    "search_code",
    "format_compact_results",
    "format_search_results",
]
