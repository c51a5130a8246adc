# eidetic/retrieval/documents.py
"""
Search over cached library documentation.

Searches one library's collection, or every collection named in the doc
metadata, and tags each hit with the library, topic and staleness of the
document it came from.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import InvalidInputError, SearchError
from eidetic.core.paths import doc_collection_name
from eidetic.embedding.base import TextEmbedder
from eidetic.ingestion.state.documents import DocEntry, DocMetadataStore
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import RETRIEVER
from eidetic.retrieval.dedupe import dedupe_results
from eidetic.vector_db.types import HybridSearchParams, SearchResult, VectorIndex

logger = get_logger(__name__)

DEFAULT_LIMIT = 5
MAX_LIMIT = 20
OVERFETCH_FACTOR = 3
UNKNOWN = "unknown"


class DocSearchResult(SearchResult):
    """A documentation hit; source is the document's URL or path."""

    library: str = UNKNOWN
    topic: str = UNKNOWN
    source: str = ""
    stale: bool = False


def _collections_to_search(
    store: DocMetadataStore, library: Optional[str]
) -> Dict[str, List[DocEntry]]:
    by_collection: Dict[str, List[DocEntry]] = {}

    if library:
        collection = doc_collection_name(library)
        entries = [e for e in store.load().values() if e.collection_name == collection]
        if not entries:
            raise SearchError(
                f"No cached documentation found for library '{library}'. "
                "Index documentation for it first."
            )
        by_collection[collection] = entries
        return by_collection

    for entry in store.load().values():
        by_collection.setdefault(entry.collection_name, []).append(entry)
    if not by_collection:
        raise SearchError("No cached documentation found. Index documentation first.")
    return by_collection


def search_documents(
    query: str,
    embedder: TextEmbedder,
    index: VectorIndex,
    config: EideticConfig,
    library: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[DocSearchResult]:
    """
    Search cached documentation, optionally restricted to one library.

    limit defaults to 5 and is clamped into [1, 20]. Collections recorded in
    the metadata but missing from the index are skipped.

    Raises:
        InvalidInputError: If query is blank.
        SearchError: If no documentation (for the library) has been indexed.
    """
    if not query or not query.strip():
        raise InvalidInputError("Search query must not be empty")

    final_limit = DEFAULT_LIMIT if limit is None else min(max(1, limit), MAX_LIMIT)
    fetch_limit = min(final_limit * OVERFETCH_FACTOR, MAX_LIMIT)
    collections = _collections_to_search(DocMetadataStore(config), library)

    query_vector = embedder.embed(query)
    hits: List[DocSearchResult] = []

    for collection, entries in collections.items():
        if not index.has_collection(collection):
            logger.warning(f"{RETRIEVER} Doc collection '{collection}' is missing, skipping")
            continue
        by_source = {entry.source: entry for entry in entries}
        results = index.search(
            collection,
            HybridSearchParams(query_vector=query_vector, query_text=query, limit=fetch_limit),
        )
        for result in results:
            entry = by_source.get(result.relative_path)
            hits.append(
                DocSearchResult(
                    **result.model_dump(),
                    library=entry.library if entry else UNKNOWN,
                    topic=entry.topic if entry else UNKNOWN,
                    source=result.relative_path,
                    stale=entry.is_stale() if entry else False,
                )
            )

    deduped = dedupe_results(hits, final_limit)
    logger.debug(
        f"{RETRIEVER} docs '{query}' over {len(collections)} collection(s): "
        f"{len(hits)} hits -> {len(deduped)} after dedupe"
    )
    return deduped


__all__ = ["DocSearchResult", "search_documents"]
