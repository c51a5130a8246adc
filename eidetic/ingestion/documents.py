# eidetic/ingestion/documents.py
"""
Caching of external library documentation.

Each library gets its own collection (see doc_collection_name); a document is
identified inside it by its source (URL or path), which takes the place of a
relative path in the chunk payload. Re-indexing the same source replaces its
chunks. Every indexed document is recorded in the doc metadata file together
with its TTL.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone

from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import IndexingError
from eidetic.core.paths import doc_collection_name
from eidetic.embedding.base import TextEmbedder
from eidetic.ingestion.chunking import LineWindowSplitter
from eidetic.ingestion.hashing import compute_chunk_id, compute_text_hash
from eidetic.ingestion.state.documents import DEFAULT_TTL_DAYS, DocEntry, DocMetadataStore
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import INGEST
from eidetic.vector_db.types import CodeDocument, VectorIndex

logger = get_logger(__name__)

DOC_LANGUAGE = "markdown"
DOC_EXTENSION = ".md"


@dataclass
class DocIndexResult:
    library: str
    topic: str
    source: str
    collection_name: str
    total_chunks: int = 0
    estimated_tokens: int = 0
    duration_ms: int = 0


def index_document(
    content: str,
    source: str,
    library: str,
    topic: str,
    embedder: TextEmbedder,
    index: VectorIndex,
    config: EideticConfig,
    ttl_days: float = DEFAULT_TTL_DAYS,
) -> DocIndexResult:
    """
    Split, embed and store one documentation page.

    Args:
        content: Document text (usually markdown).
        source: URL or path the text came from; identifies the document.
        library: Library the document belongs to; selects the collection.
        topic: Free-form topic, recorded in the metadata.
        ttl_days: Days after which searches flag the document as stale.

    Raises:
        IndexingError: If content, source, library or topic is empty, or the
            embedder returns the wrong number of vectors.
    """
    started = time.monotonic()

    if not content or not content.strip():
        raise IndexingError("Document content is empty.")
    for name, value in (("source", source), ("library", library), ("topic", topic)):
        if not value or not value.strip():
            raise IndexingError(f"Document {name} is required.")

    collection = doc_collection_name(library)
    splitter = LineWindowSplitter(
        chunk_lines=config.chunk_lines,
        overlap_lines=config.overlap_lines,
        max_chunk_chars=config.max_chunk_chars,
    )
    chunks = splitter.split(content, DOC_LANGUAGE, source)
    if not chunks:
        raise IndexingError("Document produced no chunks after splitting.")

    if not index.has_collection(collection):
        index.create_collection(collection, embedder.dimension)
    index.delete_by_path(collection, source)

    content_hash = compute_text_hash(content)
    estimate = embedder.estimate_tokens([chunk.content for chunk in chunks])
    batch_size = config.embedding_batch_size
    total_chunks = 0

    for offset in range(0, len(chunks), batch_size):
        batch = chunks[offset : offset + batch_size]
        vectors = embedder.embed_batch([chunk.content for chunk in batch])
        if len(vectors) != len(batch):
            raise IndexingError(
                f"Embedding count mismatch: sent {len(batch)} texts, got {len(vectors)} vectors"
            )
        index.insert(
            collection,
            [
                CodeDocument(
                    id=compute_chunk_id(source, content_hash, offset + i),
                    content=chunk.content,
                    vector=vector,
                    relative_path=source,
                    start_line=chunk.start_line,
                    end_line=chunk.end_line,
                    file_extension=DOC_EXTENSION,
                    language=DOC_LANGUAGE,
                    file_category="doc",
                )
                for i, (chunk, vector) in enumerate(zip(batch, vectors))
            ],
        )
        total_chunks += len(batch)

    DocMetadataStore(config).upsert(
        DocEntry(
            library=library,
            topic=topic,
            source=source,
            collection_name=collection,
            indexed_at=datetime.now(timezone.utc).isoformat(),
            ttl_days=ttl_days,
            total_chunks=total_chunks,
        )
    )

    result = DocIndexResult(
        library=library,
        topic=topic,
        source=source,
        collection_name=collection,
        total_chunks=total_chunks,
        estimated_tokens=estimate.estimated_tokens,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    logger.info(
        f"{INGEST} Indexed doc '{library}::{topic}' from {source}: "
        f"{total_chunks} chunks into {collection}"
    )
    return result


__all__ = ["DocIndexResult", "index_document"]
