# eidetic/ingestion/diff/executor.py
"""
Index executor.

Orchestrates the incremental indexing pipeline:
1. Scan files and hash them into the current snapshot
2. Diff against the stored snapshot (or index everything)
3. Delete vectors of removed and modified files
4. Split added and modified files
5. Embed and insert chunks in batches
6. Save the snapshot

Key responsibilities:
- Only write the snapshot after vectors are written
- Keep going past files that cannot be read or split (reported as parse failures)

index_files() runs steps 3 to 5 for an explicit list of files and patches
the stored snapshot for those files only.

This is the ONLY place where indexing writes happen (snapshot + vector index).
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Sequence, Tuple, Union

from eidetic.core.chunk import Chunk
from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import IndexingError, InvalidInputError
from eidetic.core.paths import normalize_path, path_to_collection_name
from eidetic.embedding.base import TextEmbedder
from eidetic.ingestion.chunking import build_splitter
from eidetic.ingestion.chunking.base import Splitter
from eidetic.ingestion.detection import classify_file_category
from eidetic.ingestion.hashing import compute_chunk_id
from eidetic.ingestion.state import Snapshot, SnapshotStore
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import INGEST
from eidetic.vector_db.types import CodeDocument, VectorIndex

from .differ import diff_snapshots
from .scanner import build_snapshot, extension_to_language, scan_files

logger = get_logger(__name__)

ProgressCallback = Callable[[int, str], None]

MAX_LISTED_FAILURES = 10


@dataclass
class IndexResult:
    """Summary of an index run."""

    total_files: int = 0
    total_chunks: int = 0
    added: int = 0
    modified: int = 0
    removed: int = 0
    skipped: int = 0
    estimated_tokens: int = 0
    estimated_cost_usd: float = 0.0
    duration_ms: int = 0
    parse_failures: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"files {self.total_files}, chunks {self.total_chunks}, "
            f"added {self.added}, modified {self.modified}, removed {self.removed}, "
            f"skipped {self.skipped}, parse failures {len(self.parse_failures)}"
        )


@dataclass
class CleanupResult:
    removed_files: List[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def total_removed(self) -> int:
        return len(self.removed_files)


@dataclass
class TargetedIndexResult:
    """Summary of re-indexing an explicit list of files."""

    processed_files: int = 0
    total_chunks: int = 0
    skipped_files: int = 0
    removed_files: List[str] = field(default_factory=list)
    parse_failures: List[str] = field(default_factory=list)
    duration_ms: int = 0

    def __str__(self) -> str:
        return (
            f"processed {self.processed_files}, chunks {self.total_chunks}, "
            f"skipped {self.skipped_files}, removed {len(self.removed_files)}, "
            f"parse failures {len(self.parse_failures)}"
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _progress(callback: Optional[ProgressCallback], pct: int, message: str) -> None:
    if callback is not None:
        callback(pct, message)


def _split_file(
    root: Path, relative_path: str, splitter: Splitter
) -> Tuple[List[Chunk], bool]:
    """Read and split one file. Returns (chunks, failed)."""
    try:
        text = (root / relative_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"{INGEST} Failed to read '{relative_path}': {e}")
        return [], True

    if not text.strip():
        return [], False

    language = extension_to_language(PurePosixPath(relative_path).suffix)
    chunks = splitter.split(text, language, relative_path)
    return chunks, not chunks


def _split_many(
    root: Path, relative_paths: List[str], splitter: Splitter, concurrency: int
) -> Tuple[List[Tuple[str, int, Chunk]], List[str]]:
    """Split files on a thread pool. Returns (rel, index-in-file, chunk) triples and failures."""
    documents: List[Tuple[str, int, Chunk]] = []
    failures: List[str] = []

    with ThreadPoolExecutor(max_workers=concurrency) as pool:
        split_results = pool.map(lambda rel: _split_file(root, rel, splitter), relative_paths)
        for rel, (chunks, failed) in zip(relative_paths, split_results):
            if failed:
                failures.append(rel)
            for i, chunk in enumerate(chunks):
                documents.append((rel, i, chunk))

    if failures:
        listed = ", ".join(failures[:MAX_LISTED_FAILURES])
        more = len(failures) - MAX_LISTED_FAILURES
        logger.warning(
            f"{INGEST} {len(failures)} file(s) produced no chunks: {listed}"
            + (f" (and {more} more)" if more > 0 else "")
        )
    return documents, failures


def _embed_and_insert(
    collection: str,
    documents: List[Tuple[str, int, Chunk]],
    hashes: Snapshot,
    embedder: TextEmbedder,
    index: VectorIndex,
    config: EideticConfig,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """Embed chunks in batches and insert them. Returns the number inserted."""
    batch_size = config.embedding_batch_size
    batches = [documents[i : i + batch_size] for i in range(0, len(documents), batch_size)]
    inserted = 0

    with ThreadPoolExecutor(max_workers=config.indexing_concurrency) as pool:
        futures = [
            pool.submit(embedder.embed_batch, [chunk.content for _, _, chunk in batch])
            for batch in batches
        ]
        for n, (batch, future) in enumerate(zip(batches, futures), start=1):
            _progress(
                on_progress,
                10 + round((n - 1) / len(batches) * 85),
                f"Embedding batch {n}/{len(batches)}...",
            )
            vectors = future.result()
            if len(vectors) != len(batch):
                raise IndexingError(
                    f"Embedding count mismatch: sent {len(batch)} texts, got {len(vectors)} vectors"
                )
            index.insert(
                collection,
                [
                    CodeDocument(
                        id=compute_chunk_id(rel, hashes[rel].content_hash, i),
                        content=chunk.content,
                        vector=vector,
                        relative_path=rel,
                        start_line=chunk.start_line,
                        end_line=chunk.end_line,
                        file_extension=PurePosixPath(rel).suffix,
                        language=chunk.language,
                        file_category=classify_file_category(rel),
                        symbol_name=chunk.symbol_name,
                        symbol_kind=chunk.symbol_kind,
                        symbol_signature=chunk.symbol_signature,
                        parent_symbol=chunk.parent_symbol,
                    )
                    for (rel, i, chunk), vector in zip(batch, vectors)
                ],
            )
            inserted += len(batch)
    return inserted


def index_codebase(
    root_path: Union[str, Path],
    embedder: TextEmbedder,
    index: VectorIndex,
    config: EideticConfig,
    force: bool = False,
    on_progress: Optional[ProgressCallback] = None,
) -> IndexResult:
    """
    Index (or incrementally re-index) a codebase.

    Args:
        root_path: Project root.
        embedder: Initialized embedder.
        index: Vector index to write into.
        config: Chunking, batching and data-dir settings.
        force: Drop the collection and index everything.
        on_progress: Optional callback receiving (percent, message).

    Raises:
        IndexingError: If no indexable files are found or the embedder
            returns the wrong number of vectors.
    """
    started = time.monotonic()
    normalized = normalize_path(root_path)
    root = Path(normalized)
    collection = path_to_collection_name(normalized)
    snapshots = SnapshotStore(config)

    _progress(on_progress, 0, "Scanning files...")
    file_paths = scan_files(root, config.custom_extensions, config.custom_ignore_patterns)
    if not file_paths:
        raise IndexingError(f"No indexable files found in {normalized}")

    current: Snapshot = build_snapshot(root, file_paths)
    result = IndexResult(total_files=len(file_paths))

    if force:
        _progress(on_progress, 5, "Dropping existing index...")
        index.drop_collection(collection)
        index.create_collection(collection, embedder.dimension)
        to_process = list(current)
        result.added = len(to_process)
    else:
        previous = snapshots.load(normalized)
        if previous is None or not index.has_collection(collection):
            logger.info(f"{INGEST} No usable index for {normalized}; indexing everything")
            index.drop_collection(collection)
            index.create_collection(collection, embedder.dimension)
            to_process = list(current)
            result.added = len(to_process)
        else:
            diff = diff_snapshots(previous, current)
            logger.info(f"{INGEST} {normalized}: {diff.summary}")
            result.added = len(diff.added)
            result.modified = len(diff.modified)
            result.removed = len(diff.removed)
            for rel in diff.stale:
                index.delete_by_path(collection, rel)
            to_process = list(diff.changed)

    result.skipped = len(current) - len(to_process)

    if not to_process:
        snapshots.save(normalized, current)
        result.duration_ms = _elapsed_ms(started)
        logger.info(f"{INGEST} Nothing to index in {normalized}: {result}")
        return result

    # Split
    _progress(on_progress, 10, f"Splitting {len(to_process)} files...")
    documents, result.parse_failures = _split_many(
        root, to_process, build_splitter(config), config.indexing_concurrency
    )

    if not documents:
        snapshots.save(normalized, current)
        result.duration_ms = _elapsed_ms(started)
        return result

    estimate = embedder.estimate_tokens([chunk.content for _, _, chunk in documents])
    result.estimated_tokens = estimate.estimated_tokens
    result.estimated_cost_usd = estimate.estimated_cost_usd
    logger.info(
        f"{INGEST} Indexing {len(to_process)} files -> {len(documents)} chunks -> "
        f"~{estimate.estimated_tokens} tokens (~${estimate.estimated_cost_usd:.4f})"
    )

    # Embed + insert
    result.total_chunks = _embed_and_insert(
        collection, documents, current, embedder, index, config, on_progress
    )

    _progress(on_progress, 98, "Saving snapshot...")
    snapshots.save(normalized, current)
    _progress(on_progress, 100, "Done")

    result.duration_ms = _elapsed_ms(started)
    logger.info(f"{INGEST} Indexed {normalized}: {result}")
    return result


def _relative_targets(relative_paths: Sequence[str]) -> List[str]:
    """Deduplicated POSIX paths, rejecting absolute ones and ones leaving the root."""
    targets: List[str] = []
    for raw in relative_paths:
        rel = PurePosixPath(str(raw).replace("\\", "/"))
        if not str(raw).strip() or rel.is_absolute() or ".." in rel.parts:
            raise InvalidInputError(f"Expected a path relative to the project root, got '{raw}'")
        posix = rel.as_posix()
        if posix not in targets:
            targets.append(posix)
    return targets


def index_files(
    root_path: Union[str, Path],
    relative_paths: Sequence[str],
    embedder: TextEmbedder,
    index: VectorIndex,
    config: EideticConfig,
    on_progress: Optional[ProgressCallback] = None,
) -> TargetedIndexResult:
    """
    Re-index named files of an already indexed project.

    Every target loses its old vectors first. Files still on disk are split,
    embedded and inserted again; files that no longer exist only lose their
    vectors. The stored snapshot, if any, is refreshed for exactly these
    files. A project without a collection is left alone.

    Raises:
        InvalidInputError: If a path is absolute or leaves the project root.
        IndexingError: If the embedder returns the wrong number of vectors.
    """
    started = time.monotonic()
    targets = _relative_targets(relative_paths)
    normalized = normalize_path(root_path)
    root = Path(normalized)
    collection = path_to_collection_name(normalized)
    result = TargetedIndexResult()

    if not index.has_collection(collection):
        logger.info(f"{INGEST} No collection for {normalized}; codebase not indexed, skipping")
        result.skipped_files = len(targets)
        result.duration_ms = _elapsed_ms(started)
        return result

    _progress(on_progress, 0, f"Removing stale vectors for {len(targets)} files...")
    present: List[str] = []
    for rel in targets:
        index.delete_by_path(collection, rel)
        if (root / rel).is_file():
            present.append(rel)
        else:
            result.removed_files.append(rel)
    result.skipped_files = len(result.removed_files)

    fresh = build_snapshot(root, present, on_error=result.parse_failures)
    readable = [rel for rel in present if rel in fresh]

    _progress(on_progress, 10, f"Splitting {len(readable)} files...")
    documents, failures = _split_many(
        root, readable, build_splitter(config), config.indexing_concurrency
    )
    result.parse_failures.extend(failures)
    result.processed_files = len(readable)

    if documents:
        result.total_chunks = _embed_and_insert(
            collection, documents, fresh, embedder, index, config, on_progress
        )

    snapshots = SnapshotStore(config)
    snapshot = snapshots.load(normalized)
    if snapshot is not None:
        _progress(on_progress, 98, "Updating snapshot...")
        snapshot.update(fresh)
        for rel in result.removed_files:
            snapshot.pop(rel, None)
        snapshots.save(normalized, snapshot)
    _progress(on_progress, 100, "Done")

    result.duration_ms = _elapsed_ms(started)
    logger.info(f"{INGEST} Re-indexed files in {normalized}: {result}")
    return result


def cleanup_vectors(
    root_path: Union[str, Path],
    index: VectorIndex,
    config: EideticConfig,
    on_progress: Optional[ProgressCallback] = None,
) -> CleanupResult:
    """
    Remove vectors of files deleted since the last index, without re-embedding.

    Raises:
        IndexingError: If the project has no snapshot.
    """
    started = time.monotonic()
    normalized = normalize_path(root_path)
    snapshots = SnapshotStore(config)

    previous = snapshots.load(normalized)
    if previous is None:
        raise IndexingError(
            f"No snapshot found for {normalized}. Index the codebase before running cleanup."
        )

    _progress(on_progress, 10, "Scanning files on disk...")
    file_paths = scan_files(normalized, config.custom_extensions, config.custom_ignore_patterns)
    current = build_snapshot(normalized, file_paths)
    removed = list(diff_snapshots(previous, current).removed)

    if not removed:
        _progress(on_progress, 100, "No removed files found.")
        return CleanupResult(duration_ms=_elapsed_ms(started))

    collection = path_to_collection_name(normalized)
    for n, rel in enumerate(removed):
        _progress(on_progress, 60 + round(n / len(removed) * 35), f"Deleting vectors for {rel}...")
        index.delete_by_path(collection, rel)

    gone = set(removed)
    remaining = {rel: entry for rel, entry in previous.items() if rel not in gone}
    snapshots.save(normalized, remaining)
    _progress(on_progress, 100, "Cleanup complete.")

    logger.info(f"{INGEST} Cleaned up {len(removed)} removed file(s) in {normalized}")
    return CleanupResult(removed_files=removed, duration_ms=_elapsed_ms(started))


__all__ = [
    "IndexResult",
    "CleanupResult",
    "TargetedIndexResult",
    "index_codebase",
    "index_files",
    "cleanup_vectors",
]
