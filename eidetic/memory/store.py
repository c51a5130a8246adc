# eidetic/memory/store.py
"""
Semantic memory store.

Facts live in their own collection of the VectorIndex, reusing the code
chunk payload fields:

    content        -> fact text (full-text search)
    relative_path  -> memory id (so delete_by_path removes one memory)
    file_extension -> category (so extension_filter filters by category)
    language       -> source

plus hash, memory, category, source, created_at and updated_at.

Write flow per fact:
    hash -> embed -> top-5 candidates -> reconcile -> ADD / UPDATE / skip
Every write is also logged to MemoryHistory.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import InvalidInputError, MemoryStoreError
from eidetic.embedding.base import TextEmbedder
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import MEMORY
from eidetic.memory.history import MemoryHistory
from eidetic.memory.models import (
    ExistingMatch,
    ExtractedFact,
    HistoryEntry,
    MemoryAction,
    MemoryEvent,
    MemoryItem,
    ReconcileAction,
)
from eidetic.memory.reconciler import hash_fact, reconcile
from eidetic.vector_db.types import HybridSearchParams, SearchResult, VectorIndex

logger = get_logger(__name__)

COLLECTION_NAME = "eidetic_memory"
SEARCH_CANDIDATES = 5
LIST_QUERY = "developer knowledge"


@runtime_checkable
class FactExtractor(Protocol):
    """Turns free text into discrete facts (usually an LLM call)."""

    def extract(self, content: str) -> List[ExtractedFact]: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _payload_to_item(memory_id: str, payload: Dict[str, Any]) -> MemoryItem:
    return MemoryItem(
        id=memory_id,
        memory=str(payload.get("memory", payload.get("content", ""))),
        hash=str(payload.get("hash", "")),
        category=str(payload.get("category", "")),
        source=str(payload.get("source", "")),
        created_at=str(payload.get("created_at", "")),
        updated_at=str(payload.get("updated_at", "")),
    )


class MemoryStore:
    """
    Add, search, list and delete reconciled facts.

    Usage:
        store = MemoryStore(embedder, index, config, history, extractor=my_llm)
        actions = store.add_memory("We deploy with fly.io and use pnpm", source="chat")
        store.search_memory("package manager")
    """

    def __init__(
        self,
        embedder: TextEmbedder,
        index: VectorIndex,
        config: EideticConfig,
        history: MemoryHistory,
        extractor: Optional[FactExtractor] = None,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._config = config
        self._history = history
        self._extractor = extractor
        self._collection_ready = False

    def _ensure_collection(self) -> None:
        if self._collection_ready:
            return
        if not self._index.has_collection(COLLECTION_NAME):
            self._index.create_collection(COLLECTION_NAME, self._embedder.dimension)
        self._collection_ready = True

    # -------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------

    def add_memory(self, content: str, source: Optional[str] = None) -> List[MemoryAction]:
        """
        Extract facts from free text and store them.

        Raises:
            MemoryStoreError: If no FactExtractor was configured.
            InvalidInputError: If content is blank.
        """
        if self._extractor is None:
            raise MemoryStoreError("add_memory requires a FactExtractor; use add_facts instead")
        if not content or not content.strip():
            raise InvalidInputError("Memory content must not be empty")

        facts = self._extractor.extract(content)
        logger.debug(f"{MEMORY} Extracted {len(facts)} fact(s)")
        return self.add_facts(facts, source=source)

    def add_facts(
        self, facts: Iterable[ExtractedFact], source: Optional[str] = None
    ) -> List[MemoryAction]:
        """Reconcile and store already-extracted facts. Known facts yield no action."""
        self._ensure_collection()
        actions: List[MemoryAction] = []
        for fact in facts:
            action = self._process_fact(fact, source)
            if action is not None:
                actions.append(action)
        return actions

    def _candidates(self, vector: List[float], text: str) -> List[ExistingMatch]:
        hits = self._index.search(
            COLLECTION_NAME,
            HybridSearchParams(query_vector=vector, query_text=text, limit=SEARCH_CANDIDATES),
        )
        candidates: List[ExistingMatch] = []
        for hit in hits:
            memory_id = hit.relative_path
            if not memory_id:
                continue
            point = self._index.get_by_id(COLLECTION_NAME, memory_id)
            if point is None:
                continue
            candidates.append(
                ExistingMatch(
                    id=memory_id,
                    text=hit.content,
                    hash=str(point.payload.get("hash", "")),
                    vector=point.vector,
                    score=hit.score,
                )
            )
        return candidates

    def _process_fact(self, fact: ExtractedFact, source: Optional[str]) -> Optional[MemoryAction]:
        fact_hash = hash_fact(fact.fact)
        vector = self._embedder.embed(fact.fact)

        decision = reconcile(
            fact_hash,
            vector,
            self._candidates(vector, fact.fact),
            threshold=self._config.similarity_threshold,
        )

        if decision.action == ReconcileAction.NONE:
            logger.debug(f"{MEMORY} Skipping known fact (matches {decision.existing_id})")
            return None

        now = _now()
        if decision.action == ReconcileAction.UPDATE and decision.existing_id:
            memory_id = decision.existing_id
            existing = self._index.get_by_id(COLLECTION_NAME, memory_id)
            created_at = str(existing.payload.get("created_at", now)) if existing else now
            event = MemoryEvent.UPDATE
            previous = decision.existing_text
        else:
            memory_id = str(uuid.uuid4())
            created_at = now
            event = MemoryEvent.ADD
            previous = None

        self._index.update_point(
            COLLECTION_NAME,
            memory_id,
            vector,
            {
                "content": fact.fact,
                "relative_path": memory_id,
                "file_extension": fact.category,
                "language": source or "",
                "start_line": 0,
                "end_line": 0,
                "hash": fact_hash,
                "memory": fact.fact,
                "category": fact.category,
                "source": source or "",
                "created_at": created_at,
                "updated_at": now,
            },
        )
        self._history.log(
            memory_id,
            event,
            fact.fact,
            previous_value=previous,
            source=source,
            updated_at=now if event == MemoryEvent.UPDATE else None,
        )
        logger.info(f"{MEMORY} {event.value} {memory_id}: {fact.fact}")

        return MemoryAction(
            event=event,
            id=memory_id,
            memory=fact.fact,
            previous=previous,
            category=fact.category,
            source=source,
        )

    def delete_memory(self, memory_id: str) -> bool:
        """Delete one memory. Returns False if it does not exist."""
        if not memory_id:
            raise InvalidInputError("memory_id must not be empty")
        self._ensure_collection()

        existing = self._index.get_by_id(COLLECTION_NAME, memory_id)
        if existing is None:
            return False

        previous = str(existing.payload.get("memory", existing.payload.get("content", "")))
        self._index.delete_by_path(COLLECTION_NAME, memory_id)
        self._history.log(memory_id, MemoryEvent.DELETE, None, previous_value=previous)
        logger.info(f"{MEMORY} DELETE {memory_id}")
        return True

    # -------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------

    def _items(self, hits: List[SearchResult]) -> List[MemoryItem]:
        items: List[MemoryItem] = []
        for hit in hits:
            point = self._index.get_by_id(COLLECTION_NAME, hit.relative_path)
            if point is None:
                continue
            items.append(_payload_to_item(hit.relative_path, point.payload))
        return items

    def search_memory(
        self, query: str, limit: int = 10, category: Optional[str] = None
    ) -> List[MemoryItem]:
        if not query or not query.strip():
            raise InvalidInputError("Memory query must not be empty")
        if limit < 1:
            raise InvalidInputError(f"limit must be >= 1, got {limit}")
        self._ensure_collection()

        hits = self._index.search(
            COLLECTION_NAME,
            HybridSearchParams(
                query_vector=self._embedder.embed(query),
                query_text=query,
                limit=limit,
                extension_filter=[category] if category else None,
            ),
        )
        return self._items(hits)

    def list_memories(self, category: Optional[str] = None, limit: int = 50) -> List[MemoryItem]:
        if limit < 1:
            raise InvalidInputError(f"limit must be >= 1, got {limit}")
        self._ensure_collection()

        hits = self._index.search(
            COLLECTION_NAME,
            HybridSearchParams(
                query_vector=self._embedder.embed(LIST_QUERY),
                query_text="",
                limit=limit,
                extension_filter=[category] if category else None,
            ),
        )
        return self._items(hits)

    def get_history(self, memory_id: str) -> List[HistoryEntry]:
        return self._history.get_history(memory_id)


__all__ = ["COLLECTION_NAME", "FactExtractor", "MemoryStore"]
