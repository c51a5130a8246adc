# eidetic/vector_db/qdrant.py
"""
Qdrant-backed VectorIndex.

Each collection holds one named dense vector ("dense", cosine distance) and
payload indexes for full-text search over content plus keyword filters on
path, extension and category. Search fuses the dense ranking with a
full-text scroll (see fusion.py).

Every client failure is logged and re-raised as VectorDBError.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from qdrant_client import QdrantClient
from qdrant_client import models

from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import VectorDBError
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import VECTOR_DB
from eidetic.vector_db.fusion import rank_by_term_frequency, reciprocal_rank_fusion
from eidetic.vector_db.types import (
    CodeDocument,
    HybridSearchParams,
    ScoredPoint,
    SearchResult,
    StoredPoint,
    SymbolEntry,
    symbol_from_payload,
)

logger = get_logger(__name__)

DENSE_VECTOR = "dense"
UPSERT_BATCH_SIZE = 100
SCROLL_PAGE_SIZE = 256

KEYWORD_FIELDS = ("relative_path", "file_extension", "file_category")


class QdrantVectorIndex:
    """
    VectorIndex over qdrant-client.

    Usage:
        index = QdrantVectorIndex.from_config(config)
        index = QdrantVectorIndex(client=QdrantClient(location=":memory:"))
    """

    plugin_name = "qdrant"

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        client: Optional[QdrantClient] = None,
    ) -> None:
        if client is None:
            logger.info(
                f"{VECTOR_DB} Initializing QdrantClient: url={url}, "
                f"api_key={'***' if api_key else '<none>'}"
            )
            client = QdrantClient(url=url, api_key=api_key)
        self._client = client

    @classmethod
    def from_config(cls, config: EideticConfig) -> "QdrantVectorIndex":
        return cls(url=config.qdrant_url, api_key=config.qdrant_api_key)

    # -------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------

    def create_collection(self, name: str, dimension: int) -> None:
        logger.info(f"{VECTOR_DB} Creating collection '{name}' (dim={dimension})")
        try:
            self._client.create_collection(
                collection_name=name,
                vectors_config={
                    DENSE_VECTOR: models.VectorParams(size=dimension, distance=models.Distance.COSINE)
                },
            )
            self._client.create_payload_index(
                collection_name=name,
                field_name="content",
                field_schema=models.PayloadSchemaType.TEXT,
                wait=True,
            )
            for field_name in KEYWORD_FIELDS:
                self._client.create_payload_index(
                    collection_name=name,
                    field_name=field_name,
                    field_schema=models.PayloadSchemaType.KEYWORD,
                    wait=True,
                )
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed creating collection '{name}': {e}")
            raise VectorDBError(f"Failed to create collection '{name}'") from e

    def has_collection(self, name: str) -> bool:
        try:
            return bool(self._client.collection_exists(collection_name=name))
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed checking collection '{name}': {e}")
            raise VectorDBError(f"Failed to check collection '{name}'") from e

    def drop_collection(self, name: str) -> None:
        try:
            if self._client.collection_exists(collection_name=name):
                logger.info(f"{VECTOR_DB} Deleting collection '{name}'")
                self._client.delete_collection(collection_name=name)
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed dropping collection '{name}': {e}")
            raise VectorDBError(f"Failed to drop collection '{name}'") from e

    # -------------------------------------------------------------
    # Points
    # -------------------------------------------------------------

    def insert(self, name: str, documents: List[CodeDocument]) -> None:
        if not documents:
            return
        try:
            for i in range(0, len(documents), UPSERT_BATCH_SIZE):
                batch = documents[i : i + UPSERT_BATCH_SIZE]
                self._client.upsert(
                    collection_name=name,
                    points=[
                        models.PointStruct(
                            id=doc.id,
                            vector={DENSE_VECTOR: list(doc.vector)},
                            payload=doc.to_payload(),
                        )
                        for doc in batch
                    ],
                    wait=True,
                )
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed inserting into '{name}': {e}")
            raise VectorDBError(
                f"Failed to insert {len(documents)} documents into '{name}'"
            ) from e
        logger.debug(f"{VECTOR_DB} Upserted {len(documents)} points into '{name}'")

    def search(self, name: str, params: HybridSearchParams) -> List[SearchResult]:
        fetch_limit = params.limit * 2
        conditions: List[Any] = []
        if params.extension_filter:
            conditions.append(
                models.FieldCondition(
                    key="file_extension", match=models.MatchAny(any=list(params.extension_filter))
                )
            )

        try:
            response = self._client.query_points(
                collection_name=name,
                query=list(params.query_vector),
                using=DENSE_VECTOR,
                limit=fetch_limit,
                with_payload=True,
                query_filter=models.Filter(must=conditions) if conditions else None,
            )
            dense = [
                ScoredPoint(id=str(p.id), payload=dict(p.payload or {}), score=float(p.score))
                for p in response.points
            ]

            text: List[ScoredPoint] = []
            if params.query_text.strip():
                text_filter = models.Filter(
                    must=[
                        models.FieldCondition(
                            key="content", match=models.MatchText(text=params.query_text)
                        ),
                        *conditions,
                    ]
                )
                records, _ = self._client.scroll(
                    collection_name=name,
                    scroll_filter=text_filter,
                    limit=fetch_limit,
                    with_payload=True,
                )
                text = [
                    ScoredPoint(id=str(r.id), payload=dict(r.payload or {}), score=0.0)
                    for r in records
                ]
        except Exception as e:
            logger.error(f"{VECTOR_DB} Search failed in '{name}': {e}")
            raise VectorDBError(f"Search failed in collection '{name}'") from e

        return reciprocal_rank_fusion(
            dense, rank_by_term_frequency(text, params.query_text), params.limit
        )

    def get_by_id(self, name: str, point_id: str) -> Optional[StoredPoint]:
        try:
            records = self._client.retrieve(
                collection_name=name, ids=[point_id], with_payload=True, with_vectors=True
            )
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed retrieving '{point_id}' from '{name}': {e}")
            raise VectorDBError(f"Failed to retrieve point '{point_id}' from '{name}'") from e

        if not records:
            return None
        record = records[0]
        vectors = record.vector
        if isinstance(vectors, dict):
            vector = list(vectors.get(DENSE_VECTOR) or [])
        else:
            vector = list(vectors or [])
        return StoredPoint(id=str(record.id), vector=vector, payload=dict(record.payload or {}))

    def update_point(
        self, name: str, point_id: str, vector: List[float], payload: Dict[str, Any]
    ) -> None:
        try:
            self._client.upsert(
                collection_name=name,
                points=[
                    models.PointStruct(
                        id=point_id, vector={DENSE_VECTOR: list(vector)}, payload=payload
                    )
                ],
                wait=True,
            )
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed updating '{point_id}' in '{name}': {e}")
            raise VectorDBError(f"Failed to update point '{point_id}' in '{name}'") from e

    def delete_by_path(self, name: str, relative_path: str) -> None:
        try:
            self._client.delete(
                collection_name=name,
                points_selector=models.FilterSelector(
                    filter=models.Filter(
                        must=[
                            models.FieldCondition(
                                key="relative_path", match=models.MatchValue(value=relative_path)
                            )
                        ]
                    )
                ),
                wait=True,
            )
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed deleting '{relative_path}' from '{name}': {e}")
            raise VectorDBError(
                f"Failed to delete documents for path '{relative_path}' from '{name}'"
            ) from e

    def list_symbols(self, name: str) -> List[SymbolEntry]:
        symbol_filter = models.Filter(
            must_not=[models.IsEmptyCondition(is_empty=models.PayloadField(key="symbol_name"))]
        )
        entries: List[SymbolEntry] = []
        offset = None
        try:
            while True:
                records, offset = self._client.scroll(
                    collection_name=name,
                    scroll_filter=symbol_filter,
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
                for record in records:
                    entry = symbol_from_payload(dict(record.payload or {}))
                    if entry is not None:
                        entries.append(entry)
                if offset is None:
                    break
        except Exception as e:
            logger.error(f"{VECTOR_DB} Failed listing symbols in '{name}': {e}")
            raise VectorDBError(f"Failed to list symbols in '{name}'") from e
        return entries


__all__ = ["QdrantVectorIndex", "DENSE_VECTOR"]
