# eidetic/ingestion/state/documents.py
"""
Metadata for cached library documentation.

One JSON file at {data_dir}/docs/metadata.json, keyed by "library::topic"
(lower-cased):

    {"react::hooks": {"library": "react", "topic": "hooks", "source": "...",
                      "collectionName": "eidetic_doc_react", "indexedAt": "...",
                      "ttlDays": 7, "totalChunks": 12}}

Entries older than their TTL are reported as stale, never deleted here.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from eidetic.core.config import EideticConfig
from eidetic.core.paths import EideticPaths
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import STATE

logger = get_logger(__name__)

DEFAULT_TTL_DAYS = 7


class DocEntry(BaseModel):
    """One indexed document (library + topic)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    library: str
    topic: str
    source: str
    collection_name: str = Field(..., alias="collectionName")
    indexed_at: str = Field(..., alias="indexedAt")
    ttl_days: float = Field(default=DEFAULT_TTL_DAYS, alias="ttlDays", ge=0)
    total_chunks: int = Field(default=0, alias="totalChunks", ge=0)

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """True once more than ttl_days have passed since indexed_at."""
        indexed = datetime.fromisoformat(self.indexed_at)
        if indexed.tzinfo is None:
            indexed = indexed.replace(tzinfo=timezone.utc)
        current = now or datetime.now(timezone.utc)
        return current - indexed > timedelta(days=self.ttl_days)


DocMetadata = Dict[str, DocEntry]

_METADATA_ADAPTER: TypeAdapter[Dict[str, DocEntry]] = TypeAdapter(Dict[str, DocEntry])


def doc_key(library: str, topic: str) -> str:
    return f"{library.lower()}::{topic.lower()}"


class DocMetadataStore:
    """
    Reads and writes the documentation metadata file.

    Usage:
        store = DocMetadataStore(config)
        store.upsert(entry)
        store.find("react")
    """

    def __init__(self, config: EideticConfig) -> None:
        self._path = EideticPaths(config).doc_metadata_file()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DocMetadata:
        """All entries; a missing or malformed file counts as empty."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"{STATE} Unreadable doc metadata at {self._path}, ignoring: {e}")
            return {}

        try:
            return _METADATA_ADAPTER.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                f"{STATE} Corrupted doc metadata at {self._path}, ignoring "
                f"({e.error_count()} validation error(s))"
            )
            return {}

    def save(self, metadata: DocMetadata) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: entry.model_dump(by_alias=True) for key, entry in metadata.items()}

        temp_path = self._path.with_suffix(".tmp")
        try:
            temp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
            temp_path.replace(self._path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def upsert(self, entry: DocEntry) -> None:
        metadata = self.load()
        metadata[doc_key(entry.library, entry.topic)] = entry
        self.save(metadata)
        logger.debug(f"{STATE} Recorded doc '{entry.library}::{entry.topic}'")

    def remove(self, library: str, topic: str) -> bool:
        """Drop one entry. Returns False if it was not recorded."""
        metadata = self.load()
        if metadata.pop(doc_key(library, topic), None) is None:
            return False
        self.save(metadata)
        return True

    def find(self, library: str) -> List[DocEntry]:
        prefix = f"{library.lower()}::"
        return [entry for key, entry in self.load().items() if key.startswith(prefix)]

    def list_libraries(self) -> List[str]:
        return sorted({entry.library for entry in self.load().values()})


__all__ = ["DEFAULT_TTL_DAYS", "DocEntry", "DocMetadata", "DocMetadataStore", "doc_key"]
