# eidetic/ingestion/state/schema.py
"""
Snapshot schema.

On disk a snapshot is a JSON object mapping relative path to an entry:

    {"src/app.py": {"contentHash": "sha256:..."}, ...}

Key concepts:
- One entry per tracked file; absence means untracked or deleted
- The vector store is what gets searched; the snapshot only decides what to reprocess
- parse_snapshot(serialize_snapshot(s)) == s
"""

from __future__ import annotations

import json
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class FileEntry(BaseModel):
    """Per-file tracking entry."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    content_hash: str = Field(..., alias="contentHash", min_length=1)


Snapshot = Dict[str, FileEntry]

_SNAPSHOT_ADAPTER: TypeAdapter[Dict[str, FileEntry]] = TypeAdapter(Dict[str, FileEntry])


def parse_snapshot(raw: str) -> Snapshot:
    """
    Parse persisted snapshot JSON.

    Raises:
        pydantic.ValidationError: If the JSON is malformed or has the wrong shape
    """
    return _SNAPSHOT_ADAPTER.validate_json(raw)


def serialize_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to the persisted JSON format (keys kept in insertion order)."""
    return json.dumps(
        {path: entry.model_dump(by_alias=True) for path, entry in snapshot.items()},
        ensure_ascii=False,
    )


__all__ = ["FileEntry", "Snapshot", "parse_snapshot", "serialize_snapshot"]
