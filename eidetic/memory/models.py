# eidetic/memory/models.py
"""
Data models for semantic memory.

A memory is one short fact extracted from free text. Facts are reconciled
against stored ones before being written (see reconciler.py), and every
write is recorded in the history table.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReconcileAction(str, Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    NONE = "NONE"


class MemoryEvent(str, Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ExistingMatch(BaseModel):
    """A stored fact considered as a reconciliation candidate."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    hash: str
    vector: List[float] = Field(default_factory=list)
    score: float = 0.0


class ReconcileResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: ReconcileAction
    existing_id: Optional[str] = None
    existing_text: Optional[str] = None


class ExtractedFact(BaseModel):
    """A fact produced by a FactExtractor."""

    fact: str
    category: str = "general"
    project: Optional[str] = None

    @field_validator("fact")
    @classmethod
    def fact_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("fact must not be blank")
        return v.strip()


class MemoryItem(BaseModel):
    id: str
    memory: str
    hash: str = ""
    category: str = ""
    source: str = ""
    created_at: str = ""
    updated_at: str = ""


class MemoryAction(BaseModel):
    """What a write did: the event, the affected id, and the text before/after."""

    event: MemoryEvent
    id: str
    memory: str
    previous: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None


class HistoryEntry(BaseModel):
    id: int
    memory_id: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    event: MemoryEvent
    created_at: str
    updated_at: Optional[str] = None
    source: Optional[str] = None


__all__ = [
    "ReconcileAction",
    "MemoryEvent",
    "ExistingMatch",
    "ReconcileResult",
    "ExtractedFact",
    "MemoryItem",
    "MemoryAction",
    "HistoryEntry",
]
