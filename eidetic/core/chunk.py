# eidetic/core/chunk.py
"""
Chunk - the unit of embedding and retrieval.

A chunk is a bounded, contiguous slice of one file's content with 1-based,
inclusive line bounds. Chunks are produced per split call and never persisted
directly; only the vectors and payload derived from them are stored.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Chunk(BaseModel):
    """
    Canonical chunk model.

    Invariants:
    - 1 <= start_line <= end_line
    - content is not blank

    The character cap is a splitter responsibility (it depends on config),
    so it is not validated here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    content: str = Field(..., description="Chunk text")
    start_line: int = Field(..., ge=1, description="First line (1-based, inclusive)")
    end_line: int = Field(..., ge=1, description="Last line (1-based, inclusive)")
    language: str = Field(..., description="Language name, e.g. 'python'")
    file_path: str = Field(..., description="Path relative to the project root")
    symbol_name: Optional[str] = Field(default=None, description="Declared identifier")
    symbol_kind: Optional[str] = Field(default=None, description="function, class, method, ...")
    symbol_signature: Optional[str] = Field(default=None, description="Bounded signature line")
    parent_symbol: Optional[str] = Field(default=None, description="Enclosing container name")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("chunk content must not be blank")
        return v

    @model_validator(mode="after")
    def lines_ordered(self) -> "Chunk":
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line ({self.start_line}) must be <= end_line ({self.end_line})"
            )
        return self

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


__all__ = ["Chunk"]
