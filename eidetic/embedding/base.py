# eidetic/embedding/base.py
"""TextEmbedder protocol and token estimates."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from pydantic import BaseModel


class TokenEstimate(BaseModel):
    total_chars: int
    estimated_tokens: int
    estimated_cost_usd: float


@runtime_checkable
class TextEmbedder(Protocol):
    """
    Text -> fixed-size vector.

    initialize() must be called once before embed/embed_batch; it queries the
    provider and fixes `dimension`.
    """

    @property
    def dimension(self) -> int: ...

    def initialize(self) -> None: ...

    def embed(self, text: str) -> List[float]: ...

    def embed_batch(self, texts: List[str]) -> List[List[float]]: ...

    def estimate_tokens(self, texts: List[str]) -> TokenEstimate: ...


__all__ = ["TextEmbedder", "TokenEstimate"]
