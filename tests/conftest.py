# tests/conftest.py
"""
Root conftest - shared fakes and fixtures.

Test Tiers:
- tier1: pure logic, no I/O
         Run: pytest -m tier1
- tier2: filesystem / sqlite / in-process fakes, no network
         Run: pytest -m "tier1 or tier2"

Feature Markers:
- treesitter: needs tree-sitter grammars from tree-sitter-language-pack
- qdrant: needs qdrant-client local mode
"""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from eidetic.core.config import EideticConfig
from eidetic.embedding.base import TokenEstimate
from eidetic.vector_db.memory import InMemoryVectorIndex


class FakeEmbedder:
    """
    Deterministic bag-of-words embedder.

    Each word is hashed into one of `dimension` buckets, so texts sharing
    words point in similar directions. Explicit vectors can be pinned per
    text for tests that need exact similarities.
    """

    def __init__(self, dimension: int = 16, pinned: Optional[Dict[str, List[float]]] = None):
        self._dimension = dimension
        self.pinned = dict(pinned or {})
        self.batch_calls: List[List[str]] = []
        self.initialized = False

    @property
    def dimension(self) -> int:
        return self._dimension

    def initialize(self) -> None:
        self.initialized = True

    def _vector(self, text: str) -> List[float]:
        if text in self.pinned:
            return list(self.pinned[text])
        vec = [0.0] * self._dimension
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self._dimension
            vec[bucket] += 1.0
        return vec

    def embed(self, text: str) -> List[float]:
        return self._vector(text)

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.batch_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def estimate_tokens(self, texts: List[str]) -> TokenEstimate:
        total = sum(len(t) for t in texts)
        return TokenEstimate(
            total_chars=total, estimated_tokens=math.ceil(total / 4), estimated_cost_usd=0.0
        )


@pytest.fixture
def embedder() -> FakeEmbedder:
    e = FakeEmbedder()
    e.initialize()
    return e


@pytest.fixture
def index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()


@pytest.fixture
def config(tmp_path: Path) -> EideticConfig:
    """Small windows and a throwaway data dir."""
    return EideticConfig(
        chunk_lines=10,
        overlap_lines=2,
        max_chunk_chars=500,
        embedding_batch_size=4,
        indexing_concurrency=2,
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project root, separate from the data dir."""
    root = tmp_path / "project"
    root.mkdir()
    return root


def write_lines(path: Path, count: int, prefix: str = "line") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(f"{prefix} {i}" for i in range(1, count + 1)), encoding="utf-8")
    return path
