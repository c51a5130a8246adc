# eidetic/embedding/openai.py
"""
Embedder for OpenAI-compatible /embeddings endpoints.

Serves OpenAI itself, Ollama's /v1 API, and local servers (LM Studio, vLLM,
LocalAI) that speak the same protocol.

Behaviour:
- initialize() calls the endpoint once and fixes the vector dimension
- blank texts get zero vectors without an API call
- vectors are cached in memory by content hash (bounded, oldest evicted)
- 429 and 5xx responses are retried with backoff; a 429 halves the batch
- inputs longer than MAX_EMBED_CHARS are cut at the last newline before it
"""

from __future__ import annotations

import hashlib
import math
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

import httpx

from eidetic.core.config import EideticConfig
from eidetic.core.exceptions import EmbeddingError
from eidetic.core.http import (
    APIError,
    RateLimitError,
    create_api_client,
    handle_api_error,
    raise_for_status,
)
from eidetic.embedding.base import TokenEstimate
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import EMBEDDING

logger = get_logger(__name__)

MAX_EMBED_CHARS = 6000
RETRY_DELAYS = (1.0, 4.0, 16.0)
RETRYABLE_STATUS = frozenset({429, 500, 502, 503})
MAX_RETRY_AFTER = 60.0
MAX_MEMORY_CACHE_SIZE = 10_000

# USD per million tokens; unknown and local models are free
COST_PER_MILLION = {
    "text-embedding-3-small": 0.02,
    "text-embedding-3-large": 0.13,
    "text-embedding-ada-002": 0.1,
}


def truncate_to_safe_length(text: str) -> str:
    """Cut text to MAX_EMBED_CHARS, preferring the last newline boundary."""
    if len(text) <= MAX_EMBED_CHARS:
        return text
    truncated = text[:MAX_EMBED_CHARS]
    last_newline = truncated.rfind("\n")
    return truncated[:last_newline] if last_newline > 0 else truncated


def _content_key(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


class OpenAIEmbedder:
    """
    OpenAI-compatible embedding client over httpx.

    Usage:
        embedder = OpenAIEmbedder(api_key="sk-...", model="text-embedding-3-small")
        embedder.initialize()
        vectors = embedder.embed_batch(["def foo(): ...", "class Bar: ..."])
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.model = model
        self.batch_size = max(1, batch_size)
        self._client = client or create_api_client(
            base_url=base_url, api_key=api_key, timeout_type="embedding"
        )
        self._sleep = sleep
        self._dimension = 0
        self._initialized = False
        self._cache: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls, config: EideticConfig, client: Optional[httpx.Client] = None
    ) -> "OpenAIEmbedder":
        """
        Build the embedder for the configured provider.

        ollama and local reuse this client with their own base URL; both
        accept any key.
        """
        api_key = config.openai_api_key or (
            config.embedding_provider if config.embedding_provider != "openai" else ""
        )
        return cls(
            api_key=api_key,
            base_url=config.embedding_base_url,
            model=config.embedding_model or "",
            batch_size=config.embedding_batch_size,
            client=client,
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def initialize(self) -> None:
        """Validate connectivity and detect the embedding dimension."""
        try:
            sample = self._call_api(["dimension check"])
        except (APIError, httpx.HTTPError) as e:
            raise EmbeddingError(
                "Failed to initialize embedding provider. Check your API key, "
                f"base URL, and model name. Model: '{self.model}'"
            ) from e
        self._dimension = len(sample[0])
        self._initialized = True
        logger.info(f"{EMBEDDING} Embedding model '{self.model}' validated. Dimension: {self._dimension}")

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed texts in order; one vector per input.

        Raises:
            EmbeddingError: If not initialized or the provider keeps failing.
        """
        if not self._initialized:
            raise EmbeddingError(
                "Embedding provider not initialized. Call initialize() before embed/embed_batch."
            )
        if not texts:
            return []

        results: List[Optional[List[float]]] = [None] * len(texts)
        pending: Dict[str, List[int]] = {}

        for i, text in enumerate(texts):
            if not text.strip():
                results[i] = [0.0] * self._dimension
                continue
            key = _content_key(text)
            cached = self._cache_get(key)
            if cached is not None:
                results[i] = cached
            else:
                pending.setdefault(key, []).append(i)

        if pending:
            keys = list(pending)
            uncached = [texts[pending[k][0]] for k in keys]
            fresh: List[List[float]] = []
            for offset in range(0, len(uncached), self.batch_size):
                fresh.extend(self._call_with_retry(uncached[offset : offset + self.batch_size]))

            if len(fresh) != len(keys):
                raise EmbeddingError(
                    f"Provider returned {len(fresh)} vectors for {len(keys)} texts"
                )

            for key, vector in zip(keys, fresh):
                self._cache_put(key, vector)
                for i in pending[key]:
                    results[i] = vector

        logger.debug(f"{EMBEDDING} Embedded {len(texts)} texts ({len(pending)} uncached)")
        return [r for r in results if r is not None]

    def estimate_tokens(self, texts: List[str]) -> TokenEstimate:
        total_chars = sum(len(t) for t in texts)
        estimated_tokens = math.ceil(total_chars / 4)
        rate = COST_PER_MILLION.get(self.model, 0.0)
        return TokenEstimate(
            total_chars=total_chars,
            estimated_tokens=estimated_tokens,
            estimated_cost_usd=estimated_tokens / 1_000_000 * rate,
        )

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------

    def _cache_get(self, key: str) -> Optional[List[float]]:
        with self._lock:
            return self._cache.get(key)

    def _cache_put(self, key: str, vector: List[float]) -> None:
        with self._lock:
            if key not in self._cache and len(self._cache) >= MAX_MEMORY_CACHE_SIZE:
                self._cache.popitem(last=False)
            self._cache[key] = vector

    def _call_with_retry(self, texts: List[str]) -> List[List[float]]:
        batch_size = len(texts)
        for attempt, base_delay in enumerate(RETRY_DELAYS):
            try:
                vectors: List[List[float]] = []
                for offset in range(0, len(texts), batch_size):
                    vectors.extend(self._call_api(texts[offset : offset + batch_size]))
                return vectors
            except APIError as e:
                retryable = e.status_code in RETRYABLE_STATUS
                if not retryable or attempt >= len(RETRY_DELAYS) - 1:
                    raise EmbeddingError(
                        f"Embedding API call failed after {attempt + 1} attempt(s). "
                        f"Status: {e.status_code or 'unknown'}"
                    ) from e

                delay = base_delay
                if isinstance(e, RateLimitError):
                    if e.retry_after is not None:
                        delay = min(e.retry_after, MAX_RETRY_AFTER)
                    batch_size = max(1, batch_size // 2)
                    logger.warning(
                        f"{EMBEDDING} Rate limited. Retrying in {delay}s with batch size {batch_size}."
                    )
                else:
                    logger.warning(
                        f"{EMBEDDING} Embedding API error (status {e.status_code}). Retrying in {delay}s..."
                    )
                self._sleep(delay)

        raise EmbeddingError("Embedding retries exhausted")

    def _call_api(self, texts: List[str]) -> List[List[float]]:
        payload = {"model": self.model, "input": [truncate_to_safe_length(t) for t in texts]}
        try:
            response = self._client.post("/embeddings", json=payload)
        except httpx.HTTPError as e:
            raise handle_api_error(e, provider=self.provider, endpoint="/embeddings") from e

        raise_for_status(response, provider=self.provider, endpoint="/embeddings")

        try:
            data = response.json()["data"]
            ordered = sorted(data, key=lambda d: d["index"])
            return [list(map(float, d["embedding"])) for d in ordered]
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embeddings response: {e}") from e


__all__ = ["OpenAIEmbedder", "truncate_to_safe_length", "MAX_EMBED_CHARS"]
