# eidetic/embedding/__init__.py
"""
Embedding clients.

Usage:
    from eidetic.embedding import OpenAIEmbedder

    embedder = OpenAIEmbedder.from_config(config)
    embedder.initialize()
"""

from eidetic.embedding.base import TextEmbedder, TokenEstimate
from eidetic.embedding.openai import OpenAIEmbedder

__all__ = ["TextEmbedder", "TokenEstimate", "OpenAIEmbedder"]
