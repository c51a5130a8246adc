# eidetic/ingestion/chunking/plugins/__init__.py
"""Built-in splitter plugins."""

from eidetic.ingestion.chunking.plugins.line import LineWindowSplitter
from eidetic.ingestion.chunking.plugins.symbol import SymbolAwareSplitter

__all__ = ["LineWindowSplitter", "SymbolAwareSplitter"]
