# eidetic/ingestion/chunking/grammars.py
"""
Registry of tree-sitter grammars used by the symbol-aware splitter.

Grammars come from tree-sitter-language-pack and are loaded lazily on first
use, then cached per registry. A language whose grammar fails to load
(unknown to the pack, or the download fails) is remembered as unsupported
so the failure is logged once.
"""

from __future__ import annotations

from typing import Dict, Optional, Set, Tuple

from tree_sitter import Parser
from tree_sitter_language_pack import Error as LanguagePackError
from tree_sitter_language_pack import get_language

from eidetic.logging.logger import get_logger
from eidetic.logging.tags import CHUNKING

logger = get_logger(__name__)

# Canonical grammar name -> accepted aliases
SUPPORTED_GRAMMARS: Dict[str, Tuple[str, ...]] = {
    "python": ("py",),
    "javascript": ("js", "jsx"),
    "typescript": ("ts",),
    "tsx": (),
    "go": (),
    "java": (),
    "rust": ("rs",),
    "c": (),
    "cpp": ("c++", "cc", "cxx"),
    "csharp": ("cs", "c#"),
}

_ALIASES: Dict[str, str] = {
    alias: name for name, aliases in SUPPORTED_GRAMMARS.items() for alias in (name, *aliases)
}


def canonical_language(language: str) -> Optional[str]:
    """Canonical grammar name for a language or alias, or None if unsupported."""
    return _ALIASES.get(language.lower())


class GrammarRegistry:
    """
    Lazily loaded tree-sitter parsers keyed by canonical language name.

    Usage:
        registry = GrammarRegistry()
        parser = registry.get_parser("ts")
        if parser is not None:
            tree = parser.parse(source_bytes)
    """

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}
        self._failed: Set[str] = set()

    def supports(self, language: str) -> bool:
        return canonical_language(language) is not None

    def get_parser(self, language: str) -> Optional[Parser]:
        """
        Parser for the language, or None if unsupported or not loadable.
        """
        name = canonical_language(language)
        if name is None or name in self._failed:
            return None

        parser = self._parsers.get(name)
        if parser is not None:
            return parser

        try:
            parser = Parser(get_language(name))
        except (LookupError, OSError, ValueError, LanguagePackError) as e:
            logger.warning(f"{CHUNKING} Failed to load tree-sitter grammar '{name}': {e}")
            self._failed.add(name)
            return None

        logger.debug(f"{CHUNKING} Loaded tree-sitter grammar '{name}'")
        self._parsers[name] = parser
        return parser


__all__ = ["GrammarRegistry", "SUPPORTED_GRAMMARS", "canonical_language"]
