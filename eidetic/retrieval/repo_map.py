# eidetic/retrieval/repo_map.py
"""
Repo map: a token-budgeted listing of declared symbols, grouped by file.

    src/models.py:
      [class] class User(BaseModel)
        [method] def save(self)
      [function] def load_user(user_id: str)
    ...(truncated)

Symbols are deduplicated by (path, name, kind) first. The rendered text
never exceeds max_tokens * 4 characters, and ends with the truncation
marker whenever a line had to be left out.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, Union

from eidetic.core.exceptions import InvalidInputError
from eidetic.core.paths import path_to_collection_name
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import RETRIEVER
from eidetic.vector_db.types import SymbolEntry, VectorIndex

logger = get_logger(__name__)

CHARS_PER_TOKEN = 4
DEFAULT_MAX_TOKENS = 4000
TRUNCATION_MARKER = "...(truncated)"
EMPTY_MAP = "(no symbols found; codebase may not be indexed yet)"
EMPTY_TABLE = "(no symbols found)"


# =============================================================================
# Symbol sources
# =============================================================================


def matches_path_filter(relative_path: str, pattern: str) -> bool:
    """
    Glob-style match over a whole relative path.

    `*` matches within one path segment, `**` matches across segments.

    Examples:
        >>> matches_path_filter("src/core/a.py", "src/**")
        True
        >>> matches_path_filter("src/core/a.py", "src/*.py")
        False
    """
    regex = "".join(
        ".*" if part == "**" else "[^/]*" if part == "*" else re.escape(part)
        for part in re.split(r"(\*\*|\*)", pattern)
    )
    return re.fullmatch(regex, relative_path) is not None


class SymbolSource(Protocol):
    def get_symbols(
        self,
        collection_name: str,
        path_filter: Optional[str] = None,
        kind_filter: Optional[str] = None,
        name_filter: Optional[str] = None,
    ) -> List[SymbolEntry]: ...


class VectorIndexSymbolSource:
    """SymbolSource reading symbol payloads from a VectorIndex, with filters."""

    def __init__(self, index: VectorIndex) -> None:
        self._index = index

    def get_symbols(
        self,
        collection_name: str,
        path_filter: Optional[str] = None,
        kind_filter: Optional[str] = None,
        name_filter: Optional[str] = None,
    ) -> List[SymbolEntry]:
        symbols = self._index.list_symbols(collection_name)

        if path_filter:
            symbols = [s for s in symbols if matches_path_filter(s.relative_path, path_filter)]
        if kind_filter:
            kind = kind_filter.lower()
            symbols = [s for s in symbols if s.kind.lower() == kind]
        if name_filter:
            needle = name_filter.lower()
            symbols = [s for s in symbols if needle in s.name.lower()]

        return symbols


# =============================================================================
# Dedupe and render
# =============================================================================


def dedupe_symbols(entries: Iterable[SymbolEntry]) -> List[SymbolEntry]:
    """
    One entry per (relative_path, name, kind).

    A later entry replaces an earlier one only if it has a signature and the
    earlier one does not. Output keeps first-seen key order.
    """
    seen: Dict[Tuple[str, str, str], SymbolEntry] = {}
    for entry in entries:
        key = (entry.relative_path, entry.name, entry.kind)
        existing = seen.get(key)
        if existing is None or (not existing.signature and entry.signature):
            seen[key] = entry
    return list(seen.values())


def _symbol_line(entry: SymbolEntry, indent: str) -> str:
    label = entry.signature.strip() if entry.signature else entry.name
    return f"{indent}[{entry.kind}] {label}"


def _file_lines(relative_path: str, entries: List[SymbolEntry]) -> List[str]:
    ordered = sorted(entries, key=lambda e: e.start_line)
    parent_names = {e.name for e in ordered if not e.parent_name}

    children: Dict[str, List[SymbolEntry]] = {}
    top_level: List[SymbolEntry] = []
    for entry in ordered:
        if entry.parent_name and entry.parent_name in parent_names:
            children.setdefault(entry.parent_name, []).append(entry)
        else:
            top_level.append(entry)

    lines = [f"{relative_path}:"]
    for entry in top_level:
        lines.append(_symbol_line(entry, "  "))
        if not entry.parent_name:
            for child in children.pop(entry.name, []):
                lines.append(_symbol_line(child, "    "))
    return lines


def render_repo_map(entries: Iterable[SymbolEntry], max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
    """
    Render deduplicated symbols within a budget of max_tokens * 4 characters.

    Raises:
        InvalidInputError: If the budget cannot even hold the truncation marker.
    """
    max_chars = max_tokens * CHARS_PER_TOKEN
    if max_chars < len(TRUNCATION_MARKER):
        raise InvalidInputError(
            f"max_tokens={max_tokens} is too small for a repo map "
            f"(needs at least {len(TRUNCATION_MARKER)} characters)"
        )

    deduped = dedupe_symbols(entries)
    if not deduped:
        return EMPTY_MAP

    by_file: Dict[str, List[SymbolEntry]] = {}
    for entry in deduped:
        by_file.setdefault(entry.relative_path, []).append(entry)

    lines: List[str] = []
    for relative_path in sorted(by_file):
        lines.extend(_file_lines(relative_path, by_file[relative_path]))

    full = "\n".join(lines)
    if len(full) <= max_chars:
        return full

    # Keep room for "\n" + marker after the last kept line
    budget = max_chars - len(TRUNCATION_MARKER) - 1
    kept: List[str] = []
    used = -1
    for line in lines:
        if used + 1 + len(line) > budget:
            break
        kept.append(line)
        used += 1 + len(line)

    logger.debug(
        f"{RETRIEVER} Repo map truncated: kept {len(kept)} of {len(lines)} lines "
        f"(budget {max_chars} chars)"
    )
    return "\n".join([*kept, TRUNCATION_MARKER])


def generate_repo_map(
    root_path: Union[str, Path],
    source: SymbolSource,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    path_filter: Optional[str] = None,
    kind_filter: Optional[str] = None,
) -> str:
    """Repo map for an indexed project."""
    collection = path_to_collection_name(root_path)
    symbols = source.get_symbols(collection, path_filter=path_filter, kind_filter=kind_filter)
    return render_repo_map(symbols, max_tokens)


def list_symbols_table(
    root_path: Union[str, Path],
    source: SymbolSource,
    path_filter: Optional[str] = None,
    kind_filter: Optional[str] = None,
    name_filter: Optional[str] = None,
) -> str:
    """Symbols as a `Name | Kind | Location` table, sorted by path then line."""
    collection = path_to_collection_name(root_path)
    symbols = source.get_symbols(
        collection, path_filter=path_filter, kind_filter=kind_filter, name_filter=name_filter
    )
    if not symbols:
        return EMPTY_TABLE

    rows = sorted(dedupe_symbols(symbols), key=lambda s: (s.relative_path, s.start_line))
    lines = ["Name | Kind | Location", "-----|------|--------"]
    lines.extend(f"{s.name} | {s.kind} | {s.relative_path}:{s.start_line}" for s in rows)
    return "\n".join(lines)


__all__ = [
    "TRUNCATION_MARKER",
    "EMPTY_MAP",
    "SymbolSource",
    "VectorIndexSymbolSource",
    "matches_path_filter",
    "dedupe_symbols",
    "render_repo_map",
    "generate_repo_map",
    "list_symbols_table",
]
