# eidetic/ingestion/chunking/plugins/symbol.py
"""
Symbol-aware splitter - one chunk per recognised declaration.

Strategy:
1. Parse the file with tree-sitter (unsupported language -> line windows)
2. Emit a chunk per named declaration, with name, kind and signature
3. Functions inside classes/interfaces/structs/traits/impls become methods
   carrying parent_symbol
4. Lines outside every emitted declaration (imports, statements, anonymous
   declarations) are covered by line windows over those gaps
5. Enforce the character cap, keeping symbol metadata on every piece
6. Order by start_line (stable)

Splitter ID format: "symbol:{line splitter id}"
Example: "symbol:line:60:5:2500"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from eidetic.core.chunk import Chunk
from eidetic.core.exceptions import InvalidInputError
from eidetic.ingestion.chunking.bounds import enforce_size_bound
from eidetic.ingestion.chunking.grammars import GrammarRegistry
from eidetic.ingestion.chunking.plugins.line import LineWindowSplitter
from eidetic.ingestion.chunking.symbols import (
    SymbolInfo,
    WRAPPER_FIELDS,
    extract_symbol_info,
    is_container_type,
    is_declaration,
    node_text,
    unwrap,
)
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import CHUNKING

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Declaration:
    span: Any
    decl: Any
    info: SymbolInfo
    parent: Optional[str]


def _line_range(node: Any) -> Tuple[int, int]:
    start_row = node.start_point[0]
    end_row, end_col = node.end_point[0], node.end_point[1]
    # A node ending at column 0 stops before that line
    if end_col == 0 and end_row > start_row:
        end_row -= 1
    return start_row + 1, end_row + 1


def _shares_lines(node: Any, source: bytes) -> Tuple[bool, bool]:
    """Whether other code sits before the node on its first line / after it on its last."""
    line_start = source.rfind(b"\n", 0, node.start_byte) + 1
    before = source[line_start : node.start_byte]
    after = b""
    if node.end_point[1] != 0:
        line_end = source.find(b"\n", node.end_byte)
        after = source[node.end_byte : line_end if line_end != -1 else len(source)]
    return bool(before.strip()), bool(after.strip())


@dataclass
class SymbolAwareSplitter:
    """
    Declaration-level splitter that falls back to line windows.

    Wraps a LineWindowSplitter: the wrapped splitter handles unsupported
    languages, parse failures, files without named declarations, the gaps
    between declarations, and sets the character cap.

    Example:
        >>> splitter = SymbolAwareSplitter(LineWindowSplitter())
        >>> chunks = splitter.split(source, "python", "app/models.py")
        >>> [(c.symbol_kind, c.symbol_name) for c in chunks if c.symbol_name]
        [('class', 'User'), ('method', 'save')]
    """

    fallback: LineWindowSplitter = field(default_factory=LineWindowSplitter)
    grammars: GrammarRegistry = field(default_factory=GrammarRegistry)
    plugin_name: str = field(default="symbol", repr=False)

    @property
    def splitter_id(self) -> str:
        return f"{self.plugin_name}:{self.fallback.splitter_id}"

    @property
    def max_chunk_chars(self) -> int:
        return self.fallback.max_chunk_chars

    def split(self, text: str, language: str, file_path: str) -> List[Chunk]:
        """
        Split source text on declaration boundaries.

        Raises:
            InvalidInputError: If text is empty or whitespace-only.
        """
        if not text or not text.strip():
            raise InvalidInputError(f"Cannot split empty text ({file_path})")

        parser = self.grammars.get_parser(language)
        if parser is None:
            return self.fallback.split(text, language, file_path)

        try:
            tree = parser.parse(text.encode("utf-8"))
        except (ValueError, TypeError, RuntimeError) as e:
            logger.warning(f"{CHUNKING} Parse failed for {file_path} ({language}): {e}")
            return self.fallback.split(text, language, file_path)

        return self.split_tree(tree.root_node, text, language, file_path)

    def split_tree(self, root: Any, text: str, language: str, file_path: str) -> List[Chunk]:
        """
        Split using an already-parsed syntax tree rooted at root.

        root must describe text encoded as UTF-8.
        """
        if not text or not text.strip():
            raise InvalidInputError(f"Cannot split empty text ({file_path})")

        source = text.encode("utf-8")
        declarations: List[_Declaration] = []
        self._visit(root, source, language, None, declarations)

        if not declarations:
            logger.debug(f"{CHUNKING} {file_path}: no named declarations, using line windows")
            return self.fallback.split(text, language, file_path)

        lines = text.split("\n")
        covered = [False] * (len(lines) + 2)
        chunks: List[Chunk] = []

        for d in declarations:
            content = node_text(d.span, source)
            if not content.strip():
                continue
            start_line, end_line = _line_range(d.span)
            # Lines shared with other code stay uncovered so a gap window keeps that code
            shared_first, shared_last = _shares_lines(d.span, source)
            first = start_line + 1 if shared_first else start_line
            last = end_line - 1 if shared_last else end_line
            for ln in range(first, last + 1):
                covered[ln] = True
            chunks.append(
                Chunk(
                    content=content,
                    start_line=start_line,
                    end_line=end_line,
                    language=language,
                    file_path=file_path,
                    symbol_name=d.info.name,
                    symbol_kind=d.info.kind,
                    symbol_signature=d.info.signature,
                    parent_symbol=d.parent,
                )
            )

        symbol_count = len(chunks)
        chunks = enforce_size_bound(chunks, self.max_chunk_chars)
        chunks.extend(self._cover_gaps(lines, covered, language, file_path))
        chunks.sort(key=lambda c: c.start_line)

        logger.debug(
            f"{CHUNKING} {file_path}: {symbol_count} declarations -> {len(chunks)} chunks"
        )
        return chunks

    def _visit(
        self,
        node: Any,
        source: bytes,
        language: str,
        parent: Optional[str],
        out: List[_Declaration],
    ) -> None:
        decl = unwrap(node) if node.type in WRAPPER_FIELDS else node
        info = None
        if decl is not None and is_declaration(decl.type):
            info = extract_symbol_info(decl, source, language, parent)

        if info is None:
            for child in node.children:
                self._visit(child, source, language, parent, out)
            return

        out.append(_Declaration(span=node, decl=decl, info=info, parent=parent))

        if is_container_type(decl.type):
            for child in decl.children:
                self._visit(child, source, language, info.name, out)

    def _cover_gaps(
        self,
        lines: List[str],
        covered: List[bool],
        language: str,
        file_path: str,
    ) -> List[Chunk]:
        gap_chunks: List[Chunk] = []
        line_no = 1
        total = len(lines)
        while line_no <= total:
            if covered[line_no]:
                line_no += 1
                continue
            gap_start = line_no
            while line_no <= total and not covered[line_no]:
                line_no += 1
            gap_text = "\n".join(lines[gap_start - 1 : line_no - 1])
            if not gap_text.strip():
                continue
            offset = gap_start - 1
            for c in self.fallback.split(gap_text, language, file_path):
                gap_chunks.append(
                    c.model_copy(
                        update={
                            "start_line": c.start_line + offset,
                            "end_line": c.end_line + offset,
                        }
                    )
                )
        return gap_chunks


__all__ = ["SymbolAwareSplitter"]
