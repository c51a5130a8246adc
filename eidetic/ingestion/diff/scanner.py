# eidetic/ingestion/diff/scanner.py
"""
File scanner for incremental indexing.

Responsible for the "scan" phase:
1. Walk files under a root
2. Keep known code/doc extensions (plus custom ones)
3. Drop default ignores, .gitignore matches and custom ignore patterns
4. Hash each kept file into a Snapshot
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Union

import pathspec

from eidetic.ingestion.hashing import compute_file_hash
from eidetic.ingestion.state.schema import FileEntry, Snapshot
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import INGEST

logger = get_logger(__name__)


DEFAULT_EXTENSIONS: Set[str] = {
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".pyi",
    ".go",
    ".java",
    ".rs",
    ".cpp", ".cc", ".cxx", ".c", ".h", ".hpp",
    ".cs",
    ".scala", ".rb", ".php", ".swift",
    ".kt", ".kts",
    ".lua",
    ".sh", ".bash", ".zsh",
    ".sql",
    ".r",
    ".m", ".mm",
    ".dart",
    ".ex", ".exs",
    ".erl", ".hrl",
    ".hs",
    ".ml", ".mli",
    ".vue", ".svelte", ".astro",
    ".yaml", ".yml", ".toml", ".json",
    ".md", ".mdx",
    ".html", ".css", ".scss", ".less",
}

DEFAULT_IGNORE: List[str] = [
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
    ".next/",
    "target/",
    "__pycache__/",
    ".venv/",
    "venv/",
    "vendor/",
    ".cache/",
    "coverage/",
    "*.min.js",
    "*.min.css",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
]

_LANGUAGE_BY_EXT = {
    ".ts": "typescript", ".tsx": "tsx",
    ".js": "javascript", ".jsx": "javascript", ".mjs": "javascript", ".cjs": "javascript",
    ".py": "python", ".pyi": "python",
    ".go": "go",
    ".java": "java",
    ".rs": "rust",
    ".cpp": "cpp", ".cc": "cpp", ".cxx": "cpp", ".c": "c", ".h": "cpp", ".hpp": "cpp",
    ".cs": "csharp",
    ".scala": "scala", ".rb": "ruby", ".php": "php", ".swift": "swift",
    ".kt": "kotlin", ".kts": "kotlin",
    ".lua": "lua", ".sh": "bash", ".bash": "bash", ".zsh": "bash",
    ".sql": "sql", ".r": "r",
    ".dart": "dart", ".ex": "elixir", ".exs": "elixir",
    ".hs": "haskell", ".ml": "ocaml",
    ".vue": "vue", ".svelte": "svelte", ".astro": "astro",
    ".yaml": "yaml", ".yml": "yaml", ".toml": "toml", ".json": "json",
    ".md": "markdown", ".mdx": "markdown",
    ".html": "html", ".css": "css", ".scss": "scss", ".less": "less",
}


def extension_to_language(ext: str) -> str:
    """Map a file extension (".py") to the language name used by splitters."""
    return _LANGUAGE_BY_EXT.get(ext.lower(), "unknown")


def _normalize_ext(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _read_gitignore(root: Path) -> List[str]:
    gitignore = root / ".gitignore"
    try:
        return gitignore.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"{INGEST} Could not read {gitignore}: {e}")
        return []


def build_ignore_spec(root: Path, custom_ignore: Iterable[str] = ()) -> pathspec.PathSpec:
    """Combine default ignores, the root .gitignore and custom patterns."""
    lines = [*DEFAULT_IGNORE, *_read_gitignore(root), *custom_ignore]
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def scan_files(
    root_path: Union[str, Path],
    custom_extensions: Sequence[str] = (),
    custom_ignore: Sequence[str] = (),
) -> List[str]:
    """
    Return sorted POSIX paths (relative to root) of indexable files.

    Hidden files and directories are skipped.
    """
    root = Path(root_path)
    extensions = DEFAULT_EXTENSIONS | {_normalize_ext(e) for e in custom_extensions}
    spec = build_ignore_spec(root, custom_ignore)

    found: List[str] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(root).as_posix()
        if any(part.startswith(".") for part in rel.split("/")):
            continue
        if path.suffix.lower() not in extensions:
            continue
        if spec.match_file(rel):
            continue
        found.append(rel)

    found.sort()
    logger.debug(f"{INGEST} Scanned {root}: {len(found)} indexable files")
    return found


def build_snapshot(
    root_path: Union[str, Path],
    relative_paths: Iterable[str],
    on_error: Optional[List[str]] = None,
) -> Snapshot:
    """
    Hash every listed file into a snapshot.

    Unreadable files are skipped with a warning (and appended to on_error when given).
    """
    root = Path(root_path)
    snapshot: Snapshot = {}
    for rel in relative_paths:
        try:
            snapshot[rel] = FileEntry(content_hash=compute_file_hash(root / rel))
        except OSError as e:
            logger.warning(f"{INGEST} Skipping '{rel}': {e}")
            if on_error is not None:
                on_error.append(rel)
    return snapshot


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IGNORE",
    "extension_to_language",
    "build_ignore_spec",
    "scan_files",
    "build_snapshot",
]
