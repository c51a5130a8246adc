# eidetic/ingestion/detection.py
"""
File category detection.

Classifies a relative path as test, doc, generated, config or source.
Checks run in that order; the first match wins.
"""

from __future__ import annotations

import re
from typing import List, Literal

FileCategory = Literal["source", "test", "doc", "config", "generated"]

_TEST_MARKERS = ("/__tests__/", ".test.", ".spec.", "_test.", "_spec.")
_DOC_EXTENSIONS = {".md", ".mdx", ".rst", ".txt"}
_DOC_PREFIX = re.compile(r"^(readme|changelog|license)", re.IGNORECASE)
_GENERATED_DIRS = ("dist/", "build/", "generated/")
_CONFIG_NAMES = {"package.json", "makefile", "dockerfile"}
_CONFIG_PREFIXES = ("docker-compose", ".eslintrc", ".prettierrc")
_TSCONFIG = re.compile(r"^tsconfig.*\.json$")


def _extension(filename: str) -> str:
    return filename[filename.rindex(".") :].lower() if "." in filename else ""


def _is_test(lower: str, filename_lower: str) -> bool:
    if any(marker in lower for marker in _TEST_MARKERS):
        return True
    return filename_lower.startswith(("test_", "test-"))


def _is_doc(filename: str, ext: str, segments: List[str]) -> bool:
    if ext in _DOC_EXTENSIONS:
        return True
    if any(s.lower() in ("docs", "doc") for s in segments):
        return True
    return bool(_DOC_PREFIX.match(filename))


def _is_generated(lower: str, filename: str) -> bool:
    for d in _GENERATED_DIRS:
        if lower.startswith(d) or f"/{d}" in lower:
            return True
    return ".generated." in lower or bool(re.search(r"\.[gG]\.", filename))


def _is_config(filename: str, ext: str, segments: List[str]) -> bool:
    filename_lower = filename.lower()
    if filename_lower in _CONFIG_NAMES:
        return True
    if _TSCONFIG.match(filename_lower) or filename_lower.startswith(_CONFIG_PREFIXES):
        return True
    if ".config." in filename:
        return True
    # yaml/toml under src/ is treated as data, not config
    if ext in (".yaml", ".yml", ".toml"):
        return not any(s.lower() == "src" for s in segments)
    return False


def classify_file_category(relative_path: str) -> FileCategory:
    """
    Classify a file by its relative path.

    Examples:
        >>> classify_file_category("src/__tests__/foo.ts")
        'test'
        >>> classify_file_category("README.md")
        'doc'
        >>> classify_file_category("src/app.py")
        'source'
    """
    normalized = relative_path.replace("\\", "/")
    segments = normalized.split("/")
    filename = segments[-1]
    lower = normalized.lower()
    ext = _extension(filename)

    if _is_test(lower, filename.lower()):
        return "test"
    if _is_doc(filename, ext, segments):
        return "doc"
    if _is_generated(lower, filename):
        return "generated"
    if _is_config(filename, ext, segments):
        return "config"
    return "source"


__all__ = ["FileCategory", "classify_file_category"]
