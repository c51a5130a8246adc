# eidetic/ingestion/diff/preview.py
"""
Dry-run summary of what index_codebase would pick up.

Nothing is read beyond file sizes and nothing is embedded.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Tuple, Union

from eidetic.core.config import EideticConfig
from eidetic.core.paths import normalize_path
from eidetic.embedding.openai import COST_PER_MILLION
from eidetic.logging.logger import get_logger
from eidetic.logging.tags import INGEST

from .scanner import scan_files

logger = get_logger(__name__)

CHARS_PER_TOKEN = 3
MAX_TOP_DIRECTORIES = 10
LARGE_CODEBASE_FILES = 5000
DOMINANT_DIRECTORY_PCT = 50

ROOT_DIR = "(root)"
NO_EXTENSION = "(no ext)"


@dataclass
class PreviewResult:
    total_files: int = 0
    by_extension: Dict[str, int] = field(default_factory=dict)
    top_directories: List[Tuple[str, int]] = field(default_factory=list)
    estimated_tokens: int = 0
    estimated_cost_usd: float = 0.0
    warnings: List[str] = field(default_factory=list)


def _top_directory(relative_path: str) -> str:
    head, sep, _ = relative_path.partition("/")
    return head if sep else ROOT_DIR


def _warnings(total: int, top_directories: List[Tuple[str, int]]) -> List[str]:
    warnings: List[str] = []
    if total == 0:
        warnings.append(
            "No indexable files found. Check file extension filters and ignore patterns."
        )
    if total > LARGE_CODEBASE_FILES:
        warnings.append(
            f"Found {total:,} files. Most codebases have 100-{LARGE_CODEBASE_FILES:,} "
            "source files. Consider adding ignore patterns."
        )
    if total and top_directories:
        directory, count = top_directories[0]
        pct = round(count / total * 100)
        if pct > DOMINANT_DIRECTORY_PCT and directory != ROOT_DIR:
            warnings.append(
                f"Directory '{directory}/' contains {pct}% of files. Consider ignoring it "
                "if it holds build artifacts or dependencies."
            )
    return warnings


def preview_codebase(root_path: Union[str, Path], config: EideticConfig) -> PreviewResult:
    """
    Count the files an index run would process and estimate its embedding cost.

    Tokens are estimated from file sizes at three characters per token; the
    cost uses the configured model's per-million-token rate (zero when the
    model has no known rate).
    """
    normalized = normalize_path(root_path)
    root = Path(normalized)
    file_paths = scan_files(root, config.custom_extensions, config.custom_ignore_patterns)

    by_extension = Counter(
        PurePosixPath(rel).suffix.lower() or NO_EXTENSION for rel in file_paths
    )
    directories = Counter(_top_directory(rel) for rel in file_paths)
    top_directories = sorted(directories.items(), key=lambda item: -item[1])[
        :MAX_TOP_DIRECTORIES
    ]

    total_bytes = 0
    for rel in file_paths:
        try:
            total_bytes += (root / rel).stat().st_size
        except OSError:
            # Removed between scan and stat
            continue

    estimated_tokens = math.ceil(total_bytes / CHARS_PER_TOKEN)
    rate = COST_PER_MILLION.get(config.embedding_model or "", 0.0)

    result = PreviewResult(
        total_files=len(file_paths),
        by_extension=dict(by_extension),
        top_directories=top_directories,
        estimated_tokens=estimated_tokens,
        estimated_cost_usd=estimated_tokens / 1_000_000 * rate,
        warnings=_warnings(len(file_paths), top_directories),
    )
    logger.info(
        f"{INGEST} Preview of {normalized}: {result.total_files} files, "
        f"~{estimated_tokens} tokens (~${result.estimated_cost_usd:.4f})"
    )
    return result


__all__ = ["PreviewResult", "preview_codebase"]
