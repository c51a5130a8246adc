# eidetic/memory/history.py
"""
Append-only audit log of memory writes, stored in SQLite.

One row per ADD / UPDATE / DELETE. Rows are never modified.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from eidetic.logging.logger import get_logger
from eidetic.logging.tags import MEMORY
from eidetic.memory.models import HistoryEntry, MemoryEvent

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS memory_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    memory_id TEXT NOT NULL,
    previous_value TEXT,
    new_value TEXT,
    event TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT,
    source TEXT
)
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MemoryHistory:
    """
    SQLite-backed history table.

    Usage:
        history = MemoryHistory(paths.memory_db())
        history.log(memory_id, MemoryEvent.ADD, "uses pnpm")
        history.get_history(memory_id)
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        path = Path(db_path)
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_SCHEMA)
        self._conn.commit()
        logger.debug(f"{MEMORY} History database at {path}")

    def log(
        self,
        memory_id: str,
        event: MemoryEvent,
        new_value: Optional[str],
        previous_value: Optional[str] = None,
        source: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO memory_history "
                "(memory_id, previous_value, new_value, event, created_at, updated_at, source) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    memory_id,
                    previous_value,
                    new_value,
                    MemoryEvent(event).value,
                    _now(),
                    updated_at,
                    source,
                ),
            )
            self._conn.commit()

    def get_history(self, memory_id: str) -> List[HistoryEntry]:
        """All rows for a memory, oldest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM memory_history WHERE memory_id = ? ORDER BY created_at ASC, id ASC",
                (memory_id,),
            ).fetchall()
        return [HistoryEntry(**dict(row)) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["MemoryHistory"]
