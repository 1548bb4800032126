"""Redaction-map store backed by SQLite, with a retention window.

The engine itself is stateless; this is an optional adapter for callers
that need to keep a scan's map around until they restore.  Maps older than
the retention window (24 hours by default) are treated as gone and are
deleted on access or by ``purge_expired``.

Usage:
    store = SqliteMapStore(db_path="~/.report-redactor/maps.db")
    store.save("case-42", result.redaction_map)
    ...
    redaction_map = store.load("case-42")   # None once expired
"""

from __future__ import annotations
import json
import logging
import sqlite3
import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable

from .types import RedactionMap

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS redaction_maps (
    scan_id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    created_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_redaction_maps_created
    ON redaction_maps(created_at);
"""


class SqliteMapStore:
    """Persistent ``scan_id -> RedactionMap`` store with expiry."""

    __slots__ = ("_db", "_retention", "_clock", "_lock")

    def __init__(
        self,
        db_path: str | Path = "maps.db",
        *,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        db_path = str(db_path)
        if db_path != ":memory:":
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)
        self._db = sqlite3.connect(db_path, check_same_thread=False)
        self._db.executescript(_SCHEMA)
        self._retention = retention
        self._clock = clock
        # One connection shared by server threads
        self._lock = threading.Lock()

    def _cutoff(self) -> float:
        return self._clock() - self._retention.total_seconds()

    def save(self, scan_id: str, redaction_map: RedactionMap) -> None:
        payload = json.dumps(redaction_map.to_dict(), ensure_ascii=False)
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO redaction_maps (scan_id, payload, created_at) VALUES (?, ?, ?)",
                (scan_id, payload, self._clock()),
            )
            self._db.commit()

    def load(self, scan_id: str) -> RedactionMap | None:
        with self._lock:
            row = self._db.execute(
                "SELECT payload, created_at FROM redaction_maps WHERE scan_id = ?",
                (scan_id,),
            ).fetchone()
        if row is None:
            return None
        payload, created_at = row
        if created_at < self._cutoff():
            self.delete(scan_id)
            return None
        return RedactionMap.from_dict(json.loads(payload))

    def delete(self, scan_id: str) -> bool:
        with self._lock:
            cur = self._db.execute("DELETE FROM redaction_maps WHERE scan_id = ?", (scan_id,))
            self._db.commit()
        return cur.rowcount > 0

    def purge_expired(self) -> int:
        """Delete every map past the retention window.  Returns how many."""
        with self._lock:
            cur = self._db.execute(
                "DELETE FROM redaction_maps WHERE created_at < ?", (self._cutoff(),),
            )
            self._db.commit()
        if cur.rowcount:
            logger.info("purged %d expired redaction maps", cur.rowcount)
        return cur.rowcount

    def list_scans(self) -> list[str]:
        """Scan IDs still inside the retention window."""
        with self._lock:
            rows = self._db.execute(
                "SELECT scan_id FROM redaction_maps WHERE created_at >= ? ORDER BY created_at",
                (self._cutoff(),),
            ).fetchall()
        return [r[0] for r in rows]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "SqliteMapStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
