"""SQLite database connection management."""

import sqlite3
import threading
from pathlib import Path
from typing import Any


class Database:
    """SQLite database wrapper with connection management.

    The connection is shared between request handlers and the worker threads
    that run search lookups, so every statement goes through a re-entrant
    lock. Use ``fetchall``/``fetchone`` for reads so that the cursor is fully
    consumed while the lock is held.
    """

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding the shared connection."""
        return self._lock

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute SQL statement."""
        with self._lock:
            return self._conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[tuple[Any, ...]]) -> sqlite3.Cursor:
        """Execute SQL statement for multiple parameter sets."""
        with self._lock:
            return self._conn.executemany(sql, params_list)

    def executescript(self, sql: str) -> sqlite3.Cursor:
        """Execute multiple SQL statements as a script."""
        with self._lock:
            return self._conn.executescript(sql)

    def fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Execute a query and return every row."""
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        """Execute a query and return the first row, if any."""
        with self._lock:
            return self._conn.execute(sql, params).fetchone()

    def commit(self) -> None:
        """Commit current transaction."""
        with self._lock:
            self._conn.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        with self._lock:
            self._conn.rollback()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            self._conn.close()
