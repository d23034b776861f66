"""SQLite persistence for the learner's wrong-card list."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Wrong-card set could not be written; the caller's in-memory copy is still valid."""


class WrongSetStorage(Protocol):
    """Load-at-start, save-on-mutation storage for the wrong-card set.

    `save_wrong_set` raises `StorageError` when a write fails.
    """

    def load_wrong_set(self) -> frozenset[str]: ...

    def save_wrong_set(self, item_ids: Iterable[str]) -> None: ...


class ProgressStore:
    """Database access layer for learner progress."""

    def __init__(self, db_path: Path | str) -> None:
        """Open (and create or migrate) the progress database."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )
            logger.debug("Progress database migrated to schema version %d", version)

    def _migrate_to_v1(self) -> None:
        """Create the wrong-items table."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS wrong_items (
                    item_id TEXT PRIMARY KEY,
                    marked_at TEXT NOT NULL
                )
                """)

    def load_wrong_set(self) -> frozenset[str]:
        """Return every card id currently marked wrong."""
        rows = self._conn.execute("SELECT item_id FROM wrong_items").fetchall()
        return frozenset(str(row["item_id"]) for row in rows)

    def save_wrong_set(self, item_ids: Iterable[str]) -> None:
        """Replace the stored set in one transaction.

        Ids that stay marked keep their original `marked_at`.
        """
        wanted = sorted(set(item_ids))
        now = datetime.now(UTC).isoformat()
        try:
            with self._conn:
                if wanted:
                    placeholders = ", ".join("?" for _ in wanted)
                    self._conn.execute(f"DELETE FROM wrong_items WHERE item_id NOT IN ({placeholders})", wanted)
                else:
                    self._conn.execute("DELETE FROM wrong_items")
                self._conn.executemany(
                    "INSERT OR IGNORE INTO wrong_items (item_id, marked_at) VALUES (?, ?)",
                    [(item_id, now) for item_id in wanted],
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not save {len(wanted)} wrong items: {exc}") from exc
        logger.debug("Saved %d wrong items", len(wanted))

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass
