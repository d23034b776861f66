import sqlite3
from pathlib import Path

import pytest

from quizdeck.progress import SCHEMA_VERSION, ProgressStore, StorageError


def test_empty_store_has_no_wrong_items() -> None:
    store = ProgressStore(":memory:")
    assert store.load_wrong_set() == frozenset()


def test_save_replaces_whole_set() -> None:
    store = ProgressStore(":memory:")
    store.save_wrong_set(["core-1", "core-2", "acronym-3"])
    assert store.load_wrong_set() == frozenset({"core-1", "core-2", "acronym-3"})

    store.save_wrong_set({"core-2"})
    assert store.load_wrong_set() == frozenset({"core-2"})

    store.save_wrong_set([])
    assert store.load_wrong_set() == frozenset()


def _marked_at(store: ProgressStore) -> dict[str, str]:
    rows = store._conn.execute("SELECT item_id, marked_at FROM wrong_items").fetchall()  # noqa: SLF001
    return {str(row["item_id"]): str(row["marked_at"]) for row in rows}


def test_marked_at_survives_resave() -> None:
    store = ProgressStore(":memory:")
    store.save_wrong_set(["core-1"])
    first = _marked_at(store)["core-1"]

    store.save_wrong_set(["core-1", "core-2"])
    stamps = _marked_at(store)
    assert stamps["core-1"] == first
    assert set(stamps) == {"core-1", "core-2"}


def test_sqlite_failure_is_reported_as_storage_error() -> None:
    store = ProgressStore(":memory:")
    store.close()
    with pytest.raises(StorageError, match="Could not save 1 wrong items"):
        store.save_wrong_set(["core-1"])


def test_migration_sets_user_version_and_schema_history() -> None:
    store = ProgressStore(":memory:")
    version = int(store._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == SCHEMA_VERSION
    rows = store._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_path_database_creation_and_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "progress.db"

    store = ProgressStore(db_path)
    store.save_wrong_set(["acronym-2"])
    store.close()
    assert db_path.exists()

    reopened = ProgressStore(db_path)
    assert reopened.load_wrong_set() == frozenset({"acronym-2"})
    reopened.close()


def test_newer_schema_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(RuntimeError, match="newer than supported"):
        ProgressStore(db_path)
