"""Key-value stores for ledger snapshots.

Each store keeps one serialized record under a fixed key, the same way
browser local storage holds the session under "tradingData".
"""

import json
import logging
import os
import sqlite3
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Protocol

from .snapshot import STORAGE_KEY

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    """Anything that can save and load a snapshot dictionary."""

    def save(self, snapshot: dict) -> None:
        ...

    def load(self) -> Optional[dict]:
        ...


def _parse_record(raw: str, source: str) -> Optional[dict]:
    try:
        record = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Unreadable snapshot in {source}: {e}")
        return None
    if not isinstance(record, dict):
        logger.warning(f"Snapshot in {source} is not an object, ignoring it")
        return None
    return record


class MemoryStore:
    """In-process store, mainly for tests and throwaway sessions."""

    def __init__(self, key: str = STORAGE_KEY):
        self.key = key
        self._items: dict[str, str] = {}
        self.save_count = 0

    def save(self, snapshot: dict) -> None:
        self._items[self.key] = json.dumps(snapshot)
        self.save_count += 1

    def load(self) -> Optional[dict]:
        raw = self._items.get(self.key)
        if raw is None:
            return None
        return _parse_record(raw, "memory")

    def set_raw(self, raw: str) -> None:
        """Store a raw string as-is, bypassing serialization."""
        self._items[self.key] = raw

    def clear(self) -> None:
        self._items.pop(self.key, None)


class JsonFileStore:
    """Stores records in a JSON file mapping key -> record.

    Writes go through a temporary file and os.replace so a crash never
    leaves a half-written file behind.
    """

    def __init__(self, path: str | Path = "data/ledger.json", key: str = STORAGE_KEY):
        """Initialize file store.

        Args:
            path: Path to the JSON file
            key: Key the snapshot is stored under
        """
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Unreadable snapshot in {self.path}: {e}")
            return {}
        if not raw.strip():
            return {}
        return _parse_record(raw, str(self.path)) or {}

    def save(self, snapshot: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        items = self._read_all()
        items[self.key] = snapshot

        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved snapshot to {self.path}")

    def load(self) -> Optional[dict]:
        record = self._read_all().get(self.key)
        if record is None:
            return None
        if not isinstance(record, dict):
            logger.warning(f"Snapshot under {self.key!r} in {self.path} is not an object")
            return None
        return record

    def clear(self) -> None:
        items = self._read_all()
        if items.pop(self.key, None) is not None:
            self.path.write_text(json.dumps(items, indent=2), encoding="utf-8")


class SQLiteStore:
    """Stores records in a SQLite key-value table.

    ":memory:" keeps one connection open for the life of the store, since
    every new in-memory connection starts with an empty database.
    """

    MEMORY_PATH = ":memory:"

    def __init__(self, db_path: str = "data/ledger.db", key: str = STORAGE_KEY):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
            key: Key the snapshot is stored under
        """
        self.db_path = db_path
        self.key = key
        self._memory_conn: Optional[sqlite3.Connection] = None
        if db_path == self.MEMORY_PATH:
            self._memory_conn = sqlite3.connect(db_path)
        self._ensure_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._memory_conn is not None:
            with self._memory_conn as conn:
                yield conn
            return
        with sqlite3.connect(self.db_path) as conn:
            yield conn

    def _ensure_database(self) -> None:
        """Create database and table if they don't exist."""
        if self._memory_conn is None:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def save(self, snapshot: dict) -> None:
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO snapshots (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (
                self.key,
                json.dumps(snapshot),
                datetime.now(timezone.utc).isoformat(),
            ))
            conn.commit()

    def load(self) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM snapshots WHERE key = ?", (self.key,)
            ).fetchone()
        if row is None:
            return None
        return _parse_record(row[0], self.db_path)

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM snapshots WHERE key = ?", (self.key,))
            conn.commit()


def create_store(backend: str, path: str, key: str = STORAGE_KEY) -> SnapshotStore:
    """Build a store from configuration values.

    Args:
        backend: "json", "sqlite" or "memory"
        path: File path for file-backed stores
        key: Storage key
    """
    backend = backend.lower()
    if backend == "json":
        return JsonFileStore(path, key=key)
    if backend == "sqlite":
        return SQLiteStore(path, key=key)
    if backend == "memory":
        return MemoryStore(key=key)
    raise ValueError(f"Unknown storage backend: {backend!r}")
