"""
KV Store - SQLite-Backed Key-Value Storage for Sessions and Snippets

Plays the role of browser-style local storage: string keys, string
values, best-effort durability.

Usage:
    kv = SQLiteKVStore("~/.arbor/arbor.db")
    kv.put("arbor:last-doc", bundle_json)
    text = kv.get("arbor:last-doc")
"""

from __future__ import annotations

import hashlib
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

import structlog

from arbor.exceptions import StorageError

logger = structlog.get_logger(__name__)


def _content_hash(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:16]


class SQLiteKVStore:
    """
    SQLite-backed key-value store.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Path | str):
        """
        Initialize the KV store.

        Args:
            db_path: Path to the SQLite database file.
                     Will be created (with parent dirs) if it doesn't exist.
        """
        self.db_path = Path(db_path).expanduser()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open store at {self.db_path}: {e}") from e

        logger.info("kv_store_initialized", db_path=str(self.db_path))

    def _init_db(self) -> None:
        """Create the database schema if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    value_hash TEXT NOT NULL,
                    char_count INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def put(self, key: str, value: str) -> str:
        """
        Store a value.

        Returns:
            Short SHA256 hash of the value.
        """
        value_hash = _content_hash(value)

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO entries (key, value, value_hash, char_count)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    value_hash = excluded.value_hash,
                    char_count = excluded.char_count,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value, value_hash, len(value)),
            )
            conn.commit()

        logger.debug("kv_put", key=key, char_count=len(value), hash=value_hash)
        return value_hash

    def get(self, key: str) -> str | None:
        """Retrieve a value, or None if the key is absent."""
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM entries WHERE key = ?", (key,)).fetchone()

        if row is None:
            logger.debug("kv_miss", key=key)
            return None

        logger.debug("kv_hit", key=key)
        return row["value"]

    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if deleted, False if not found.
        """
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE key = ?", (key,))
            conn.commit()
            deleted = cursor.rowcount > 0

        logger.debug("kv_delete", key=key, deleted=deleted)
        return deleted

    def exists(self, key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("SELECT 1 FROM entries WHERE key = ? LIMIT 1", (key,))
            return cursor.fetchone() is not None

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix, in key order."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT key FROM entries WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            )
            return [row["key"] for row in cursor]

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]

    def get_metadata(self, key: str) -> dict | None:
        """Hash, size and timestamps for a key, or None."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT value_hash, char_count, created_at, updated_at
                FROM entries WHERE key = ?
                """,
                (key,),
            ).fetchone()

        if row is None:
            return None

        return {
            "value_hash": row["value_hash"],
            "char_count": row["char_count"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    def clear(self) -> int:
        """
        Delete every entry.

        Returns:
            Number of entries deleted.
        """
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM entries")
            count = cursor.rowcount
            conn.commit()

        logger.warning("kv_store_cleared", count=count)
        return count


class InMemoryKVStore:
    """
    In-memory key-value store for testing and ephemeral usage.

    API-compatible with SQLiteKVStore.
    """

    def __init__(self):
        self._store: dict[str, str] = {}
        self._metadata: dict[str, dict] = {}

    def put(self, key: str, value: str) -> str:
        value_hash = _content_hash(value)
        self._store[key] = value
        self._metadata[key] = {"value_hash": value_hash, "char_count": len(value)}
        return value_hash

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def delete(self, key: str) -> bool:
        if key in self._store:
            del self._store[key]
            del self._metadata[key]
            return True
        return False

    def exists(self, key: str) -> bool:
        return key in self._store

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._store if k.startswith(prefix))

    def count(self) -> int:
        return len(self._store)

    def get_metadata(self, key: str) -> dict | None:
        return self._metadata.get(key)

    def clear(self) -> int:
        count = len(self._store)
        self._store.clear()
        self._metadata.clear()
        return count


# Type alias for either store
KVStore = Union[SQLiteKVStore, InMemoryKVStore]
