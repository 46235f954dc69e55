"""Key-value byte stores backing the prompt library.

The library treats storage as an opaque mapping of string keys to bytes.
:class:`SQLiteKeyValueStore` persists to a single-table SQLite database and
commits ``set_many`` in one transaction; :class:`InMemoryKeyValueStore` keeps
values in a dictionary and offers no cross-key atomicity.

Updates:
  v0.2.0 - 2026-10-17 - Add set_many so multi-key writes commit together on SQLite.
  v0.1.0 - 2026-10-16 - Initial SQLite and in-memory stores.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.exceptions import WriteError

from .base import (
    RepositoryError,
    connect as _connect,
    ensure_directory as _ensure_directory,
    logger,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol implemented by every storage backend."""

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for *key* or None when absent."""
        ...

    def set(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, raising WriteError on failure."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        ...

    def set_many(self, items: Iterable[tuple[str, bytes]]) -> None:
        """Store several keys, raising WriteError on the first failure."""
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store used by tests and embedders."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._values: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._values.get(key)

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise WriteError(key, f"Storage values must be bytes, got {type(value).__name__}")
        self._values[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def set_many(self, items: Iterable[tuple[str, bytes]]) -> None:
        for key, value in items:
            self.set(key, value)

    def snapshot(self) -> dict[str, bytes]:
        """Return a copy of every stored key and value."""
        return dict(self._values)


class SQLiteKeyValueStore:
    """SQLite-backed key-value store."""

    _TABLE = "kv_store"

    def __init__(self, db_path: str | Path) -> None:
        """Initialise storage and ensure the schema exists."""
        self._db_path = Path(db_path)
        _ensure_directory(self._db_path)
        try:
            with _connect(self._db_path) as conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {self._TABLE} ("
                    "key TEXT PRIMARY KEY, "
                    "value BLOB NOT NULL, "
                    "updated_at TEXT NOT NULL"
                    ");"
                )
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to initialise storage at {self._db_path}") from exc

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get(self, key: str) -> bytes | None:
        try:
            with _connect(self._db_path) as conn:
                row = conn.execute(
                    f"SELECT value FROM {self._TABLE} WHERE key = ?;",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to read storage key {key!r}") from exc
        if row is None:
            return None
        return bytes(row["value"])

    def set(self, key: str, value: bytes) -> None:
        self.set_many([(key, value)])

    def delete(self, key: str) -> None:
        try:
            with _connect(self._db_path) as conn:
                conn.execute(f"DELETE FROM {self._TABLE} WHERE key = ?;", (key,))
        except sqlite3.Error as exc:
            raise WriteError(key, f"Failed to delete storage key {key!r}") from exc

    def set_many(self, items: Iterable[tuple[str, bytes]]) -> None:
        rows = [
            (key, sqlite3.Binary(value), datetime.now(UTC).isoformat())
            for key, value in items
        ]
        if not rows:
            return
        keys = ", ".join(row[0] for row in rows)
        try:
            with _connect(self._db_path) as conn:
                conn.executemany(
                    f"INSERT INTO {self._TABLE} (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET "
                    "value = excluded.value, updated_at = excluded.updated_at;",
                    rows,
                )
        except sqlite3.Error as exc:
            raise WriteError(keys, f"Failed to write storage keys {keys}") from exc
        logger.debug("Persisted storage keys: %s", keys)


__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "SQLiteKeyValueStore"]
