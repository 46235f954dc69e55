"""Storage backends for the prompt library.

Updates:
  v0.2.0 - 2026-10-17 - Expose set_many-capable SQLite and in-memory stores.
  v0.1.0 - 2026-10-16 - Replace the relational repository with a key-value store.
"""

from __future__ import annotations

from .base import RepositoryError
from .kv_store import InMemoryKeyValueStore, KeyValueStore, SQLiteKeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RepositoryError",
    "SQLiteKeyValueStore",
]
