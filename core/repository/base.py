"""Shared repository helpers and error hierarchy.

Updates:
  v0.2.0 - 2026-10-16 - Trim helpers down to the key-value storage layer.
  v0.1.0 - 2026-10-15 - Extract logger, helpers, and exceptions for storage backends.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from core.exceptions import PromptLibraryError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prompt_library.repository")


class RepositoryError(PromptLibraryError):
    """Base exception for repository failures."""


def ensure_directory(path: Path) -> None:
    """Ensure the directory for the SQLite database exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def connect(db_path: Path) -> sqlite3.Connection:
    """Return a configured SQLite connection."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


def json_dumps_bytes(value: Any) -> bytes:
    """Serialize *value* to compact UTF-8 JSON bytes."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def json_loads_bytes(value: bytes | None) -> Any | None:
    """Deserialize stored JSON bytes, returning None for missing or corrupt values."""
    if value is None:
        return None
    try:
        return json.loads(value.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable stored value: %s", exc)
        return None


__all__ = [
    "RepositoryError",
    "connect",
    "ensure_directory",
    "json_dumps_bytes",
    "json_loads_bytes",
    "logger",
]
