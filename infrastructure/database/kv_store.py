"""
Key-Value Persistence Adapter
=============================

Every logical collection (logbook, chat sessions, community posts) lives
under one string key holding one JSON document. The adapter knows nothing
about entity shapes.

Reading a value that no longer parses as JSON is not an error for the
caller: the corrupt key is logged, removed, and reported as absent so the
owning collection simply starts over empty.

Two implementations share the contract:

- :class:`SQLiteKeyValueStore` keeps one row per key in ``kv_store``.
- :class:`InMemoryKeyValueStore` keeps raw JSON strings in a dict and is
  used by tests and throwaway runs.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol, runtime_checkable

from app.domain.exceptions import RepositoryError
from app.utils.time import iso_now
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


def encode_value(value: Any) -> str:
    """Serialize a JSON-compatible value, keeping non-ASCII text readable."""
    return json.dumps(value, ensure_ascii=False)


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous string-keyed JSON store."""

    def get(self, key: str) -> Any | None:
        """Return the decoded value, or ``None`` when absent or corrupt."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Serialize ``value`` and overwrite whatever is stored under ``key``."""
        ...

    def remove(self, key: str) -> None:
        """Delete ``key``; a missing key is not an error."""
        ...

    def contains(self, key: str) -> bool:
        ...

    def keys(self) -> list[str]:
        ...


class InMemoryKeyValueStore:
    """Dict-backed store holding raw JSON strings, like browser local storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
            if raw is None:
                return None
            try:
                return json.loads(raw)
            except ValueError:
                logger.warning("Discarding corrupt value stored under %r", key)
                self._data.pop(key, None)
                return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = encode_value(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store an already-serialized string verbatim (test helper)."""
        with self._lock:
            self._data[key] = raw

    def get_raw(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SQLiteKeyValueStore:
    """Key-value store backed by the ``kv_store`` table."""

    def __init__(self, db_handler: SQLiteDatabaseHandler) -> None:
        self._db = db_handler

    def get(self, key: str) -> Any | None:
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt value stored under %r", key)
            self.remove(key)
            return None

    def get_raw(self, key: str) -> str | None:
        try:
            with self._db.connection() as db:
                row = db.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except Exception as exc:
            logger.error("Failed to read key %r: %s", key, exc, exc_info=True)
            raise RepositoryError(f"Failed to read {key}") from exc
        return row["value"] if row else None

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, encode_value(value))

    def set_raw(self, key: str, raw: str) -> None:
        try:
            with self._db.connection() as db:
                db.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, raw, iso_now()),
                )
        except Exception as exc:
            logger.error("Failed to write key %r: %s", key, exc, exc_info=True)
            raise RepositoryError(f"Failed to write {key}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._db.connection() as db:
                db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except Exception as exc:
            logger.error("Failed to remove key %r: %s", key, exc, exc_info=True)
            raise RepositoryError(f"Failed to remove {key}") from exc

    def contains(self, key: str) -> bool:
        with self._db.connection() as db:
            row = db.execute("SELECT 1 FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row is not None

    def keys(self) -> list[str]:
        with self._db.connection() as db:
            rows = db.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

