"""
Base Repository
===============

Every collection in Flora (logbook, chat sessions, community posts) is one
JSON array stored under one key of the key-value store. Repositories share
the same load-mutate-persist cycle:

1. The collection is loaded lazily on first access (after an optional
   one-time hook, e.g. a legacy migration).
2. Mutations run under the repository's ``RLock`` so concurrent request
   threads never interleave a read-modify-write.
3. Every mutation re-serialises and writes the *entire* collection.

Stored records that fail to decode are logged and left out of the loaded
view, but they are written back unchanged on every persist so a record this
version cannot read is never erased. A value that is not a JSON array resets
the collection to empty.

Usage::

    class NoteRepository(CollectionRepository[Note]):
        storage_key = "notes"

        def _decode(self, data): return Note.from_dict(data)
        def _encode(self, item): return item.to_dict()
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Protocol, TypeVar, runtime_checkable

from app.utils.concurrency import synchronized
from app.utils.time import timestamp_ms
from infrastructure.database.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class BaseRepository(Protocol):
    """Minimal contract shared by every Flora repository."""

    storage_key: ClassVar[str]

    def reload(self) -> None:
        """Drop the cached collection so the next access reads the store again."""
        ...


class CollectionRepository(ABC, Generic[T]):
    """Repository over one JSON array in a :class:`KeyValueStore`."""

    storage_key: ClassVar[str]

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.RLock()
        self._items: list[T] | None = None
        self._undecodable: list[Any] = []
        self._last_issued_id = 0

    @abstractmethod
    def _decode(self, data: dict[str, Any]) -> T: ...

    @abstractmethod
    def _encode(self, item: T) -> dict[str, Any]: ...

    def _before_first_load(self) -> None:
        """Hook run once, under the lock, before the collection is first read."""

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @synchronized
    def reload(self) -> None:
        self._items = None
        self._undecodable = []

    @synchronized
    def _collection(self) -> list[T]:
        if self._items is None:
            self._before_first_load()
            self._items = self._read()
        return self._items

    def _read(self) -> list[T]:
        raw = self._store.get(self.storage_key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Resetting %s: stored value is not a list", self.storage_key)
            return []
        items: list[T] = []
        self._undecodable = []
        for record in raw:
            try:
                items.append(self._decode(record))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Keeping undecodable record in %s as stored: %s", self.storage_key, exc)
                self._undecodable.append(record)
        return items

    @synchronized
    def next_id(self) -> str:
        """Millisecond creation timestamp as a string, bumped past any id already taken."""
        taken = {getattr(item, "id", None) for item in self._collection()}
        taken.update(str(record.get("id")) for record in self._undecodable if isinstance(record, dict))
        candidate = max(timestamp_ms(), self._last_issued_id + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last_issued_id = candidate
        return str(candidate)

    @synchronized
    def _replace_all(self, items: list[T]) -> None:
        """Swap in a new collection and persist it in full, undecodable records included."""
        self._store.set(self.storage_key, [self._encode(item) for item in items] + self._undecodable)
        self._items = items


__all__ = ["BaseRepository", "CollectionRepository"]
