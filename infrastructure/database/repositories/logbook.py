"""Repository for the unified farm logbook."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from app.constants import LOGBOOK_KEY
from app.domain.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.logbook import (
    DiagnosisEntry,
    FollowUp,
    IdentificationEntry,
    LogbookEntry,
    ManualLog,
    entry_from_dict,
)
from app.utils.concurrency import synchronized
from app.utils.time import end_of_day, start_of_day
from infrastructure.database.kv_store import KeyValueStore
from infrastructure.database.migrations import LegacyStoreMigrator
from infrastructure.database.repositories.base import CollectionRepository

logger = logging.getLogger(__name__)


class LogbookRepository(CollectionRepository[LogbookEntry]):
    """Identifications and diagnoses, newest first.

    The legacy garden/diagnosis stores are folded in on first access.
    """

    storage_key = LOGBOOK_KEY

    def __init__(self, store: KeyValueStore, migrator: LegacyStoreMigrator | None = None) -> None:
        super().__init__(store)
        self._migrator = migrator if migrator is not None else LegacyStoreMigrator(store)

    def _before_first_load(self) -> None:
        self._migrator.migrate_logbook()

    def _decode(self, data: dict[str, Any]) -> LogbookEntry:
        return entry_from_dict(data)

    def _encode(self, item: LogbookEntry) -> dict[str, Any]:
        return item.to_dict()

    # --- Queries ------------------------------------------------------------
    @synchronized
    def list_entries(self) -> list[LogbookEntry]:
        return list(self._collection())

    @synchronized
    def get_entry(self, entry_id: str) -> LogbookEntry | None:
        return next((entry for entry in self._collection() if entry.id == entry_id), None)

    @synchronized
    def filter_by_date_range(self, start: date | None = None, end: date | None = None) -> list[LogbookEntry]:
        """Entries whose date falls within [start 00:00:00, end 23:59:59.999999] (UTC days).

        A missing bound leaves that side open.
        """
        lower = start_of_day(start) if start else None
        upper = end_of_day(end) if end else None
        matches = []
        for entry in self._collection():
            moment = entry.sort_key
            if lower is not None and moment < lower:
                continue
            if upper is not None and moment > upper:
                continue
            matches.append(entry)
        return matches

    @synchronized
    def find_identification(self, scientific_name: str) -> IdentificationEntry | None:
        wanted = scientific_name.strip().casefold()
        if not wanted:
            return None
        for entry in self._collection():
            if isinstance(entry, IdentificationEntry) and entry.scientific_name.strip().casefold() == wanted:
                return entry
        return None

    @synchronized
    def ids(self) -> set[str]:
        return {entry.id for entry in self._collection()}

    # --- Mutations ----------------------------------------------------------
    @synchronized
    def create_entry(self, entry: LogbookEntry) -> LogbookEntry:
        if entry.id in self.ids():
            raise ConflictError(f"Logbook entry {entry.id} already exists")
        self._replace_all([entry, *self._collection()])
        logger.info("Created logbook %s entry %s", entry.type.value, entry.id)
        return entry

    @synchronized
    def delete_entry(self, entry_id: str) -> LogbookEntry:
        entries = self._collection()
        removed = self.get_entry(entry_id)
        if removed is None:
            raise NotFoundError(f"Logbook entry {entry_id} not found")
        self._replace_all([entry for entry in entries if entry.id != entry_id])
        logger.info("Deleted logbook entry %s", entry_id)
        return removed

    @synchronized
    def append_manual_log(self, entry_id: str, log: ManualLog) -> LogbookEntry:
        return self._update(entry_id, lambda entry: entry.with_manual_log(log))

    @synchronized
    def append_follow_up(self, entry_id: str, follow_up: FollowUp) -> DiagnosisEntry:
        def _apply(entry: LogbookEntry) -> LogbookEntry:
            if not isinstance(entry, DiagnosisEntry):
                raise ValidationError("Follow-ups can only be added to diagnosis entries")
            return entry.with_follow_up(follow_up)

        return self._update(entry_id, _apply)

    def _update(self, entry_id: str, change) -> Any:
        entries = self._collection()
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                updated = change(entry)
                self._replace_all([*entries[:index], updated, *entries[index + 1:]])
                return updated
        raise NotFoundError(f"Logbook entry {entry_id} not found")
