"""Idempotent migrations of legacy store layouts into the unified collections.

Each migration is gated on its *target* key: once the unified collection holds
data the migration returns immediately and never runs again. Legacy source keys
are removed unconditionally after a run so they are never considered twice;
records that cannot be converted are carried over as stored rather than lost.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from app.constants import (
    CHAT_SESSIONS_KEY,
    LEGACY_CHAT_HISTORY_KEY,
    LEGACY_DIAGNOSIS_KEY,
    LEGACY_GARDEN_KEY,
    LOGBOOK_KEY,
    NEW_CHAT_TITLE,
)
from app.domain.chat import ChatMessage, ChatSession, fallback_title
from app.domain.logbook import entry_from_dict
from app.enums.common import EntryType, MessageRole
from app.utils.time import coerce_datetime, epoch_ms_to_iso, iso_now, timestamp_ms, timestamp_sort_key
from infrastructure.database.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


def date_from_legacy_id(record_id: Any) -> str:
    """Derive an ISO-8601 date from a legacy record id.

    Legacy ids are creation timestamps: millisecond epochs (``"1700000000000"``)
    become ISO UTC strings; ids that already parse as timestamps are kept.
    """
    raw = str(record_id).strip()
    if raw.isdigit():
        try:
            return epoch_ms_to_iso(raw)
        except (OverflowError, OSError, ValueError):
            logger.warning("Legacy id %r is not a usable epoch; keeping it as the date", raw)
            return raw
    if coerce_datetime(raw) is None:
        logger.warning("Legacy id %r is not a timestamp; keeping it as the date", raw)
    return raw


class LegacyStoreMigrator:
    """Merges the pre-logbook stores into the unified layouts."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Logbook
    # ------------------------------------------------------------------
    def migrate_logbook(self) -> int:
        """Fold the legacy garden and diagnosis lists into the unified logbook.

        Returns:
            Number of entries written (0 when the logbook already held data).
        """
        if self._has_data(LOGBOOK_KEY):
            return 0

        garden = self._convert_source(LEGACY_GARDEN_KEY, self._garden_record, EntryType.IDENTIFICATION)
        diagnoses = self._convert_source(LEGACY_DIAGNOSIS_KEY, self._diagnosis_record, EntryType.DIAGNOSIS)
        merged = sorted(garden + diagnoses, key=_record_date, reverse=True)

        if merged:
            self._store.set(LOGBOOK_KEY, merged)
            logger.info(
                "Migrated %d legacy identifications and %d legacy diagnoses into the logbook",
                len(garden),
                len(diagnoses),
            )

        self._store.remove(LEGACY_GARDEN_KEY)
        self._store.remove(LEGACY_DIAGNOSIS_KEY)
        return len(merged)

    @staticmethod
    def _garden_record(record: dict[str, Any]) -> dict[str, Any]:
        data = dict(record)
        data["type"] = EntryType.IDENTIFICATION.value
        if not data.get("date"):
            data["date"] = date_from_legacy_id(data["id"])
        return entry_from_dict(data).to_dict()

    @staticmethod
    def _diagnosis_record(record: dict[str, Any]) -> dict[str, Any]:
        data = dict(record)
        data["type"] = EntryType.DIAGNOSIS.value
        if not data.get("date"):
            data["date"] = date_from_legacy_id(data["id"])
        return entry_from_dict(data).to_dict()

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------
    def migrate_chat_history(self) -> int:
        """Turn the single legacy conversation into one chat session.

        Returns:
            1 when a session was created, otherwise 0.
        """
        if self._has_data(CHAT_SESSIONS_KEY):
            self._store.remove(LEGACY_CHAT_HISTORY_KEY)
            return 0

        raw = self._store.get(LEGACY_CHAT_HISTORY_KEY)
        self._store.remove(LEGACY_CHAT_HISTORY_KEY)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("Skipping legacy chat history: expected a list, got %s", type(raw).__name__)
            return 0

        history: list[ChatMessage] = []
        for item in raw:
            try:
                history.append(ChatMessage.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed legacy chat message: %s", exc)
        if not history:
            return 0

        first_user = next((m.text for m in history if m.role is MessageRole.USER), "")
        session = ChatSession(
            id=str(timestamp_ms()),
            created_at=iso_now(),
            title=fallback_title(first_user) if first_user else NEW_CHAT_TITLE,
            history=tuple(history),
        )
        self._store.set(CHAT_SESSIONS_KEY, [session.to_dict()])
        logger.info("Migrated legacy chat history (%d messages) into session %s", len(history), session.id)
        return 1

    # ------------------------------------------------------------------
    def run_all(self) -> dict[str, int]:
        counts = {
            "logbook": self.migrate_logbook(),
            "chat_sessions": self.migrate_chat_history(),
        }
        logger.info("Legacy store migration finished: %s", counts)
        return counts

    # ------------------------------------------------------------------
    def _has_data(self, key: str) -> bool:
        value = self._store.get(key)
        return bool(value)

    def _convert_source(
        self, key: str, convert: Callable[[dict[str, Any]], dict[str, Any]], entry_type: EntryType
    ) -> list[Any]:
        raw = self._store.get(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Skipping legacy source %s: expected a list, got %s", key, type(raw).__name__)
            return []

        converted: list[Any] = []
        for record in raw:
            try:
                converted.append(convert(record))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Carrying unconvertible record in %s over as stored: %s", key, exc)
                converted.append(_tagged(record, entry_type))
        return converted


def _tagged(record: Any, entry_type: EntryType) -> Any:
    if not isinstance(record, dict):
        return record
    data = {"type": entry_type.value, **record}
    if not data.get("date") and data.get("id"):
        data["date"] = date_from_legacy_id(data["id"])
    return data


def _record_date(record: Any):
    return timestamp_sort_key(record.get("date") if isinstance(record, dict) else None)
