"""Repository for chat sessions.

All writes to an existing session go through :meth:`ChatSessionRepository.update_session`,
which applies a change function to the *currently stored* session under the
repository lock. A background title rename and a streamed reply that finish in
any order therefore both survive; neither overwrites the other with a stale copy.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from app.constants import CHAT_SESSIONS_KEY, NEW_CHAT_TITLE
from app.domain.chat import ChatMessage, ChatSession
from app.domain.exceptions import NotFoundError
from app.utils.concurrency import synchronized
from app.utils.time import iso_now, timestamp_sort_key
from infrastructure.database.kv_store import KeyValueStore
from infrastructure.database.migrations import LegacyStoreMigrator
from infrastructure.database.repositories.base import CollectionRepository

logger = logging.getLogger(__name__)


class ChatSessionRepository(CollectionRepository[ChatSession]):
    """Chat sessions, most recently created first, plus the active-session pointer."""

    storage_key = CHAT_SESSIONS_KEY

    def __init__(self, store: KeyValueStore, migrator: LegacyStoreMigrator | None = None) -> None:
        super().__init__(store)
        self._migrator = migrator if migrator is not None else LegacyStoreMigrator(store)
        self._active_id: str | None = None

    def _before_first_load(self) -> None:
        self._migrator.migrate_chat_history()

    def _decode(self, data: dict[str, Any]) -> ChatSession:
        return ChatSession.from_dict(data)

    def _encode(self, item: ChatSession) -> dict[str, Any]:
        return item.to_dict()

    # --- Queries ------------------------------------------------------------
    @synchronized
    def list_sessions(self) -> list[ChatSession]:
        return list(self._collection())

    @synchronized
    def get_session(self, session_id: str) -> ChatSession | None:
        return next((session for session in self._collection() if session.id == session_id), None)

    @synchronized
    def active_session(self) -> ChatSession | None:
        """The selected session, falling back to the most recently created one."""
        if self._active_id is not None:
            session = self.get_session(self._active_id)
            if session is not None:
                return session
        sessions = self._collection()
        if not sessions:
            return None
        latest = max(sessions, key=lambda item: timestamp_sort_key(item.created_at))
        self._active_id = latest.id
        return latest

    # --- Mutations ----------------------------------------------------------
    @synchronized
    def create_session(self, title: str = NEW_CHAT_TITLE) -> ChatSession:
        session = ChatSession(id=self.next_id(), created_at=iso_now(), title=title)
        self._replace_all([session, *self._collection()])
        self._active_id = session.id
        logger.info("Created chat session %s", session.id)
        return session

    @synchronized
    def ensure_active_session(self) -> ChatSession:
        return self.active_session() or self.create_session()

    @synchronized
    def select_session(self, session_id: str) -> ChatSession:
        session = self.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Chat session {session_id} not found")
        self._active_id = session_id
        return session

    @synchronized
    def delete_session(self, session_id: str) -> ChatSession:
        """Delete a session and return the session that is active afterwards.

        Deleting the active session activates the most recent remaining one,
        or a fresh empty session when none remain.
        """
        if self.get_session(session_id) is None:
            raise NotFoundError(f"Chat session {session_id} not found")
        remaining = [session for session in self._collection() if session.id != session_id]
        self._replace_all(remaining)
        logger.info("Deleted chat session %s", session_id)

        if self._active_id == session_id:
            self._active_id = None
        return self.ensure_active_session()

    @synchronized
    def update_session(self, session_id: str, change: Callable[[ChatSession], ChatSession]) -> ChatSession:
        """Apply ``change`` to the stored version of a session and persist the result."""
        sessions = self._collection()
        for index, session in enumerate(sessions):
            if session.id == session_id:
                updated = change(session)
                self._replace_all([*sessions[:index], updated, *sessions[index + 1:]])
                return updated
        raise NotFoundError(f"Chat session {session_id} not found")

    def append_message(self, session_id: str, message: ChatMessage) -> ChatSession:
        return self.update_session(session_id, lambda session: session.with_message(message))

    def rename_session(self, session_id: str, title: str) -> ChatSession:
        updated = self.update_session(session_id, lambda session: session.with_title(title))
        logger.debug("Renamed chat session %s to %r", session_id, title)
        return updated
