"""
Chat Service
============
Multi-session conversations with the assistant.

The user message is stored before the reply starts streaming; the reply is
stored once, after the stream completes. Titles for new sessions are
generated in the background and applied to whatever the session looks like
at that moment, so a rename never rolls back messages added meanwhile.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import TYPE_CHECKING, Iterator

from app.constants import CHAT_FAILURE_REPLY
from app.domain.chat import ChatMessage, ChatSession, fallback_title
from app.domain.exceptions import FloraError, NotFoundError, ValidationError
from app.enums.common import MessageRole

if TYPE_CHECKING:
    from app.services.ai.agronomy_advisor import AgronomyAdvisor
    from infrastructure.database.repositories.chat_sessions import ChatSessionRepository

logger = logging.getLogger(__name__)


class ChatService:
    """Service for chat sessions and streamed assistant replies."""

    def __init__(
        self,
        chat_repo: "ChatSessionRepository",
        advisor: "AgronomyAdvisor",
        executor: Executor | None = None,
    ):
        """
        Initialize service.

        Args:
            chat_repo: Chat session repository
            advisor: Assistant producing replies and titles
            executor: Runs title generation off the request path; titles are
                generated inline when omitted
        """
        self.repo = chat_repo
        self.advisor = advisor
        self.executor = executor

    # ========================================================================
    # Sessions
    # ========================================================================

    def list_sessions(self) -> list[ChatSession]:
        return self.repo.list_sessions()

    def get_session(self, session_id: str) -> ChatSession:
        session = self.repo.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Chat session {session_id} not found")
        return session

    def active_session(self) -> ChatSession:
        return self.repo.ensure_active_session()

    def create_session(self) -> ChatSession:
        return self.repo.create_session()

    def select_session(self, session_id: str) -> ChatSession:
        return self.repo.select_session(session_id)

    def delete_session(self, session_id: str) -> ChatSession:
        """Delete a session; returns the session that is active afterwards."""
        return self.repo.delete_session(session_id)

    # ========================================================================
    # Messages
    # ========================================================================

    def send_message(self, session_id: str, text: str) -> Iterator[str]:
        """
        Store a user message and return an iterator over the reply chunks.

        Validation and the user-message write happen before this returns, so
        errors surface to the caller before any chunk is produced. The model
        message is committed when the iterator is exhausted.
        """
        if not text or not text.strip():
            raise ValidationError("Message text is required")
        text = text.strip()

        session = self.repo.append_message(session_id, ChatMessage(MessageRole.USER, text))
        if session.has_placeholder_title and session.user_message_count == 1:
            self._schedule_title(session_id, text)

        return self._stream_reply(session)

    def _stream_reply(self, session: ChatSession) -> Iterator[str]:
        chunks: list[str] = []
        try:
            for chunk in self.advisor.stream_chat(list(session.history)):
                chunks.append(chunk)
                yield chunk
        except FloraError as exc:
            logger.error("Chat reply failed for session %s: %s", session.id, exc)
            self._commit_reply(session.id, CHAT_FAILURE_REPLY)
            yield ("\n\n" if chunks else "") + CHAT_FAILURE_REPLY
            return
        self._commit_reply(session.id, "".join(chunks))

    def _commit_reply(self, session_id: str, text: str) -> None:
        try:
            self.repo.append_message(session_id, ChatMessage(MessageRole.MODEL, text))
        except NotFoundError:
            # Session was deleted while the reply streamed
            logger.info("Dropping reply for deleted chat session %s", session_id)

    # ========================================================================
    # Titles
    # ========================================================================

    def _schedule_title(self, session_id: str, first_message: str) -> Future | None:
        if self.executor is None:
            self._apply_title(session_id, first_message)
            return None
        future = self.executor.submit(self._apply_title, session_id, first_message)
        future.add_done_callback(self._log_title_failure)
        return future

    def _apply_title(self, session_id: str, first_message: str) -> None:
        try:
            title = self.advisor.generate_chat_title(first_message)
        except FloraError as exc:
            logger.warning("Falling back to default chat title: %s", exc)
            title = fallback_title(first_message)

        try:
            self.repo.update_session(
                session_id,
                lambda current: current.with_title(title) if current.has_placeholder_title else current,
            )
        except NotFoundError:
            logger.info("Chat session %s deleted before its title was ready", session_id)

    @staticmethod
    def _log_title_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Chat title task failed: %s", exc, exc_info=exc)
