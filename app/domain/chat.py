"""
Chat Session Domain
===================
Independent conversation threads with the assistant. Each session owns its
ordered message history; its title starts as a placeholder and is replaced
once, after the first user message.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from app.constants import CHAT_TITLE_FALLBACK_CHARS, NEW_CHAT_TITLE
from app.enums.common import MessageRole


def fallback_title(text: str) -> str:
    """Title made of the first characters of a message, used when no generated title is available."""
    return text.strip()[:CHAT_TITLE_FALLBACK_CHARS] + "..."


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: MessageRole
    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, MessageRole):
            object.__setattr__(self, "role", MessageRole(self.role))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        """Accept ``{role, text}`` as well as the ``{role, parts: [{text}]}`` wire shape."""
        text = data.get("text")
        if text is None:
            text = "".join(str(part.get("text", "")) for part in data.get("parts") or [])
        return cls(role=MessageRole(data["role"]), text=str(text))

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "text": self.text}


@dataclass(frozen=True, slots=True)
class ChatSession:
    id: str
    created_at: str
    title: str = NEW_CHAT_TITLE
    history: tuple[ChatMessage, ...] = field(default_factory=tuple)

    @property
    def has_placeholder_title(self) -> bool:
        return self.title == NEW_CHAT_TITLE

    @property
    def user_message_count(self) -> int:
        return sum(1 for message in self.history if message.role is MessageRole.USER)

    def with_message(self, message: ChatMessage) -> "ChatSession":
        return replace(self, history=(*self.history, message))

    def with_title(self, title: str) -> "ChatSession":
        return replace(self, title=title)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatSession":
        return cls(
            id=str(data["id"]),
            created_at=str(data.get("created_at") or data.get("createdAt") or ""),
            title=str(data.get("title") or NEW_CHAT_TITLE),
            history=tuple(ChatMessage.from_dict(item) for item in data.get("history") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "history": [message.to_dict() for message in self.history],
        }
