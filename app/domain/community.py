"""
Community Feed Domain
=====================
Pseudonymous posts with nested comments. Likes only increase and comments
only append; nothing is ever edited.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Comment:
    id: str
    author_name: str
    text: str
    created_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=str(data["id"]),
            author_name=str(data.get("author_name") or data.get("authorName") or ""),
            text=str(data.get("text") or ""),
            created_at=str(data.get("created_at") or data.get("createdAt") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author_name": self.author_name,
            "text": self.text,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class CommunityPost:
    id: str
    author_name: str
    text: str
    created_at: str
    image_ref: str | None = None
    likes: int = 0
    comments: tuple[Comment, ...] = ()

    def __post_init__(self) -> None:
        if self.likes < 0:
            raise ValueError("likes must be >= 0")

    def liked(self) -> "CommunityPost":
        return replace(self, likes=self.likes + 1)

    def with_comment(self, comment: Comment) -> "CommunityPost":
        return replace(self, comments=(*self.comments, comment))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommunityPost":
        return cls(
            id=str(data["id"]),
            author_name=str(data.get("author_name") or data.get("authorName") or ""),
            text=str(data.get("text") or ""),
            created_at=str(data.get("created_at") or data.get("createdAt") or ""),
            image_ref=data.get("image_ref") or data.get("imageDataUrl") or None,
            likes=int(data.get("likes") or 0),
            comments=tuple(Comment.from_dict(item) for item in data.get("comments") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author_name": self.author_name,
            "text": self.text,
            "image_ref": self.image_ref,
            "created_at": self.created_at,
            "likes": self.likes,
            "comments": [comment.to_dict() for comment in self.comments],
        }
