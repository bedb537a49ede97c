"""Repositories over the key-value store, one per persisted collection.

Base contracts are available for type-checking and dependency injection::

    from infrastructure.database.repositories.base import BaseRepository
"""

from infrastructure.database.repositories.base import BaseRepository, CollectionRepository
from infrastructure.database.repositories.chat_sessions import ChatSessionRepository
from infrastructure.database.repositories.community import CommunityPostRepository
from infrastructure.database.repositories.logbook import LogbookRepository

__all__ = [
    "BaseRepository",
    "ChatSessionRepository",
    "CollectionRepository",
    "CommunityPostRepository",
    "LogbookRepository",
]
