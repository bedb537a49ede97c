"""
Domain Package
==============
Immutable entities of the farm assistant: logbook entries, chat sessions
and community posts, plus the application exception hierarchy.
"""

from .chat import ChatMessage, ChatSession
from .community import Comment, CommunityPost
from .logbook import (
    DiagnosisEntry,
    FollowUp,
    IdentificationEntry,
    LogbookEntry,
    ManualLog,
    TimelineEvent,
    build_timeline,
    entry_from_dict,
)

__all__ = [
    # Logbook
    "DiagnosisEntry",
    "FollowUp",
    "IdentificationEntry",
    "LogbookEntry",
    "ManualLog",
    "TimelineEvent",
    "build_timeline",
    "entry_from_dict",
    # Chat
    "ChatMessage",
    "ChatSession",
    # Community
    "Comment",
    "CommunityPost",
]
