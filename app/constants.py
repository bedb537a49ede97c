"""
Application Constants
=====================

Centralized constants shared by the storage layer, services and blueprints.

Usage:
    from app.constants import StorageKeys, NEW_CHAT_TITLE
"""

# =============================================================================
# Storage keys (one JSON array per key)
# =============================================================================


class StorageKeys:
    """Keys of the persistent key-value store."""

    LOGBOOK = "smartAgricultureFarmLogbook"
    CHAT_SESSIONS = "smartAgricultureChatSessions"
    COMMUNITY_POSTS = "smartAgricultureCommunityPosts"

    # Consumed only by the legacy store migrator
    LEGACY_GARDEN = "smartAgricultureMyGarden"
    LEGACY_DIAGNOSIS_HISTORY = "smartAgricultureDiagnosisHistory"
    LEGACY_CHAT_HISTORY = "smartAgricultureChatHistory"


LOGBOOK_KEY = StorageKeys.LOGBOOK
CHAT_SESSIONS_KEY = StorageKeys.CHAT_SESSIONS
COMMUNITY_POSTS_KEY = StorageKeys.COMMUNITY_POSTS
LEGACY_GARDEN_KEY = StorageKeys.LEGACY_GARDEN
LEGACY_DIAGNOSIS_KEY = StorageKeys.LEGACY_DIAGNOSIS_HISTORY
LEGACY_CHAT_HISTORY_KEY = StorageKeys.LEGACY_CHAT_HISTORY


# =============================================================================
# Chat
# =============================================================================

NEW_CHAT_TITLE = "New chat"
CHAT_TITLE_FALLBACK_CHARS = 30
CHAT_TITLE_MAX_WORDS = 5

# Shown in place of a model reply when the backend fails mid-conversation
CHAT_FAILURE_REPLY = "Sorry, I ran into a problem. Please try again."


# =============================================================================
# Generative backend
# =============================================================================

# Plant names the model returns when it cannot identify the subject
UNKNOWN_PLANT_NAMES = frozenset({"unknown", "ناشناخته"})


class Messages:
    """User-facing messages for domain and transport failures."""

    IDENTIFICATION_FAILED = "The plant could not be identified. Please try a clearer image."
    DIAGNOSIS_FAILED = (
        "No issue could be detected or the image was unclear. "
        "Please try a clearer picture of the affected area."
    )
    BACKEND_FAILED = "The assistant is unavailable right now. Please try again."
    STALE_REQUEST = "A newer request replaced this one."

    # Relative post ages on the community feed
    JUST_NOW = "همین الان"
    TIME_AGO = "{count} {unit} پیش"
    TIME_UNITS = (
        (365 * 24 * 3600, "سال"),
        (30 * 24 * 3600, "ماه"),
        (24 * 3600, "روز"),
        (3600, "ساعت"),
        (60, "دقیقه"),
    )
