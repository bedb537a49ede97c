"""
Common Enumerations
====================

Enums shared by the logbook, chat, community and assistant layers.

Values are the canonical English codes that are persisted and sent to the
generative backend as schema enums. Earlier releases stored the Persian
display labels instead; those are still accepted on input through
``_missing_`` so that old payloads load without a separate conversion pass.
"""

from enum import Enum

# Persian display labels written by earlier releases, keyed by enum class name
_LEGACY_VALUES: dict[str, dict[str, str]] = {
    "AreaUnit": {
        "هکتار": "hectare",
        "متر مربع": "m2",
    },
    "ActionType": {
        "آبیاری": "watering",
        "کوددهی": "fertilizing",
        "سم‌پاشی": "spraying",
        "هرس": "pruning",
        "سایر": "other",
    },
    "IssueType": {
        "بیماری": "disease",
        "آفت": "pest",
        "کمبود مواد مغذی": "nutrient_deficiency",
    },
    "RiskLevel": {
        "کم": "low",
        "متوسط": "moderate",
        "زیاد": "high",
        "بحرانی": "critical",
        "medium": "moderate",
    },
    "SectionHealth": {
        "سالم": "healthy",
        "مشکوک": "suspicious",
        "بیمار": "diseased",
    },
    "PlantingDensity": {
        "بهینه": "optimal",
        "متراکم": "dense",
        "کم‌پشت": "sparse",
    },
    "CalendarTaskType": {
        "کوددهی": "fertilizing",
        "آبیاری": "watering",
        "سم‌پاشی": "spraying",
        "هرس": "pruning",
        "بازرسی": "inspection",
        "برداشت": "harvest",
        "سایر": "other",
    },
}


class _CodedEnum(str, Enum):
    """str-valued enum that also resolves legacy labels and case variants."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        raw = value.strip()
        mapped = _LEGACY_VALUES.get(cls.__name__, {}).get(raw, raw.lower())
        for member in cls:
            if member.value == mapped:
                return member
        return None

    def __str__(self) -> str:
        return self.value


class EntryType(_CodedEnum):
    """
    Logbook entry variants.
    Used by: logbook domain, legacy store migrator
    """
    IDENTIFICATION = "identification"
    DIAGNOSIS = "diagnosis"


class ActionType(_CodedEnum):
    """
    Manual log actions a grower can record against an entry.
    Used by: logbook domain, logbook API
    """
    WATERING = "watering"
    FERTILIZING = "fertilizing"
    SPRAYING = "spraying"
    PRUNING = "pruning"
    OTHER = "other"


class TimelineEventKind(_CodedEnum):
    """Discriminant of a timeline event (display only)."""
    IDENTIFICATION = "identification"
    DIAGNOSIS = "diagnosis"
    MANUAL_LOG = "manual_log"
    FOLLOW_UP = "follow_up"


class MessageRole(_CodedEnum):
    """Author of a chat message."""
    USER = "user"
    MODEL = "model"


class IssueType(_CodedEnum):
    """
    Category of a diagnosed plant problem.
    Used by: diagnosis schema
    """
    DISEASE = "disease"
    PEST = "pest"
    NUTRIENT_DEFICIENCY = "nutrient_deficiency"


class RiskLevel(_CodedEnum):
    """
    Risk/severity levels for assessments.
    Used by: diagnosis severity, weather disease alerts
    """
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class SectionHealth(_CodedEnum):
    """Health verdict for one time range of a field video."""
    HEALTHY = "healthy"
    SUSPICIOUS = "suspicious"
    DISEASED = "diseased"


class PlantingDensity(_CodedEnum):
    """Planting density verdict of a field video."""
    OPTIMAL = "optimal"
    DENSE = "dense"
    SPARSE = "sparse"


class CalendarTaskType(_CodedEnum):
    """
    Task categories of a crop calendar.
    Used by: crop calendar schema
    """
    FERTILIZING = "fertilizing"
    WATERING = "watering"
    SPRAYING = "spraying"
    PRUNING = "pruning"
    INSPECTION = "inspection"
    HARVEST = "harvest"
    OTHER = "other"


class AreaUnit(_CodedEnum):
    """
    Field area units accepted by the calculators.
    Used by: calculator service, calculators API
    """
    HECTARE = "hectare"
    SQUARE_METER = "m2"


class DoseUnit(_CodedEnum):
    """Label dose units of a pesticide product."""
    KG_PER_HA = "kg_ha"
    L_PER_HA = "l_ha"
    ML_PER_100L = "ml_100l"
