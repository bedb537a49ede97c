"""
Enums Module
============

This module provides enumeration types for the Flora application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import (
    ActionType,
    CalendarTaskType,
    EntryType,
    IssueType,
    MessageRole,
    PlantingDensity,
    RiskLevel,
    SectionHealth,
    TimelineEventKind,
)

__all__ = [
    "ActionType",
    "CalendarTaskType",
    "EntryType",
    "IssueType",
    "MessageRole",
    "PlantingDensity",
    "RiskLevel",
    "SectionHealth",
    "TimelineEventKind",
]
