"""
Farm Logbook Domain
===================
Entries of the unified farm logbook: plant identifications and disease
diagnoses, each growing over time with manual action logs and (diagnoses
only) post-treatment follow-ups.

Entries are immutable values. Appending a log or follow-up produces a new
entry object; ``id``, ``date`` and ``image_ref`` never change.

``entry_from_dict`` reads both the current snake_case layout and the
camelCase layout written by earlier releases (``imageDataUrl``,
``plantInfo``, ``diagnosis``, ``manualLogs``, ``followUps``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, ClassVar

from app.enums.common import ActionType, EntryType, TimelineEventKind
from app.schemas.ai_results import normalize_diagnosis_payload, normalize_plant_info_payload
from app.utils.time import timestamp_sort_key

logger = logging.getLogger(__name__)


def _pick(data: dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _child_id(data: dict[str, Any], fallback_id: str) -> str:
    """Stored id of a nested record; older records without one get *fallback_id*."""
    raw = data.get("id")
    if raw is None or raw == "":
        return fallback_id or str(data.get("date") or "")
    return str(raw)


@dataclass(frozen=True, slots=True)
class ManualLog:
    """A grower-authored action record (watering, pruning...)."""

    id: str
    date: str
    action_type: ActionType
    notes: str

    def __post_init__(self) -> None:
        if not isinstance(self.action_type, ActionType):
            object.__setattr__(self, "action_type", ActionType(self.action_type))

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, fallback_id: str = "") -> "ManualLog":
        raw_action = _pick(data, "action_type", "actionType", default=ActionType.OTHER.value)
        try:
            action = ActionType(raw_action)
        except ValueError:
            logger.warning("Unknown manual log action %r stored as 'other'", raw_action)
            action = ActionType.OTHER
        return cls(
            id=_child_id(data, fallback_id),
            date=str(data.get("date") or ""),
            action_type=action,
            notes=str(data.get("notes") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "action_type": self.action_type.value,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class FollowUp:
    """Post-treatment image with the assistant's assessment of the treatment."""

    id: str
    date: str
    image_ref: str
    assessment: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, fallback_id: str = "") -> "FollowUp":
        return cls(
            id=_child_id(data, fallback_id),
            date=str(data.get("date") or ""),
            image_ref=str(_pick(data, "image_ref", "imageRef", "imageDataUrl", default="")),
            assessment=str(data.get("assessment") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "image_ref": self.image_ref,
            "assessment": self.assessment,
        }


@dataclass(frozen=True, slots=True)
class _Entry:
    id: str
    date: str
    image_ref: str

    type: ClassVar[EntryType]

    @property
    def sort_key(self) -> datetime:
        return timestamp_sort_key(self.date)

    def with_manual_log(self, log: ManualLog):
        return replace(self, manual_logs=(*self.manual_logs, log))


@dataclass(frozen=True, slots=True)
class IdentificationEntry(_Entry):
    """A saved plant identification."""

    plant_info: dict[str, Any] = field(default_factory=dict)
    manual_logs: tuple[ManualLog, ...] = ()
    notes: str = ""

    type: ClassVar[EntryType] = EntryType.IDENTIFICATION

    @property
    def scientific_name(self) -> str:
        return str(_pick(self.plant_info, "scientific_name", "scientificName", default=""))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "date": self.date,
            "image_ref": self.image_ref,
            "plant_info": self.plant_info,
            "manual_logs": [log.to_dict() for log in self.manual_logs],
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class DiagnosisEntry(_Entry):
    """A recorded disease diagnosis."""

    diagnosis_result: dict[str, Any] = field(default_factory=dict)
    manual_logs: tuple[ManualLog, ...] = ()
    follow_ups: tuple[FollowUp, ...] = ()

    type: ClassVar[EntryType] = EntryType.DIAGNOSIS

    @property
    def primary_issue_name(self) -> str:
        """Issue name of the first diagnosed problem, or an empty string."""
        diagnoses = self.diagnosis_result.get("diagnoses") or []
        if not diagnoses or not isinstance(diagnoses[0], dict):
            return ""
        return str(_pick(diagnoses[0], "issue_name", "issueName", default=""))

    def with_follow_up(self, follow_up: FollowUp) -> "DiagnosisEntry":
        return replace(self, follow_ups=(*self.follow_ups, follow_up))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "date": self.date,
            "image_ref": self.image_ref,
            "diagnosis_result": self.diagnosis_result,
            "manual_logs": [log.to_dict() for log in self.manual_logs],
            "follow_ups": [item.to_dict() for item in self.follow_ups],
        }


LogbookEntry = IdentificationEntry | DiagnosisEntry


def _infer_type(data: dict[str, Any]) -> EntryType:
    raw = data.get("type")
    if raw:
        return EntryType(raw)
    if any(key in data for key in ("diagnosis_result", "diagnosisResult", "diagnosis")):
        return EntryType.DIAGNOSIS
    return EntryType.IDENTIFICATION


def entry_from_dict(data: dict[str, Any]) -> LogbookEntry:
    """Build an entry from a stored record in either the unified or the legacy layout.

    Raises:
        KeyError: ``id`` is missing
        ValueError: ``type`` names an unknown variant
    """
    entry_type = _infer_type(data)
    entry_id = str(data["id"])
    common = {
        "id": entry_id,
        "date": str(data.get("date") or ""),
        "image_ref": str(_pick(data, "image_ref", "imageRef", "imageDataUrl", default="")),
        "manual_logs": tuple(
            ManualLog.from_dict(item, fallback_id=f"{entry_id}-log-{index}")
            for index, item in enumerate(_pick(data, "manual_logs", "manualLogs", default=[]))
        ),
    }
    if entry_type is EntryType.DIAGNOSIS:
        payload = _pick(data, "diagnosis_result", "diagnosisResult", "diagnosis", default={})
        return DiagnosisEntry(
            diagnosis_result=normalize_diagnosis_payload(payload),
            follow_ups=tuple(
                FollowUp.from_dict(item, fallback_id=f"{entry_id}-follow-up-{index}")
                for index, item in enumerate(_pick(data, "follow_ups", "followUps", default=[]))
            ),
            **common,
        )
    payload = _pick(data, "plant_info", "plantInfo", default={})
    return IdentificationEntry(
        plant_info=normalize_plant_info_payload(payload),
        notes=str(data.get("notes") or ""),
        **common,
    )


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TimelineEvent:
    """One item of an entry's merged history; ``kind`` is for display only."""

    kind: TimelineEventKind
    date: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "date": self.date, "payload": self.payload}


def build_timeline(entry: LogbookEntry) -> list[TimelineEvent]:
    """Merge creation, manual logs and follow-ups of ``entry``, newest first."""
    if isinstance(entry, DiagnosisEntry):
        events = [TimelineEvent(TimelineEventKind.DIAGNOSIS, entry.date, entry.diagnosis_result)]
        events.extend(
            TimelineEvent(TimelineEventKind.FOLLOW_UP, item.date, item.to_dict()) for item in entry.follow_ups
        )
    else:
        events = [TimelineEvent(TimelineEventKind.IDENTIFICATION, entry.date, entry.plant_info)]
    events.extend(TimelineEvent(TimelineEventKind.MANUAL_LOG, log.date, log.to_dict()) for log in entry.manual_logs)
    return sorted(events, key=lambda event: timestamp_sort_key(event.date), reverse=True)
