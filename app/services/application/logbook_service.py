"""
Logbook Service
===============
Business logic for the farm logbook.

Consolidates:
- Plant identification (shown first, saved on request)
- Disease diagnosis (recorded immediately)
- Manual action logs (watering, fertilizing, ...)
- Post-treatment follow-ups assessed by the assistant
- Per-entry timelines and date-range browsing

The assistant only produces the *content* of new entries; it never reads or
writes the logbook itself.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from app.constants import Messages
from app.domain.exceptions import ConflictError, NotFoundError, StaleRequestError, ValidationError
from app.domain.logbook import (
    DiagnosisEntry,
    FollowUp,
    IdentificationEntry,
    LogbookEntry,
    ManualLog,
    TimelineEvent,
    build_timeline,
)
from app.enums.common import ActionType
from app.schemas.ai_results import PlantInfo
from app.services.ai.llm_backends import ContentPart
from app.utils.concurrency import RequestTracker
from app.utils.time import coerce_datetime, iso_now

if TYPE_CHECKING:
    from app.services.ai.agronomy_advisor import AgronomyAdvisor
    from infrastructure.database.repositories.logbook import LogbookRepository
    from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


class LogbookService:
    """Service for managing farm logbook entries."""

    def __init__(
        self,
        logbook_repo: "LogbookRepository",
        advisor: "AgronomyAdvisor",
        request_tracker: RequestTracker | None = None,
        audit_logger: "AuditLogger" | None = None,
    ):
        """
        Initialize service.

        Args:
            logbook_repo: Logbook repository
            advisor: Assistant used for identification, diagnosis and follow-up assessment
            request_tracker: Tracks in-flight diagnosis requests so superseded results are dropped
            audit_logger: Optional audit trail for mutations
        """
        self.repo = logbook_repo
        self.advisor = advisor
        self.request_tracker = request_tracker or RequestTracker()
        self.audit_logger = audit_logger

    # ========================================================================
    # Identification
    # ========================================================================

    def identify_plant(self, image_ref: str) -> PlantInfo:
        """Identify the plant in an image without saving anything."""
        return self.advisor.identify_plant(ContentPart.from_data_uri(image_ref))

    def save_identification(self, image_ref: str, plant_info: PlantInfo | dict) -> IdentificationEntry:
        """
        Save an identification result to the logbook.

        Raises:
            ConflictError: a plant with the same scientific name is already saved
        """
        ContentPart.from_data_uri(image_ref)
        info = plant_info if isinstance(plant_info, PlantInfo) else PlantInfo.model_validate(plant_info)
        if info.is_unrecognized:
            raise ValidationError("Only identified plants can be saved")

        existing = self.repo.find_identification(info.scientific_name)
        if existing is not None:
            raise ConflictError(
                f"{info.plant_name} is already in the logbook",
                detail={"entry_id": existing.id},
            )

        entry = IdentificationEntry(
            id=self.repo.next_id(),
            date=iso_now(),
            image_ref=image_ref,
            plant_info=info.model_dump(mode="json"),
        )
        self.repo.create_entry(entry)
        self._audit("create", entry.id, kind="identification")
        return entry

    # ========================================================================
    # Diagnosis
    # ========================================================================

    def diagnose_and_record(self, image_ref: str, scope: str = "default") -> DiagnosisEntry:
        """
        Diagnose an image and record the result as a new logbook entry.

        A newer call on the same ``scope`` made while this one waited on the
        assistant supersedes it: this call's result is discarded.

        Raises:
            UnrecognizedResultError: the assistant found nothing it could name
            StaleRequestError: superseded by a newer request
        """
        image = ContentPart.from_data_uri(image_ref)
        token = self.request_tracker.begin(f"diagnosis:{scope}")
        try:
            result = self.advisor.diagnose_disease(image)
        except Exception:
            self.request_tracker.finish(token)
            raise

        if not self.request_tracker.finish(token):
            logger.info("Discarding superseded diagnosis result for scope %s", scope)
            raise StaleRequestError(Messages.STALE_REQUEST)

        entry = DiagnosisEntry(
            id=self.repo.next_id(),
            date=iso_now(),
            image_ref=image_ref,
            diagnosis_result=result.model_dump(mode="json"),
        )
        self.repo.create_entry(entry)
        self._audit("create", entry.id, kind="diagnosis", issues=len(result.diagnoses))
        return entry

    # ========================================================================
    # Logs and follow-ups
    # ========================================================================

    def add_manual_log(
        self,
        entry_id: str,
        action_type: ActionType | str,
        notes: str,
        date: str | None = None,
    ) -> LogbookEntry:
        """
        Append a manual action log to an entry.

        Args:
            entry_id: Logbook entry ID
            action_type: watering, fertilizing, spraying, pruning or other
            notes: Free text (required)
            date: ISO date of the action; defaults to now
        """
        if not notes or not notes.strip():
            raise ValidationError("Notes are required for a manual log")
        try:
            action = ActionType(action_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown action type: {action_type}") from exc
        if date is not None and coerce_datetime(date) is None:
            raise ValidationError("date must be an ISO-8601 date or timestamp")

        log = ManualLog(
            id=self.repo.next_id(),
            date=date or iso_now(),
            action_type=action,
            notes=notes.strip(),
        )
        entry = self.repo.append_manual_log(entry_id, log)
        self._audit("manual_log", entry_id, action_type=action.value)
        return entry

    def add_follow_up(self, entry_id: str, image_ref: str) -> DiagnosisEntry:
        """
        Assess a post-treatment image against a diagnosis and attach the result.

        Raises:
            NotFoundError: unknown entry
            ValidationError: the entry is not a diagnosis
        """
        after = ContentPart.from_data_uri(image_ref)
        entry = self.get_entry(entry_id)
        if not isinstance(entry, DiagnosisEntry):
            raise ValidationError("Follow-ups can only be added to diagnosis entries")

        assessment = self.advisor.evaluate_treatment(
            before=ContentPart.from_data_uri(entry.image_ref),
            after=after,
            issue_name=entry.primary_issue_name,
        )
        follow_up = FollowUp(id=self.repo.next_id(), date=iso_now(), image_ref=image_ref, assessment=assessment)
        updated = self.repo.append_follow_up(entry_id, follow_up)
        self._audit("follow_up", entry_id)
        return updated

    # ========================================================================
    # Queries
    # ========================================================================

    def list_entries(self) -> list[LogbookEntry]:
        return self.repo.list_entries()

    def filter_entries(self, start: date | None = None, end: date | None = None) -> list[LogbookEntry]:
        if start and end and start > end:
            raise ValidationError("start must not be after end")
        return self.repo.filter_by_date_range(start, end)

    def get_entry(self, entry_id: str) -> LogbookEntry:
        entry = self.repo.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Logbook entry {entry_id} not found")
        return entry

    def delete_entry(self, entry_id: str) -> LogbookEntry:
        removed = self.repo.delete_entry(entry_id)
        self._audit("delete", entry_id)
        return removed

    def timeline(self, entry_id: str) -> list[TimelineEvent]:
        return build_timeline(self.get_entry(entry_id))

    # ------------------------------------------------------------------
    def _audit(self, action: str, entry_id: str, **metadata) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log_event("user", action, f"logbook:{entry_id}", "success", **metadata)
