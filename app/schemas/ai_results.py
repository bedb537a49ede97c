"""
Assistant Result Schemas
========================

Typed results returned by the generative backend.

The backend is asked for camelCase JSON (``plantName``, ``issueType``...);
results are persisted and served in snake_case. Both spellings validate.

Diagnosis payloads written by earlier releases used simpler shapes:

- ``severity`` as a bare level string instead of ``{level, percentage}``
- chemical treatments as plain product names instead of
  ``{name, chemical_group, instructions}``
- Persian display labels for enum values

Those are accepted here and rewritten into the structured shape, so a
single canonical layout reaches storage.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from app.constants import UNKNOWN_PLANT_NAMES
from app.enums.common import CalendarTaskType, IssueType, PlantingDensity, RiskLevel, SectionHealth

logger = logging.getLogger(__name__)


class AssistantModel(BaseModel):
    """Base for backend results: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Plant identification
# ---------------------------------------------------------------------------


class CareInstructions(AssistantModel):
    watering: str = Field(default="", description="Watering frequency and amount.")
    sunlight: str = Field(default="", description="Light requirements.")
    soil: str = Field(default="", description="Recommended soil type, pH and drainage.")
    fertilizer: str = Field(default="", description="Fertilizer schedule and type.")
    pruning: str = Field(default="", description="Pruning advice.")


class PlantInfo(AssistantModel):
    """Identification of the plant in one image."""

    plant_name: str = Field(..., description="Common name of the plant.")
    scientific_name: str = Field(default="", description="Latin name of the plant.")
    variety: str | None = Field(default=None, description="Cultivar or variety when recognisable.")
    description: str = Field(default="", description="Short description of the plant.")
    is_poisonous: bool = Field(default=False, description="True when toxic to pets or people.")
    care_instructions: CareInstructions = Field(default_factory=CareInstructions)
    error: str | None = Field(default=None, description="Why the plant could not be identified.")

    @property
    def is_unrecognized(self) -> bool:
        return bool(self.error) or self.plant_name.strip().lower() in UNKNOWN_PLANT_NAMES


# ---------------------------------------------------------------------------
# Disease diagnosis
# ---------------------------------------------------------------------------


class Severity(AssistantModel):
    level: RiskLevel = Field(..., description="Severity level.")
    percentage: float | None = Field(default=None, ge=0, le=100, description="Estimated share of the plant affected (0-100).")

    @model_validator(mode="before")
    @classmethod
    def _from_level_string(cls, data: Any) -> Any:
        # Older payloads stored only the level label
        if isinstance(data, str):
            return {"level": data, "percentage": None}
        return data


class ChemicalTreatment(AssistantModel):
    name: str = Field(..., description="Product or active ingredient name.")
    chemical_group: str = Field(default="", description="Chemical group, for resistance management.")
    instructions: str = Field(default="", description="Application instructions.")

    @model_validator(mode="before")
    @classmethod
    def _from_name_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data, "chemical_group": "", "instructions": ""}
        return data


class Treatment(AssistantModel):
    organic: list[str] = Field(default_factory=list, description="Organic treatment options.")
    chemical: list[ChemicalTreatment] = Field(default_factory=list, description="Chemical treatment options.")
    resistance_management_note: str = Field(default="", description="Advice on rotating chemical groups.")


class DiagnosisResult(AssistantModel):
    """One detected problem (disease, pest or deficiency)."""

    issue_type: IssueType = Field(..., description="Kind of problem.")
    issue_name: str = Field(..., description="Name of the problem.")
    description: str = Field(default="", description="Symptoms and effects.")
    severity: Severity
    possible_causes: list[str] = Field(default_factory=list)
    treatment: Treatment = Field(default_factory=Treatment)
    prevention: list[str] = Field(default_factory=list)


class PlantDiseaseInfo(AssistantModel):
    """Full diagnosis of one image."""

    diagnoses: list[DiagnosisResult] = Field(default_factory=list, description="Every problem detected.")
    overall_health_summary: str = Field(default="", description="Overall health summary.")
    error: str | None = Field(default=None, description="Why no problem could be detected.")

    @property
    def is_unrecognized(self) -> bool:
        return bool(self.error) or not self.diagnoses

    @property
    def primary_issue_name(self) -> str:
        return self.diagnoses[0].issue_name if self.diagnoses else ""


# ---------------------------------------------------------------------------
# Weather alerts
# ---------------------------------------------------------------------------


class WeatherAlert(AssistantModel):
    risk_level: RiskLevel
    disease_name: str
    reason: str = Field(default="", description="Weather condition behind the alert.")
    preventative_action: str = Field(default="", description="Suggested preventive action.")


class WeatherAlertsInfo(AssistantModel):
    location_name: str = Field(default="", description="City or region of the coordinates.")
    overall_summary: str = Field(default="", description="Weather outlook and its effect on plants.")
    alerts: list[WeatherAlert] = Field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Field video analysis
# ---------------------------------------------------------------------------


class VideoAnalysisSection(AssistantModel):
    start_time: float = Field(..., ge=0, description="Section start, in seconds.")
    end_time: float = Field(..., ge=0, description="Section end, in seconds.")
    status: SectionHealth
    description: str = ""
    issues: list[str] = Field(default_factory=list)


class PlantingDensityAnalysis(AssistantModel):
    status: PlantingDensity
    recommendation: str = ""


class VideoAnalysisResult(AssistantModel):
    overall_summary: str = ""
    planting_density: PlantingDensityAnalysis
    sections: list[VideoAnalysisSection] = Field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Crop calendar
# ---------------------------------------------------------------------------


class CalendarTask(AssistantModel):
    task_type: CalendarTaskType
    description: str = ""


class CalendarEvent(AssistantModel):
    week: int = Field(..., ge=0, description="Week number counted from planting.")
    date_range: str = Field(default="", description="Calendar dates covered by the week.")
    stage: str = Field(default="", description="Growth stage during the week.")
    tasks: list[CalendarTask] = Field(default_factory=list)


class CropCalendarResult(AssistantModel):
    crop_name: str
    location_name: str = ""
    planting_date: str = ""
    schedule: list[CalendarEvent] = Field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Canonicalisation of stored payloads
# ---------------------------------------------------------------------------


def _canonical(model: type[AssistantModel], payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    try:
        return model.model_validate(payload).model_dump(mode="json")
    except ValidationError as exc:
        logger.warning("Keeping %s payload as stored; it does not validate: %s", model.__name__, exc.errors()[:3])
        return payload


def normalize_diagnosis_payload(payload: Any) -> Any:
    """Rewrite a stored diagnosis (any historical shape) into the canonical layout."""
    return _canonical(PlantDiseaseInfo, payload)


def normalize_plant_info_payload(payload: Any) -> Any:
    """Rewrite a stored identification result (camelCase or snake_case) into snake_case."""
    return _canonical(PlantInfo, payload)
