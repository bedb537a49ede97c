"""
Logbook Schemas
===============

Request schemas for logbook endpoints.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from app.enums.common import ActionType
from app.schemas.ai_results import PlantInfo


class LogbookQuery(BaseModel):
    """Query parameters for listing logbook entries."""

    start: date | None = Field(default=None, description="Inclusive start day (YYYY-MM-DD)")
    end: date | None = Field(default=None, description="Inclusive end day (YYYY-MM-DD)")
    limit: int | None = Field(default=None, ge=1, le=500)
    offset: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class ManualLogRequest(BaseModel):
    """Request schema for appending a manual action log."""

    action_type: ActionType = Field(..., description="watering, fertilizing, spraying, pruning or other")
    notes: str = Field(..., min_length=1, description="What was done (required)")
    date: str | None = Field(default=None, description="ISO date of the action; defaults to now")

    @field_validator("notes")
    @classmethod
    def notes_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("notes must not be blank")
        return v.strip()


class SaveIdentificationRequest(BaseModel):
    """Request schema for saving an identification result."""

    image: str = Field(..., min_length=1, description="Data URI of the identified image")
    plant_info: PlantInfo = Field(..., description="Result returned by /assistant/identify")
