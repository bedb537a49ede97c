"""
Schemas Module
==============

Pydantic models for request validation and for the structured answers of
the generative assistant.
"""

from app.schemas.ai_results import (
    CalendarEvent,
    CalendarTask,
    CareInstructions,
    ChemicalTreatment,
    CropCalendarResult,
    DiagnosisResult,
    PlantDiseaseInfo,
    PlantInfo,
    PlantingDensityAnalysis,
    Severity,
    Treatment,
    VideoAnalysisResult,
    VideoAnalysisSection,
    WeatherAlert,
    WeatherAlertsInfo,
)
from app.schemas.assistant import CropCalendarRequest, DiagnoseRequestOptions, GeoPosition, WeatherAlertsRequest
from app.schemas.chat import SendMessageRequest
from app.schemas.community import CreateCommentRequest, CreatePostRequest, PageQuery
from app.schemas.logbook import LogbookQuery, ManualLogRequest, SaveIdentificationRequest

__all__ = [
    "CalendarEvent",
    "CalendarTask",
    "CareInstructions",
    "ChemicalTreatment",
    "CreateCommentRequest",
    "CreatePostRequest",
    "CropCalendarRequest",
    "CropCalendarResult",
    "DiagnoseRequestOptions",
    "DiagnosisResult",
    "GeoPosition",
    "LogbookQuery",
    "ManualLogRequest",
    "PageQuery",
    "PlantDiseaseInfo",
    "PlantInfo",
    "PlantingDensityAnalysis",
    "SaveIdentificationRequest",
    "SendMessageRequest",
    "Severity",
    "Treatment",
    "VideoAnalysisResult",
    "VideoAnalysisSection",
    "WeatherAlert",
    "WeatherAlertsInfo",
]
