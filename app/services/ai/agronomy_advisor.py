"""
Agronomy Advisor
================
High-level assistant that wraps an :class:`LLMBackend` and turns images,
video and text into typed agronomy results: plant identification, disease
diagnosis, field video analysis, weather-driven disease alerts, crop
calendars, treatment follow-up assessments and chat replies.

Structured calls send a response schema derived from the pydantic models in
``app.schemas.ai_results`` and validate the JSON that comes back. Two kinds
of failure are kept apart:

* transport failures (network, HTTP, unreadable JSON) raise
  :class:`ExternalServiceError`;
* answers in which the model says it could not conclude (an ``error``
  field, an "unknown" plant, no diagnoses) raise
  :class:`UnrecognizedResultError` carrying a user-facing message.

Usage
-----
::

    advisor = AgronomyAdvisor(backend=my_backend, language="Persian")
    info = advisor.identify_plant(ContentPart.from_data_uri(image_data_uri))
    print(info.plant_name, info.care_instructions.watering)
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Iterator, TypeVar

from pydantic import ValidationError as PydanticValidationError

from app.constants import CHAT_TITLE_MAX_WORDS, Messages
from app.domain.chat import ChatMessage, fallback_title
from app.domain.exceptions import ConfigurationError, ExternalServiceError, FloraError, UnrecognizedResultError
from app.schemas.ai_results import (
    AssistantModel,
    CropCalendarResult,
    PlantDiseaseInfo,
    PlantInfo,
    VideoAnalysisResult,
    WeatherAlertsInfo,
)
from app.services.ai.llm_backends import ChatTurn, ContentPart
from app.services.ai.response_schema import gemini_schema

if TYPE_CHECKING:
    from app.services.ai.llm_backends import LLMBackend

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=AssistantModel)

WEB_SEARCH_TOOL = {"google_search_retrieval": {}}


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_IDENTIFY_PROMPT = (
    "Identify the plant in this image. Give its common and scientific name and, when possible, "
    "its specific variety or cultivar (for example 'cherry tomato'). Provide a short description and "
    "detailed care instructions for watering, sunlight, soil, fertilizer and pruning. State whether it is "
    "poisonous to pets or people. Answer in {language}. If you cannot identify the plant, return an object "
    "whose 'plantName' is 'unknown' and whose 'error' field explains why."
)

_DIAGNOSE_PROMPT = (
    "Analyse the plant in this image and detect every problem: disease, pest or nutrient deficiency. "
    "For each problem give its type, name, description, severity (low/moderate/high/critical) with an "
    "estimated percentage of the plant affected, possible causes and prevention tips. For treatment list "
    "organic options; for chemical treatment suggest products common in the region and give for each its "
    "name, chemical group and usage instructions. Add a clear note on resistance management by rotating "
    "chemical groups. Finish with an overall health summary. Answer in {language}, following the JSON "
    "schema. If no problem can be detected, fill the 'error' field."
)

_VIDEO_PROMPT = (
    "You are an agronomist inspecting a field through a video. Analyse it carefully:\n"
    "1. Section by section: split the video into meaningful time ranges; for each give a health status "
    "(healthy/suspicious/diseased), a detailed description and the specific issues seen "
    "(diseases, pests, water stress...).\n"
    "2. Planting density: rate it (optimal/dense/sparse) and give a practical recommendation "
    "(for example thinning).\n"
    "3. Overall summary of the health of the whole field or row shown.\n"
    "Answer in {language}, as JSON following the schema."
)

_WEATHER_PROMPT = (
    "Using web search for the current weather and the 5-day forecast at latitude {latitude} and "
    "longitude {longitude}, analyse the risk of common garden plant diseases (such as powdery mildew, "
    "black spot, rust). Include the location name, an overall summary and a list of specific alerts, "
    "each with a risk level (low/moderate/high), the disease name, the weather reason and a suggested "
    "preventive action. Answer in {language}, as JSON."
)

_CALENDAR_PROMPT = (
    "Create a detailed crop calendar for '{crop}' planted on '{planting_date}' at latitude {latitude} "
    "and longitude {longitude}. Use web search to understand the climate and usual growing season of "
    "the region. Schedule key tasks such as fertilizing, watering, preventive spraying, pruning, "
    "inspection and harvest, grouped by week since planting, and give the growth stage of each period. "
    "Answer in {language}, as JSON."
)

_EVALUATE_PROMPT = (
    "You are an agronomist. A plant first diagnosed with '{issue_name}' has been treated. The first "
    "image shows the plant at diagnosis time and the second image shows the same plant after treatment. "
    "Compare the two images and assess how effective the treatment was: has the plant improved, stayed "
    "the same or got worse? Give a short, clear analysis in {language} and further recommendations if needed."
)

_TITLE_PROMPT = (
    'Based on this user question, write a short descriptive title for the chat session (at most '
    '{max_words} words). Question: "{message}". Return only the title, in {language}.'
)

_CHAT_SYSTEM_PROMPT = (
    "You are Flora, an expert agricultural assistant. Your tone is friendly, encouraging and "
    "knowledgeable. Give helpful, concise advice on everything related to farming and gardening. "
    "Answer in {language} and use markdown for lists or emphasis where useful."
)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps JSON in."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = [ln for ln in cleaned.split("\n") if not ln.strip().startswith("```")]
        cleaned = "\n".join(lines).strip()
    return cleaned


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AgronomyAdvisor:
    """
    Typed front-end to the generative backend.

    Parameters
    ----------
    backend:
        An initialised :class:`LLMBackend`. ``None`` means every call raises
        :class:`ConfigurationError`.
    language:
        Language the model is asked to answer in.
    video_model:
        Model used for field video analysis.
    """

    def __init__(
        self,
        backend: "LLMBackend" | None = None,
        language: str = "Persian",
        video_model: str | None = "gemini-2.5-pro",
    ):
        self._backend = backend
        self._language = language
        self._video_model = video_model

    # -- public API ---------------------------------------------------------

    @property
    def is_available(self) -> bool:
        """``True`` when the backing LLM is ready."""
        return self._backend is not None and self._backend.is_available

    @property
    def provider_name(self) -> str:
        """Name of the active backend, or ``"none"``."""
        if self._backend is not None:
            return self._backend.name
        return "none"

    def identify_plant(self, image: ContentPart) -> PlantInfo:
        result = self._structured(
            [image, ContentPart.from_text(_IDENTIFY_PROMPT.format(language=self._language))],
            PlantInfo,
        )
        if result.is_unrecognized:
            raise UnrecognizedResultError(result.error or Messages.IDENTIFICATION_FAILED)
        return result

    def diagnose_disease(self, image: ContentPart) -> PlantDiseaseInfo:
        result = self._structured(
            [image, ContentPart.from_text(_DIAGNOSE_PROMPT.format(language=self._language))],
            PlantDiseaseInfo,
        )
        if result.is_unrecognized:
            raise UnrecognizedResultError(result.error or Messages.DIAGNOSIS_FAILED)
        return result

    def analyze_video(self, video: ContentPart) -> VideoAnalysisResult:
        result = self._structured(
            [video, ContentPart.from_text(_VIDEO_PROMPT.format(language=self._language))],
            VideoAnalysisResult,
            model=self._video_model,
        )
        self._reject_error(result)
        return result

    def weather_alerts(self, latitude: float, longitude: float) -> WeatherAlertsInfo:
        prompt = _WEATHER_PROMPT.format(latitude=latitude, longitude=longitude, language=self._language)
        result = self._structured([ContentPart.from_text(prompt)], WeatherAlertsInfo, tools=[WEB_SEARCH_TOOL])
        self._reject_error(result)
        return result

    def crop_calendar(self, crop: str, planting_date: str, latitude: float, longitude: float) -> CropCalendarResult:
        prompt = _CALENDAR_PROMPT.format(
            crop=crop,
            planting_date=planting_date,
            latitude=latitude,
            longitude=longitude,
            language=self._language,
        )
        result = self._structured([ContentPart.from_text(prompt)], CropCalendarResult, tools=[WEB_SEARCH_TOOL])
        self._reject_error(result)
        return result

    def evaluate_treatment(self, before: ContentPart, after: ContentPart, issue_name: str) -> str:
        """Compare a diagnosis image with a post-treatment image; return the assessment text."""
        prompt = _EVALUATE_PROMPT.format(issue_name=issue_name or "unknown", language=self._language)
        response = self._require_backend().generate([before, ContentPart.from_text(prompt), after])
        assessment = response.text.strip()
        if not assessment:
            raise ExternalServiceError("The assistant returned an empty assessment")
        return assessment

    def generate_chat_title(self, first_message: str) -> str:
        """Short title for a chat; falls back to the message prefix if the backend fails."""
        prompt = _TITLE_PROMPT.format(
            max_words=CHAT_TITLE_MAX_WORDS, message=first_message, language=self._language
        )
        try:
            response = self._require_backend().generate([ContentPart.from_text(prompt)])
        except FloraError as exc:
            logger.warning("Chat title generation failed, using fallback: %s", exc)
            return fallback_title(first_message)
        title = response.text.strip().replace('"', "")
        return title or fallback_title(first_message)

    def stream_chat(self, history: list[ChatMessage]) -> Iterator[str]:
        """Stream the reply to the last user message of ``history``."""
        turns = [ChatTurn(role=message.role.value, text=message.text) for message in history]
        system = _CHAT_SYSTEM_PROMPT.format(language=self._language)
        return self._require_backend().stream(turns, system_instruction=system)

    # -- internal -----------------------------------------------------------

    def _require_backend(self) -> "LLMBackend":
        if not self.is_available:
            raise ConfigurationError("No generative backend is configured")
        return self._backend  # type: ignore[return-value]

    def _structured(
        self,
        parts: list[ContentPart],
        result_model: type[ResultT],
        *,
        model: str | None = None,
        tools: list[dict] | None = None,
    ) -> ResultT:
        response = self._require_backend().generate(
            parts,
            response_schema=gemini_schema(result_model),
            model=model,
            tools=tools,
        )
        try:
            data = json.loads(strip_code_fences(response.text))
        except json.JSONDecodeError as exc:
            logger.error("%s response was not valid JSON: %.200s", result_model.__name__, response.text)
            raise ExternalServiceError("The assistant returned an unreadable answer") from exc
        try:
            return result_model.model_validate(data)
        except PydanticValidationError as exc:
            # A bare {"error": "..."} is a refusal, not a broken answer
            if isinstance(data, dict) and data.get("error"):
                raise UnrecognizedResultError(str(data["error"])) from exc
            logger.error("%s response did not match the schema: %s", result_model.__name__, exc.errors()[:3])
            raise ExternalServiceError("The assistant returned an incomplete answer") from exc

    @staticmethod
    def _reject_error(result: VideoAnalysisResult | WeatherAlertsInfo | CropCalendarResult) -> None:
        if result.error:
            raise UnrecognizedResultError(result.error)
