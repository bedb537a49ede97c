"""
Assistant API
=============

Stateless calls to the generative assistant, plus diagnosis, which is
recorded in the logbook as soon as it succeeds.

Endpoints:
- GET  /status          - backend availability
- POST /identify        - identify a plant (not saved)
- POST /diagnose        - diagnose and record
- POST /video           - field video analysis
- POST /weather-alerts  - weather-driven disease alerts
- POST /crop-calendar   - crop calendar
"""
from __future__ import annotations

import logging

from flask import Blueprint

from app.blueprints.api._common import (
    get_advisor as _advisor,
    get_logbook_service as _logbook_service,
    parse_model,
    success as _success,
)
from app.schemas.assistant import CropCalendarRequest, DiagnoseRequestOptions, WeatherAlertsRequest
from app.services.ai.llm_backends import ContentPart
from app.utils.http import safe_route
from app.utils.media import media_from_request, request_payload

logger = logging.getLogger("assistant_api")

assistant_api = Blueprint("assistant_api", __name__)


@assistant_api.get("/status")
def status():
    advisor = _advisor()
    return _success({"available": advisor.is_available, "provider": advisor.provider_name})


@assistant_api.post("/identify")
@safe_route("Plant identification failed")
def identify():
    image = media_from_request("image")
    info = _logbook_service().identify_plant(image)
    return _success(info.model_dump(mode="json"))


@assistant_api.post("/diagnose")
@safe_route("Disease diagnosis failed")
def diagnose():
    """
    Diagnose an image and record the result as a logbook entry.

    ``scope`` (optional) names the client view issuing the request; a newer
    request on the same scope makes this one answer 409.
    """
    image = media_from_request("image")
    options = parse_model(DiagnoseRequestOptions, {k: v for k, v in request_payload().items() if k == "scope"})
    entry = _logbook_service().diagnose_and_record(image, scope=options.scope)
    return _success(entry.to_dict(), 201)


@assistant_api.post("/video")
@safe_route("Video analysis failed")
def analyze_video():
    video = media_from_request("video", kind="video")
    result = _advisor().analyze_video(ContentPart.from_data_uri(video))
    return _success(result.model_dump(mode="json"))


@assistant_api.post("/weather-alerts")
@safe_route("Weather alerts failed")
def weather_alerts():
    body = parse_model(WeatherAlertsRequest, request_payload())
    result = _advisor().weather_alerts(body.latitude, body.longitude)
    return _success(result.model_dump(mode="json"))


@assistant_api.post("/crop-calendar")
@safe_route("Crop calendar failed")
def crop_calendar():
    """
    Request body:
    {
        "crop": "tomato",
        "planting_date": "2024-03-20",
        "latitude": 35.7,
        "longitude": 51.4
    }
    """
    body = parse_model(CropCalendarRequest, request_payload())
    result = _advisor().crop_calendar(body.crop, body.planting_date.isoformat(), body.latitude, body.longitude)
    return _success(result.model_dump(mode="json"))
