"""
Farm Logbook API
================

Endpoints for:
- Listing and filtering logbook entries by day range
- Entry detail, deletion and merged timeline
- Manual action logs and post-treatment follow-ups
- Saving plant identifications

Diagnoses are recorded through ``/assistant/diagnose``.
"""
from __future__ import annotations

import json
import logging

from flask import Blueprint

from app.blueprints.api._common import (
    get_logbook_service as _logbook_service,
    get_json,
    parse_model,
    parse_query,
    success as _success,
)
from app.domain.exceptions import ValidationError
from app.schemas.logbook import LogbookQuery, ManualLogRequest, SaveIdentificationRequest
from app.utils.http import safe_route
from app.utils.media import media_from_request, request_payload
from infrastructure.database.pagination import paginate

logger = logging.getLogger("logbook_api")

logbook_api = Blueprint("logbook_api", __name__)


def _entry_dict(entry) -> dict:
    return entry.to_dict()


@logbook_api.get("/entries")
@safe_route("Failed to list logbook entries")
def list_entries():
    """
    List logbook entries, newest first.

    Query params: start, end (YYYY-MM-DD, inclusive), limit, offset
    """
    query = parse_query(LogbookQuery)
    service = _logbook_service()
    if query.start or query.end:
        entries = service.filter_entries(query.start, query.end)
    else:
        entries = service.list_entries()
    page = paginate(entries, limit=query.limit, offset=query.offset)
    return _success(page.to_dict(_entry_dict))


@logbook_api.get("/entries/<entry_id>")
@safe_route("Failed to load logbook entry")
def get_entry(entry_id: str):
    return _success(_logbook_service().get_entry(entry_id).to_dict())


@logbook_api.delete("/entries/<entry_id>")
@safe_route("Failed to delete logbook entry")
def delete_entry(entry_id: str):
    removed = _logbook_service().delete_entry(entry_id)
    return _success({"id": removed.id}, message="Entry deleted")


@logbook_api.get("/entries/<entry_id>/timeline")
@safe_route("Failed to build timeline")
def get_timeline(entry_id: str):
    events = _logbook_service().timeline(entry_id)
    return _success({"entry_id": entry_id, "events": [event.to_dict() for event in events]})


@logbook_api.post("/entries/<entry_id>/logs")
@safe_route("Failed to add manual log")
def add_manual_log(entry_id: str):
    """
    Append a manual action log.

    Request body:
    {
        "action_type": "watering|fertilizing|spraying|pruning|other",
        "notes": "Watered 2 litres",
        "date": "2024-05-01"            (optional)
    }
    """
    body = parse_model(ManualLogRequest, get_json())
    entry = _logbook_service().add_manual_log(entry_id, body.action_type, body.notes, body.date)
    return _success(entry.to_dict(), 201)


@logbook_api.post("/entries/<entry_id>/follow-ups")
@safe_route("Failed to add follow-up")
def add_follow_up(entry_id: str):
    """Assess a post-treatment image (``image`` data URI or multipart file) against a diagnosis."""
    image = media_from_request("image")
    entry = _logbook_service().add_follow_up(entry_id, image)
    return _success(entry.to_dict(), 201)


@logbook_api.post("/identifications")
@safe_route("Failed to save identification")
def save_identification():
    """
    Save an identification result shown by ``/assistant/identify``.

    JSON body ``{"image": "data:...", "plant_info": {...}}``, or multipart
    with an ``image`` file and ``plant_info`` as a JSON string field.
    """
    image = media_from_request("image")
    plant_info = request_payload().get("plant_info")
    if isinstance(plant_info, str):
        try:
            plant_info = json.loads(plant_info)
        except json.JSONDecodeError as exc:
            raise ValidationError("plant_info must be a JSON object") from exc
    body = parse_model(SaveIdentificationRequest, {"image": image, "plant_info": plant_info})
    entry = _logbook_service().save_identification(body.image, body.plant_info)
    return _success(entry.to_dict(), 201)
