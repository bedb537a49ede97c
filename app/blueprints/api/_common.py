"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, success, fail, parse_model,
        get_logbook_service, get_chat_service, ...
    )
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

from flask import current_app, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import ValidationError
from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")

ModelT = TypeVar("ModelT", bound=BaseModel)

# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """JSON request body, or an empty dict when absent or unparsable."""
    return request.get_json(silent=True) or {}


def parse_model(model: type[ModelT], raw: Mapping[str, Any]) -> ModelT:
    """
    Validate request data against a pydantic model.

    Raises:
        ValidationError: with the pydantic error list under ``detail["errors"]``
    """
    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as ve:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in ve.errors()
        ]
        raise ValidationError("Invalid request", detail={"errors": errors}) from ve


def parse_query(model: type[ModelT]) -> ModelT:
    """Validate query-string parameters; empty values count as missing."""
    return parse_model(model, {key: value for key, value in request.args.items() if value != ""})


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)


# ============================================================================
# SERVICE ACCESSORS
# ============================================================================


def get_logbook_service():
    return get_container().logbook_service


def get_chat_service():
    return get_container().chat_service


def get_community_service():
    return get_container().community_service


def get_advisor():
    return get_container().advisor
