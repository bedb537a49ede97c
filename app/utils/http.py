"""
JSON envelopes for the API.

Every response has the shape ``{"ok": bool, "data": ..., "error": ...}``.
Client errors carry the exception's own message; server-side failures are
logged with their traceback and answered with a generic message so that
backend details (API keys, upstream payloads) never reach the caller.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from app.constants import Messages
from app.utils.time import iso_now

logger = logging.getLogger(__name__)

PUBLIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    405: "Method not allowed",
    409: "Conflict",
    413: "Upload too large",
    422: "Unprocessable entity",
    500: "An internal error occurred",
    502: Messages.BACKEND_FAILED,
    503: "The assistant is not configured",
}


def _envelope(status: int, *, data: Any = None, error: dict | None = None, message: str | None = None) -> Response:
    body: dict[str, Any] = {"ok": error is None, "data": data, "error": error}
    if message is not None:
        body["message"] = message
    response = jsonify(body)
    response.status_code = status
    return response


def success_response(data: dict | list | None = None, status: int = 200, *, message: str | None = None) -> Response:
    return _envelope(status, data=data, message=message)


def error_response(message: str, status: int = 500, *, details: dict | None = None) -> Response:
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if details:
        error["details"] = details
    return _envelope(status, error=error)


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log *exc* in full and answer with the generic message for *status*."""
    logger.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    return error_response(PUBLIC_MESSAGES.get(status, PUBLIC_MESSAGES[500]), status)


def flora_error_response(exc: BaseException, context: str = "") -> Response:
    status = getattr(exc, "http_status", 500)
    if status >= 500:
        return safe_error(exc, status, context=context)
    message = str(exc) or PUBLIC_MESSAGES.get(status, "Error")
    return error_response(message, status, details=getattr(exc, "detail", None))


def safe_route(error_message: str = "An internal error occurred", *, error_status: int = 500) -> Callable:
    """Turn exceptions raised by a view into envelopes.

    ``FloraError`` subclasses answer with their own ``http_status``; anything
    else is logged under *error_message* and answered with *error_status*.
    """
    from app.domain.exceptions import FloraError

    def decorator(view: Callable) -> Callable:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return view(*args, **kwargs)
            except FloraError as exc:
                return flora_error_response(exc, context=error_message)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
