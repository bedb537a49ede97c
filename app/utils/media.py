"""
Request media helpers.

Images and videos reach the API either as base64 data URIs inside a JSON
body or as multipart file uploads. Both are normalised to a data URI string,
which is what the logbook stores as an entry's image reference.
"""

from __future__ import annotations

import base64
import mimetypes
from typing import Any

from flask import request

from app.domain.exceptions import ValidationError
from app.services.ai.llm_backends import ContentPart


def request_payload() -> dict[str, Any]:
    """JSON body, or the form fields of a multipart request."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def to_data_uri(payload: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def media_from_request(field: str = "image", *, kind: str = "image", required: bool = True) -> str | None:
    """
    Read one media item from the current request as a data URI.

    Args:
        field: JSON key or multipart field name
        kind: Expected MIME major type (``image`` or ``video``)
        required: Raise when the field is missing

    Raises:
        ValidationError: missing, empty, malformed or of the wrong type
    """
    upload = request.files.get(field) if not request.is_json else None
    if upload is not None and upload.filename:
        payload = upload.read()
        if not payload:
            raise ValidationError(f"Uploaded {field} is empty")
        mime_type = upload.mimetype or mimetypes.guess_type(upload.filename)[0] or ""
        data_uri = to_data_uri(payload, mime_type)
    else:
        data_uri = request_payload().get(field)
        if not data_uri:
            if required:
                raise ValidationError(f"Missing required field: {field}")
            return None
        if not isinstance(data_uri, str):
            raise ValidationError(f"{field} must be a data URI string")

    part = ContentPart.from_data_uri(data_uri)
    if not (part.mime_type or "").startswith(f"{kind}/"):
        raise ValidationError(f"{field} must be an {kind} file" if kind == "image" else f"{field} must be a {kind} file")
    return data_uri
