"""
Chat API
========

Multi-session chat with the assistant. Replies are streamed as
``text/plain`` chunks; the full reply is stored once the stream ends.
"""
from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import (
    get_chat_service as _chat_service,
    get_json,
    parse_model,
    success as _success,
)
from app.schemas.chat import SendMessageRequest
from app.utils.http import safe_route

logger = logging.getLogger("chat_api")

chat_api = Blueprint("chat_api", __name__)


@chat_api.get("/sessions")
@safe_route("Failed to list chat sessions")
def list_sessions():
    service = _chat_service()
    active = service.active_session()
    return _success(
        {
            "sessions": [session.to_dict() for session in service.list_sessions()],
            "active_session_id": active.id,
        }
    )


@chat_api.post("/sessions")
@safe_route("Failed to create chat session")
def create_session():
    return _success(_chat_service().create_session().to_dict(), 201)


@chat_api.get("/sessions/<session_id>")
@safe_route("Failed to load chat session")
def get_session(session_id: str):
    return _success(_chat_service().get_session(session_id).to_dict())


@chat_api.delete("/sessions/<session_id>")
@safe_route("Failed to delete chat session")
def delete_session(session_id: str):
    active = _chat_service().delete_session(session_id)
    return _success({"deleted": session_id, "active_session": active.to_dict()})


@chat_api.post("/sessions/<session_id>/select")
@safe_route("Failed to select chat session")
def select_session(session_id: str):
    return _success(_chat_service().select_session(session_id).to_dict())


@chat_api.post("/sessions/<session_id>/messages")
@safe_route("Failed to send message")
def send_message(session_id: str):
    """
    Send a user message and stream the reply.

    Request body: {"text": "How often should I water tomatoes?"}
    """
    body = parse_model(SendMessageRequest, get_json())
    chunks = _chat_service().send_message(session_id, body.text)
    return Response(
        chunks,
        content_type="text/plain; charset=utf-8",
        headers={"X-Chat-Session-Id": session_id, "Cache-Control": "no-cache"},
    )
