"""
Community API
=============

Pseudonymous community feed: posts, likes and comments.
"""
from __future__ import annotations

import logging

from flask import Blueprint

from app.blueprints.api._common import (
    get_community_service as _community_service,
    get_json,
    parse_model,
    parse_query,
    success as _success,
)
from app.schemas.community import CreateCommentRequest, CreatePostRequest, PageQuery
from app.services.ai.llm_backends import ContentPart
from app.utils.http import safe_route
from app.utils.media import media_from_request, request_payload

logger = logging.getLogger("community_api")

community_api = Blueprint("community_api", __name__)


@community_api.get("/posts")
@safe_route("Failed to list posts")
def list_posts():
    query = parse_query(PageQuery)
    service = _community_service()
    page = service.list_posts(limit=query.limit, offset=query.offset)
    return _success(page.to_dict(service.serialize))


@community_api.post("/posts")
@safe_route("Failed to create post")
def create_post():
    """
    Create a post. ``image`` is optional: a data URI, an http(s) URL or a
    multipart file.
    """
    payload = request_payload()
    body = parse_model(CreatePostRequest, payload)
    image = body.image
    if image is None:
        image = media_from_request("image", required=False)
    elif image.startswith("data:"):
        ContentPart.from_data_uri(image)
    service = _community_service()
    post = service.create_post(body.text, image)
    return _success(service.serialize(post), 201)


@community_api.post("/posts/<post_id>/like")
@safe_route("Failed to like post")
def like_post(post_id: str):
    service = _community_service()
    return _success(service.serialize(service.like(post_id)))


@community_api.post("/posts/<post_id>/comments")
@safe_route("Failed to add comment")
def add_comment(post_id: str):
    body = parse_model(CreateCommentRequest, get_json())
    service = _community_service()
    return _success(service.serialize(service.add_comment(post_id, body.text)), 201)
