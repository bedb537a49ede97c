"""
Community Schemas
=================

Request schemas for the community feed.
"""

from pydantic import BaseModel, Field, field_validator


class CreatePostRequest(BaseModel):
    """Request schema for a new post; the image is optional."""

    text: str = Field(..., min_length=1, max_length=4000)
    image: str | None = Field(default=None, description="Data URI or URL of an attached image")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v.strip()


class CreateCommentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v.strip()


class PageQuery(BaseModel):
    limit: int | None = Field(default=None, ge=1, le=500)
    offset: int | None = Field(default=None, ge=0)
