"""Chat request schemas."""

from pydantic import BaseModel, Field, field_validator


class SendMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v.strip()
