from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from typing import Any

from pydantic import Field, field_validator

from deltanotes.core.models.base import AppBaseModel


class NoteCreate(AppBaseModel):
    title: str | None = Field(default=None, max_length=255, description="Note title")
    content: dict[str, Any] = Field(description='Delta JSON, e.g. {"ops": [{"insert": "Hello\\n"}]}')
    language: str | None = Field(default=None, max_length=16, description="Skip detection and use this code")
    language_confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    @field_validator("title")
    @classmethod
    def normalize_title(cls, v: str | None) -> str | None:
        # Blank titles are stored as NULL
        if v is None:
            return None
        return v.strip() or None


class NoteFromText(AppBaseModel):
    """Plain text import, e.g. a voice transcription."""

    text: str = Field(max_length=100000)
    title: str | None = Field(default=None, max_length=255)

    @field_validator("title")
    @classmethod
    def normalize_title(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class NoteUpdate(AppBaseModel):
    title: str | None = Field(default=None, max_length=255)
    content: dict[str, Any] | None = None
    language: str | None = Field(default=None, max_length=16)
    language_confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class NoteRead(AppBaseModel):
    id: str
    user_id: str
    title: str | None
    content: dict[str, Any]
    language: str | None
    language_confidence: float | None
    created_at: datetime
    updated_at: datetime | None


class NoteCount(AppBaseModel):
    count: int
