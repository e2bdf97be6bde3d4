"""Shared pydantic bases for notes, tags and delta operations."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field


class AppBaseModel(PydanticBaseModel):
    """Base model for domain models and API read models.

    Unknown fields are rejected, so a delta op carrying ``retain`` or ``delete``
    fails validation instead of being read as a bare insert. Read models such
    as ``NoteRead`` validate straight from domain objects via attributes.
    """

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class TimestampedModel(AppBaseModel):
    """Rows carrying creation and last-update timestamps."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None
