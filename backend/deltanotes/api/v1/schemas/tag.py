from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import Field

from deltanotes.core.models.base import AppBaseModel


class TagCreate(AppBaseModel):
    name: str = Field(min_length=1, max_length=50)
    color: str | None = Field(default=None, description="Hex color; defaults to the configured tag color")
    icon: str | None = Field(default=None, max_length=32)
    description: str | None = Field(default=None, max_length=500)


class TagUpdate(AppBaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    color: str | None = None
    icon: str | None = Field(default=None, max_length=32)
    description: str | None = Field(default=None, max_length=500)


class TagRead(AppBaseModel):
    id: str
    user_id: str
    name: str
    color: str
    icon: str | None
    description: str | None
    usage_count: int
    created_at: datetime
    display_name: str
