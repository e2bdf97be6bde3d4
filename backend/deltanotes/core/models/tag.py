from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import Field, field_validator

from .base import AppBaseModel

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def validate_hex_color(value: str) -> str:
    if not HEX_COLOR_RE.match(value):
        raise ValueError("Color must be a hex string such as #21409A")
    return value


class Tag(AppBaseModel):
    """User-defined label for organizing notes.

    ``usage_count`` is maintained by database triggers on ``note_tags`` and is
    never written by the application.
    """

    id: str
    user_id: str
    name: str = Field(min_length=1)
    color: str
    icon: str | None = None
    description: str | None = None
    usage_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return validate_hex_color(v)

    @property
    def is_used(self) -> bool:
        return self.usage_count > 0

    @property
    def display_name(self) -> str:
        return f"{self.icon} {self.name}" if self.icon else self.name

    @property
    def has_description(self) -> bool:
        return bool(self.description)
