from __future__ import annotations

from typing import Any

from pydantic import Field

from deltanotes.core.models.base import AppBaseModel


class DeltaContent(AppBaseModel):
    # Either an op list or {"ops": [...]}; shape is checked by the converter
    content: Any


class PlainTextRead(AppBaseModel):
    plain_text: str
    is_empty: bool


class PlainTextInput(AppBaseModel):
    text: str = Field(max_length=100000)


class DeltaRead(AppBaseModel):
    content: dict[str, Any]
