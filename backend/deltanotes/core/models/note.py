from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from .base import AppBaseModel, TimestampedModel


class Note(TimestampedModel):
    """Note domain model.

    ``content`` holds the rich text as delta JSON in its persisted shape,
    ``{"ops": [{"insert": "..."}, ...]}``.
    """

    id: str = Field(description="Unique note identifier")
    user_id: str = Field(description="Owner of the note")

    title: str | None = Field(default=None, description="Note title")
    content: dict[str, Any] = Field(description="Rich text content as delta JSON")

    language: str | None = Field(default=None, description="Detected ISO 639-1 code or fallback code")
    language_confidence: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Language detection confidence",
    )

    @property
    def has_reliable_language(self) -> bool:
        return self.language_confidence is not None and self.language_confidence > 0.7

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "6f1c2b9e-8d0a-4c1e-9a55-2f0d7e3b1a10",
                    "user_id": "0b7a6c55-1d2e-4f3a-8b9c-0d1e2f3a4b5c",
                    "title": "Groceries",
                    "content": {"ops": [{"insert": "Milk, eggs and bread\n"}]},
                    "language": "en",
                    "language_confidence": 0.5,
                }
            ]
        }
    }


class NoteSortOrder(str, Enum):
    """Sort order for note queries."""

    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    RELEVANCE = "relevance"


class NoteFilter(AppBaseModel):
    """Filter criteria for searching and filtering notes."""

    search_query: str | None = None
    tag_ids: list[str] | None = None
    languages: list[str] | None = None
    min_language_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    created_after: datetime | None = None
    created_before: datetime | None = None
    updated_after: datetime | None = None
    updated_before: datetime | None = None
    sort_order: NoteSortOrder = NoteSortOrder.DATE_DESC
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("search_query")
    @classmethod
    def normalize_query(cls, v: str | None) -> str | None:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @classmethod
    def empty(cls) -> NoteFilter:
        return cls()

    @classmethod
    def search(cls, query: str, sort_order: NoteSortOrder = NoteSortOrder.RELEVANCE) -> NoteFilter:
        return cls(search_query=query, sort_order=sort_order)

    @classmethod
    def by_tags(cls, tag_ids: list[str], sort_order: NoteSortOrder = NoteSortOrder.DATE_DESC) -> NoteFilter:
        return cls(tag_ids=tag_ids, sort_order=sort_order)

    @classmethod
    def by_language(
        cls,
        language_code: str,
        min_confidence: float | None = None,
        sort_order: NoteSortOrder = NoteSortOrder.DATE_DESC,
    ) -> NoteFilter:
        return cls(languages=[language_code], min_language_confidence=min_confidence, sort_order=sort_order)

    @classmethod
    def recent(cls, days: int, sort_order: NoteSortOrder = NoteSortOrder.DATE_DESC) -> NoteFilter:
        return cls(created_after=datetime.now(UTC) - timedelta(days=days), sort_order=sort_order)

    @property
    def has_search_query(self) -> bool:
        return bool(self.search_query)

    @property
    def has_tag_filters(self) -> bool:
        return bool(self.tag_ids)

    @property
    def has_language_filters(self) -> bool:
        return bool(self.languages)

    @property
    def has_date_filters(self) -> bool:
        return any(
            d is not None
            for d in (self.created_after, self.created_before, self.updated_after, self.updated_before)
        )

    @property
    def has_filters(self) -> bool:
        return (
            self.search_query is not None
            or self.tag_ids is not None
            or self.languages is not None
            or self.min_language_confidence is not None
            or self.has_date_filters
        )

    @property
    def active_filter_count(self) -> int:
        count = 0
        if self.has_search_query:
            count += 1
        if self.has_tag_filters:
            count += 1
        if self.has_language_filters:
            count += 1
        if self.min_language_confidence is not None:
            count += 1
        if self.has_date_filters:
            count += 1
        return count

    def to_tsquery(self) -> str | None:
        """Convert the search query to PostgreSQL tsquery syntax (terms AND-ed)."""
        if not self.search_query:
            return None
        return " & ".join(self.search_query.split())

    def with_search(self, query: str) -> NoteFilter:
        return self.model_copy(update={"search_query": query, "sort_order": NoteSortOrder.RELEVANCE})

    def with_tags(self, tag_ids: list[str]) -> NoteFilter:
        return self.model_copy(update={"tag_ids": tag_ids})

    def with_languages(self, languages: list[str]) -> NoteFilter:
        return self.model_copy(update={"languages": languages})

    def with_sort_order(self, order: NoteSortOrder) -> NoteFilter:
        return self.model_copy(update={"sort_order": order})

    def with_pagination(self, limit: int | None = None, offset: int | None = None) -> NoteFilter:
        return self.model_copy(
            update={
                "limit": limit if limit is not None else self.limit,
                "offset": offset if offset is not None else self.offset,
            }
        )

    def clear_filters(self) -> NoteFilter:
        return NoteFilter.empty()
