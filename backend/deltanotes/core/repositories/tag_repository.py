from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deltanotes.core.models.note import Note
    from deltanotes.core.models.tag import Tag


class TagRepository(ABC):
    """Abstract repository interface for tags and note-tag associations."""

    @abstractmethod
    async def list(self) -> Sequence[Tag]:  # pragma: no cover - interface only
        """All tags visible to the session, most used first."""

    @abstractmethod
    async def get(self, tag_id: str) -> Tag | None:  # pragma: no cover
        ...

    @abstractmethod
    async def create(self, row: dict[str, Any]) -> Tag:  # pragma: no cover
        ...

    @abstractmethod
    async def update_fields(self, tag_id: str, changes: dict[str, Any]) -> Tag | None:  # pragma: no cover
        ...

    @abstractmethod
    async def delete(self, tag_id: str) -> bool:  # pragma: no cover
        """Delete a tag; associations go with it."""

    @abstractmethod
    async def add_to_note(self, *, note_id: str, tag_id: str) -> None:  # pragma: no cover
        ...

    @abstractmethod
    async def remove_from_note(self, *, note_id: str, tag_id: str) -> None:  # pragma: no cover
        ...

    @abstractmethod
    async def tags_for_note(self, note_id: str) -> Sequence[Tag]:  # pragma: no cover
        ...

    @abstractmethod
    async def notes_for_tag(self, tag_id: str) -> Sequence[Note]:  # pragma: no cover
        ...
