from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime  # noqa: TCH003
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deltanotes.core.models.note import Note, NoteFilter


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Contract used by services and dependency injection. Implementations
    perform I/O and raise the store's own exceptions; translating them into
    failures is the service's job.
    """

    @abstractmethod
    async def create(self, row: dict[str, Any]) -> Note:  # pragma: no cover - interface only
        """Insert a new note row and return the stored entity."""

    @abstractmethod
    async def get(self, note_id: str) -> Note | None:  # pragma: no cover
        """Fetch a note by id or return None if not found."""

    @abstractmethod
    async def list(
        self,
        *,
        user_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Note]:  # pragma: no cover
        """Return a user's notes, most recently updated first."""

    @abstractmethod
    async def update_fields(self, note_id: str, changes: dict[str, Any]) -> Note | None:  # pragma: no cover
        """Partially update fields on a note and return the updated entity, or None if missing."""

    @abstractmethod
    async def delete(self, note_id: str) -> bool:  # pragma: no cover
        """Delete a note by id. Return True if a row was removed, False otherwise."""

    @abstractmethod
    async def search(self, *, user_id: str, note_filter: NoteFilter) -> Sequence[Note]:  # pragma: no cover
        """Full-text and tag search, then the remaining filter criteria."""

    @abstractmethod
    async def list_updated_since(self, *, user_id: str, since: datetime) -> Sequence[Note]:  # pragma: no cover
        """Notes updated strictly after ``since``, newest first."""

    @abstractmethod
    async def count(self, *, user_id: str) -> int:  # pragma: no cover
        """Exact number of notes owned by the user."""

    @abstractmethod
    async def list_by_language(
        self,
        *,
        user_id: str,
        language_code: str,
        min_confidence: float | None = None,
    ) -> Sequence[Note]:  # pragma: no cover
        """Notes in a language, optionally above a confidence threshold."""
