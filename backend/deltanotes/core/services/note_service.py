from __future__ import annotations

from typing import TYPE_CHECKING, Any

from deltanotes.core.failures import (
    NOT_FOUND_CODE,
    DatabaseFailure,
    ValidationFailure,
    failure_from_exception,
)
from deltanotes.core.models.note import NoteFilter
from deltanotes.core.result import Failure, Result, Success
from deltanotes.core.services.document_converter import DocumentConverter
from deltanotes.core.services.language_detection_service import fallback_language
from deltanotes.utils.logging import get_logger

if TYPE_CHECKING:
    from datetime import datetime

    from deltanotes.core.models.note import Note
    from deltanotes.core.repositories.note_repository import NoteRepository
    from deltanotes.core.services.language_detection_service import (
        DetectedLanguage,
        LanguageDetectionService,
    )

logger = get_logger(__name__)

EMPTY_CONTENT_MESSAGE = "Note content cannot be empty"


def _not_found(note_id: str) -> Failure:
    return Failure(DatabaseFailure(message=f"Note with ID {note_id} not found", code=NOT_FOUND_CODE))


class NoteService:
    """Validated note CRUD with automatic language tagging.

    Every method returns a ``Result``. Validation happens before any remote
    call; remote and unexpected errors are translated into failures here and
    never escape.
    """

    def __init__(
        self,
        repo: NoteRepository,
        language_detection: LanguageDetectionService,
        converter: DocumentConverter | None = None,
    ) -> None:
        self._repo = repo
        self._language_detection = language_detection
        self._converter = converter or DocumentConverter()

    async def create_note(
        self,
        user_id: str,
        content: dict[str, Any],
        title: str | None = None,
        language: str | None = None,
        language_confidence: float | None = None,
    ) -> Result[Note]:
        logger.info("Creating note for user: %s", user_id)
        plain = self._validated_plain_text(content)
        if plain.is_failure:
            return plain

        if language is None:
            detected = await self._detect(plain.data)
            language, language_confidence = detected.language_code, detected.confidence

        row = {
            "user_id": user_id,
            "title": title,
            "content": content,
            "language": language,
            "language_confidence": language_confidence,
        }
        try:
            note = await self._repo.create(row)
        except Exception as err:
            logger.error("Error creating note", exc_info=err)
            return Failure(failure_from_exception(err, "create note"))
        logger.info("Note created successfully: %s", note.id)
        return Success(note)

    async def create_note_from_text(
        self,
        user_id: str,
        text: str,
        title: str | None = None,
    ) -> Result[Note]:
        """Create a note from plain text such as a voice transcription."""
        document = self._converter.from_plain_text(text)
        return await self.create_note(user_id, self._converter.to_content(document), title=title)

    async def update_note(
        self,
        note_id: str,
        title: str | None = None,
        content: dict[str, Any] | None = None,
        language: str | None = None,
        language_confidence: float | None = None,
    ) -> Result[Note]:
        """Partially update a note; only supplied fields are sent.

        Language is re-detected only when content changes and no language is
        given explicitly.
        """
        logger.info("Updating note: %s", note_id)
        changes: dict[str, Any] = {}
        if title is not None:
            changes["title"] = title

        if content is not None:
            plain = self._validated_plain_text(content)
            if plain.is_failure:
                return plain
            changes["content"] = content
            if language is None:
                detected = await self._detect(plain.data)
                language, language_confidence = detected.language_code, detected.confidence

        if language is not None:
            changes["language"] = language
            changes["language_confidence"] = language_confidence

        if not changes:
            logger.warning("Update called with no fields to update")
            return await self.get_note(note_id)

        try:
            note = await self._repo.update_fields(note_id, changes)
        except Exception as err:
            logger.error("Error updating note", exc_info=err)
            return Failure(failure_from_exception(err, "update note"))
        if note is None:
            logger.warning("Note not found for update: %s", note_id)
            return _not_found(note_id)
        logger.info("Note updated successfully: %s", note.id)
        return Success(note)

    async def delete_note(self, note_id: str) -> Result[None]:
        logger.info("Deleting note: %s", note_id)
        try:
            deleted = await self._repo.delete(note_id)
        except Exception as err:
            logger.error("Error deleting note", exc_info=err)
            return Failure(failure_from_exception(err, "delete note"))
        if not deleted:
            logger.warning("Note not found for deletion: %s", note_id)
            return _not_found(note_id)
        return Success(None)

    async def get_note(self, note_id: str) -> Result[Note]:
        try:
            note = await self._repo.get(note_id)
        except Exception as err:
            logger.error("Error fetching note", exc_info=err)
            return Failure(failure_from_exception(err, "fetch note"))
        if note is None:
            return _not_found(note_id)
        return Success(note)

    async def get_all_notes(
        self,
        user_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Result[list[Note]]:
        logger.debug("Fetching notes for user %s (limit: %s, offset: %s)", user_id, limit, offset)
        try:
            notes = await self._repo.list(user_id=user_id, limit=limit, offset=offset)
        except Exception as err:
            logger.error("Error fetching notes", exc_info=err)
            return Failure(failure_from_exception(err, "fetch notes"))
        return Success(list(notes))

    async def search_notes(self, user_id: str, note_filter: NoteFilter | None = None) -> Result[list[Note]]:
        note_filter = note_filter or NoteFilter.empty()
        logger.debug("Searching notes for user %s with %d active filters", user_id, note_filter.active_filter_count)
        try:
            notes = await self._repo.search(user_id=user_id, note_filter=note_filter)
        except Exception as err:
            logger.error("Error searching notes", exc_info=err)
            return Failure(failure_from_exception(err, "search notes"))
        return Success(list(notes))

    async def get_notes_updated_since(self, user_id: str, since: datetime) -> Result[list[Note]]:
        try:
            notes = await self._repo.list_updated_since(user_id=user_id, since=since)
        except Exception as err:
            logger.error("Error fetching updated notes", exc_info=err)
            return Failure(failure_from_exception(err, "fetch updated notes"))
        return Success(list(notes))

    async def get_note_count(self, user_id: str) -> Result[int]:
        try:
            count = await self._repo.count(user_id=user_id)
        except Exception as err:
            logger.error("Error counting notes", exc_info=err)
            return Failure(failure_from_exception(err, "fetch note count"))
        return Success(count)

    async def get_notes_by_language(
        self,
        user_id: str,
        language_code: str,
        min_confidence: float | None = None,
    ) -> Result[list[Note]]:
        try:
            notes = await self._repo.list_by_language(
                user_id=user_id,
                language_code=language_code,
                min_confidence=min_confidence,
            )
        except Exception as err:
            logger.error("Error fetching notes by language", exc_info=err)
            return Failure(failure_from_exception(err, "fetch notes by language"))
        return Success(list(notes))

    def _validated_plain_text(self, content: dict[str, Any]) -> Result[str]:
        plain = self._converter.extract_plain_text(content)
        if plain.is_failure:
            logger.warning("Rejected note content that is not a delta document")
            return plain
        if not plain.data.strip():
            logger.warning("Attempted to save note with empty content")
            return Failure(ValidationFailure(message=EMPTY_CONTENT_MESSAGE, field="content"))
        return plain

    async def _detect(self, text: str) -> DetectedLanguage:
        """Detect the language of ``text``, falling back rather than failing the save."""
        try:
            result = await self._language_detection.detect_language(text)
        except Exception as err:
            logger.warning("Language detection raised, using fallback", exc_info=err)
            return fallback_language(0.0)
        if result.is_failure:
            logger.warning("Language detection failed, using fallback: %s", result.error)
            return fallback_language(0.0)
        return result.data
