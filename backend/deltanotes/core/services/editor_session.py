"""Editing sessions for clients that embed deltanotes in-process.

The HTTP API is stateless and does not use this module; a desktop or worker
client holds one ``EditorSession`` per open note and drives it directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from deltanotes.core.failures import AuthFailure, UnknownFailure, ValidationFailure
from deltanotes.core.models.document import Document
from deltanotes.core.result import Failure, Result, Success
from deltanotes.core.services.document_converter import DocumentConverter
from deltanotes.core.session import SessionScope
from deltanotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from deltanotes.core.models.note import Note
    from deltanotes.core.services.note_service import NoteService

logger = get_logger(__name__)


class EditorSession:
    """State of one note editing session.

    Owns the in-memory ``Document`` and the ``SessionScope`` its saves run in.
    The document is rebuilt from ``Note.content`` on load and serialized back
    into it on save. Closing the session abandons any in-flight save.
    """

    def __init__(
        self,
        note_service: NoteService,
        user_id: str | None,
        converter: DocumentConverter | None = None,
    ) -> None:
        self._notes = note_service
        self._user_id = user_id
        self._converter = converter or DocumentConverter()
        self._scope = SessionScope("editor")
        self.document = Document()
        self.note_id: str | None = None
        self.has_unsaved_changes = False
        self.is_saving = False

    @property
    def is_new_note(self) -> bool:
        return self.note_id is None

    @property
    def can_save(self) -> bool:
        return self.has_unsaved_changes and not self.is_saving and not self._converter.is_empty(self.document)

    @property
    def closed(self) -> bool:
        return self._scope.closed

    def load_note(self, note: Note) -> Result[None]:
        parsed = self._converter.from_delta(note.content)
        if parsed.is_failure:
            logger.warning("Failed to parse content of note %s", note.id)
            return Failure(UnknownFailure(message="Failed to parse note content"))
        self.document = parsed.data
        self.note_id = note.id
        self.has_unsaved_changes = False
        return Success(None)

    def load_plain_text(self, text: str) -> None:
        """Start a new note from plain text, e.g. a voice transcription."""
        self.document = self._converter.from_plain_text(text)
        self.note_id = None
        self.has_unsaved_changes = True

    def insert(self, index: int, text: str, attributes: Mapping[str, Any] | None = None) -> None:
        self.document.insert(index, text, attributes)
        self.has_unsaved_changes = True

    def format(self, index: int, length: int, attributes: Mapping[str, Any]) -> None:
        self.document.format(index, length, attributes)
        self.has_unsaved_changes = True

    def delete(self, index: int, length: int) -> None:
        self.document.delete(index, length)
        self.has_unsaved_changes = True

    async def save(self, title: str | None = None) -> Result[Note] | None:
        """Create or update the note from the current document.

        Without a ``title`` the first line of the text is used. Returns
        ``None`` when the session was closed before the save finished.
        """
        if self.is_saving:
            return Failure(UnknownFailure(message="Save already in progress"))
        if self._converter.is_empty(self.document):
            return Failure(ValidationFailure(message="Cannot save empty note", field="content"))
        if self._user_id is None:
            return Failure(AuthFailure(message="User not authenticated"))

        content = self._converter.to_content(self.document)
        if title is None:
            title = self._converter.to_plain_text(self.document).split("\n", 1)[0].strip()
        title = title or None

        self.is_saving = True
        try:
            if self.note_id is None:
                operation = self._notes.create_note(self._user_id, content, title=title)
            else:
                operation = self._notes.update_note(self.note_id, title=title, content=content)
            result = await self._scope.run(operation)
        finally:
            self.is_saving = False

        if result is None:
            return None
        if result.is_success:
            self.note_id = result.data.id
            self.has_unsaved_changes = False
        return result

    async def close(self) -> None:
        await self._scope.close()
