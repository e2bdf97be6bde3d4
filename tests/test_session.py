"""Tests for SessionScope cancellation and the EditorSession built on it."""

from __future__ import annotations

import asyncio

import pytest

from deltanotes.core.failures import AuthFailure, UnknownFailure, ValidationFailure
from deltanotes.core.models.note import Note
from deltanotes.core.services.editor_session import EditorSession
from deltanotes.core.services.note_service import NoteService
from deltanotes.core.session import SessionScope
from tests.conftest import USER_ID, delta, unwrap


class TestSessionScope:
    async def test_run_returns_result(self) -> None:
        async def work() -> int:
            return 42

        async with SessionScope() as scope:
            assert await scope.run(work()) == 42
            assert scope.pending == 0

    async def test_close_cancels_in_flight_work(self) -> None:
        scope = SessionScope()
        started = asyncio.Event()
        finished = []

        async def slow() -> str:
            started.set()
            await asyncio.sleep(10)
            finished.append(True)
            return "late"

        waiter = asyncio.create_task(scope.run(slow()))
        await started.wait()
        await scope.close()

        assert await waiter is None
        assert finished == []
        assert scope.closed

    async def test_run_after_close_is_discarded(self) -> None:
        scope = SessionScope()
        await scope.close()
        ran = []

        async def work() -> None:
            ran.append(True)

        assert await scope.run(work()) is None
        assert ran == []

    async def test_errors_propagate(self) -> None:
        async def boom() -> None:
            raise ValueError("bad")

        scope = SessionScope()
        with pytest.raises(ValueError):
            await scope.run(boom())


class BlockingNoteService(NoteService):
    """Note service whose create waits until released."""

    def __init__(self, inner: NoteService) -> None:
        self._inner = inner
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def create_note(self, user_id, content, title=None, language=None, language_confidence=None):
        self.started.set()
        await self.release.wait()
        return await self._inner.create_note(user_id, content, title=title)


class TestEditorSession:
    """Editing state, save guards and cancellation on close."""

    async def test_save_new_note_derives_title(self, note_service: NoteService) -> None:
        session = EditorSession(note_service, USER_ID)
        session.insert(0, "Shopping list\nmilk\n")
        session.format(0, 8, {"bold": True})

        note = unwrap(await session.save())

        assert note.title == "Shopping list"
        assert note.content["ops"][0] == {"insert": "Shopping", "attributes": {"bold": True}}
        assert session.note_id == note.id
        assert not session.has_unsaved_changes
        assert not session.is_new_note

    async def test_second_save_updates(self, note_service: NoteService, fake_client) -> None:
        session = EditorSession(note_service, USER_ID)
        session.load_plain_text("Draft\n")
        first = unwrap(await session.save())
        session.insert(5, " two")

        second = unwrap(await session.save(title="Final"))

        assert second.id == first.id
        assert second.title == "Final"
        assert len(fake_client.tables["notes"]) == 1

    async def test_load_note(self, note_service: NoteService) -> None:
        note = unwrap(await note_service.create_note(USER_ID, delta("Loaded\n")))
        session = EditorSession(note_service, USER_ID)

        assert session.load_note(note).is_success
        assert session.document.to_plain_text() == "Loaded\n"
        assert not session.can_save

    async def test_load_unparseable_note(self, note_service: NoteService) -> None:
        note = Note(id="n1", user_id=USER_ID, content={"ops": [{"insert": 5}]})
        session = EditorSession(note_service, USER_ID)

        result = session.load_note(note)

        assert isinstance(result.error, UnknownFailure)
        assert result.error.message == "Failed to parse note content"

    async def test_empty_document_cannot_be_saved(self, note_service: NoteService, fake_client) -> None:
        session = EditorSession(note_service, USER_ID)
        session.load_plain_text("  \n")

        result = await session.save()

        assert isinstance(result.error, ValidationFailure)
        assert result.error.message == "Cannot save empty note"
        assert fake_client.calls == []

    async def test_anonymous_session_cannot_save(self, note_service: NoteService) -> None:
        session = EditorSession(note_service, None)
        session.load_plain_text("text\n")

        result = await session.save()

        assert isinstance(result.error, AuthFailure)

    async def test_concurrent_save_is_rejected(self, note_service: NoteService) -> None:
        blocking = BlockingNoteService(note_service)
        session = EditorSession(blocking, USER_ID)
        session.load_plain_text("text\n")

        first = asyncio.create_task(session.save())
        await blocking.started.wait()
        second = await session.save()
        blocking.release.set()

        assert second.error.message == "Save already in progress"
        assert unwrap(await first).title == "text"

    async def test_close_abandons_in_flight_save(self, note_service: NoteService, fake_client) -> None:
        blocking = BlockingNoteService(note_service)
        session = EditorSession(blocking, USER_ID)
        session.load_plain_text("text\n")

        pending = asyncio.create_task(session.save())
        await blocking.started.wait()
        await session.close()

        assert await pending is None
        assert session.closed
        assert session.has_unsaved_changes
        assert fake_client.tables["notes"] == []
