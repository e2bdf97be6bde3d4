"""Pytest fixtures for deltanotes tests.

Repositories run against an in-memory fake of the Supabase client, so the
whole stack below the HTTP layer is exercised without a network.
"""

from __future__ import annotations

from typing import Any

import pytest

from deltanotes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from deltanotes.core.repositories.implementations.supabase.tag_repository import SupabaseTagRepository
from deltanotes.core.result import Failure, Result, Success
from deltanotes.core.services.document_converter import DocumentConverter
from deltanotes.core.services.language_detection_service import DetectedLanguage, LanguageDetectionService
from deltanotes.core.services.note_service import NoteService
from deltanotes.core.services.tag_service import TagService
from tests.fakes import FakeSupabaseClient

USER_ID = "0b7a6c55-1d2e-4f3a-8b9c-0d1e2f3a4b5c"


def delta(*texts: str) -> dict[str, Any]:
    """Build stored note content from plain inserts."""
    return {"ops": [{"insert": t} for t in texts]}


class RecordingDetector(LanguageDetectionService):
    """Language detector returning a fixed answer and recording its inputs."""

    def __init__(self, result: Result[DetectedLanguage] | None = None) -> None:
        super().__init__()
        self.result = result or Success(DetectedLanguage(language_code="en", confidence=0.8))
        self.calls: list[str] = []

    async def detect_language(self, text: str) -> Result[DetectedLanguage]:
        self.calls.append(text)
        return self.result


class RaisingDetector(LanguageDetectionService):
    async def detect_language(self, text: str) -> Result[DetectedLanguage]:
        raise RuntimeError("detector crashed")


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    """Fresh in-memory database."""
    return FakeSupabaseClient()


@pytest.fixture
def note_repo(fake_client: FakeSupabaseClient) -> SupabaseNoteRepository:
    return SupabaseNoteRepository(fake_client)


@pytest.fixture
def tag_repo(fake_client: FakeSupabaseClient) -> SupabaseTagRepository:
    return SupabaseTagRepository(fake_client)


@pytest.fixture
def detector() -> RecordingDetector:
    return RecordingDetector()


@pytest.fixture
def converter() -> DocumentConverter:
    return DocumentConverter()


@pytest.fixture
def note_service(note_repo: SupabaseNoteRepository, detector: RecordingDetector) -> NoteService:
    return NoteService(note_repo, detector)


@pytest.fixture
def tag_service(tag_repo: SupabaseTagRepository) -> TagService:
    return TagService(tag_repo, user_id=USER_ID)


def unwrap(result: Result[Any]) -> Any:
    """Return the success value, failing the test on a failure."""
    assert not isinstance(result, Failure), f"unexpected failure: {result.error}"
    return result.data
