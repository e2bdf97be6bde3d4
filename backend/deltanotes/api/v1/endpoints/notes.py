from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, status

from deltanotes.api.errors import unwrap
from deltanotes.api.v1.schemas.note import NoteCount, NoteCreate, NoteFromText, NoteRead, NoteUpdate
from deltanotes.api.v1.schemas.tag import TagRead
from deltanotes.config import settings
from deltanotes.core.cache import all_tags_view, tags_for_note_view
from deltanotes.core.models.note import NoteFilter
from deltanotes.dependencies import (
    get_current_user,
    get_note_service,
    get_read_view_cache,
    get_tag_service,
)

if TYPE_CHECKING:
    from deltanotes.core.cache import ReadViewCache
    from deltanotes.core.schemas.auth import AuthUser
    from deltanotes.core.services.note_service import NoteService
    from deltanotes.core.services.tag_service import TagService

router = APIRouter()


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = unwrap(
        await service.create_note(
            current_user.id,
            payload.content,
            title=payload.title,
            language=payload.language,
            language_confidence=payload.language_confidence,
        )
    )
    return NoteRead.model_validate(note)


@router.post("/from-text", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note_from_text(
    payload: NoteFromText,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """Create a note from plain text, e.g. a voice transcription."""
    note = unwrap(await service.create_note_from_text(current_user.id, payload.text, title=payload.title))
    return NoteRead.model_validate(note)


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    limit: int = Query(default=settings.default_page_size, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    notes = unwrap(await service.get_all_notes(current_user.id, limit=limit, offset=offset))
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/count", response_model=NoteCount)
async def count_notes(
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    return NoteCount(count=unwrap(await service.get_note_count(current_user.id)))


@router.get("/updated-since", response_model=list[NoteRead])
async def list_notes_updated_since(
    since: datetime,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """Notes modified after ``since``, for incremental sync."""
    notes = unwrap(await service.get_notes_updated_since(current_user.id, since))
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/by-language/{language_code}", response_model=list[NoteRead])
async def list_notes_by_language(
    language_code: str,
    min_confidence: float | None = Query(default=None, ge=0.0, le=1.0),
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    notes = unwrap(
        await service.get_notes_by_language(current_user.id, language_code, min_confidence=min_confidence)
    )
    return [NoteRead.model_validate(n) for n in notes]


@router.post("/search", response_model=list[NoteRead])
async def search_notes(
    payload: NoteFilter,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """Search notes for the authenticated user.

    Full-text and tag matching run server-side in the search RPC; the other
    criteria are applied to its results.
    """
    notes = unwrap(await service.search_notes(current_user.id, payload))
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: str,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = unwrap(await service.get_note(note_id))
    return NoteRead.model_validate(note)


@router.patch("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = unwrap(
        await service.update_note(
            note_id,
            title=payload.title,
            content=payload.content,
            language=payload.language,
            language_confidence=payload.language_confidence,
        )
    )
    return NoteRead.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    service: NoteService = Depends(get_note_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    # Associations cascade, so usage counts and this note's tag list change
    unwrap(await service.delete_note(note_id))
    cache.invalidate({all_tags_view(), tags_for_note_view(note_id)})
    return None


@router.get("/{note_id}/tags", response_model=list[TagRead])
async def list_note_tags(
    note_id: str,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    tags = unwrap(
        await cache.get_or_load(tags_for_note_view(note_id), lambda: service.get_tags_for_note(note_id))
    )
    return [TagRead.model_validate(t) for t in tags]


@router.post("/{note_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_tag_to_note(
    note_id: str,
    tag_id: str,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    unwrap(cache.apply(await service.add_tag_to_note(note_id, tag_id)))
    return None


@router.delete("/{note_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_tag_from_note(
    note_id: str,
    tag_id: str,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    unwrap(cache.apply(await service.remove_tag_from_note(note_id, tag_id)))
    return None
