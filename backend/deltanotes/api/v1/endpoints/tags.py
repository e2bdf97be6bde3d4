from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status

from deltanotes.api.errors import unwrap
from deltanotes.api.v1.schemas.note import NoteRead
from deltanotes.api.v1.schemas.tag import TagCreate, TagRead, TagUpdate
from deltanotes.core.cache import all_tags_view
from deltanotes.dependencies import get_read_view_cache, get_tag_service

if TYPE_CHECKING:
    from deltanotes.core.cache import ReadViewCache
    from deltanotes.core.services.tag_service import TagService

router = APIRouter()


@router.get("/", response_model=list[TagRead])
async def list_tags(
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    """All of the user's tags, most used first."""
    tags = unwrap(await cache.get_or_load(all_tags_view(), service.get_all_tags))
    return [TagRead.model_validate(t) for t in tags]


@router.post("/", response_model=TagRead, status_code=status.HTTP_201_CREATED)
async def create_tag(
    payload: TagCreate,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    mutation = await service.create_tag(
        payload.name,
        color=payload.color,
        icon=payload.icon,
        description=payload.description,
    )
    return TagRead.model_validate(unwrap(cache.apply(mutation)))


@router.patch("/{tag_id}", response_model=TagRead)
async def update_tag(
    tag_id: str,
    payload: TagUpdate,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    mutation = await service.update_tag(
        tag_id,
        name=payload.name,
        color=payload.color,
        icon=payload.icon,
        description=payload.description,
    )
    return TagRead.model_validate(unwrap(cache.apply(mutation)))


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    service: TagService = Depends(get_tag_service),
    cache: ReadViewCache = Depends(get_read_view_cache),
):
    unwrap(cache.apply(await service.delete_tag(tag_id)))
    return None


@router.get("/{tag_id}/notes", response_model=list[NoteRead])
async def list_tag_notes(
    tag_id: str,
    service: TagService = Depends(get_tag_service),
):
    notes = unwrap(await service.get_notes_for_tag(tag_id))
    return [NoteRead.model_validate(n) for n in notes]
