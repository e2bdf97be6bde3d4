from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from deltanotes.core.models.tag import Tag
from deltanotes.core.repositories.implementations.supabase.note_repository import note_from_row
from deltanotes.core.repositories.tag_repository import TagRepository

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from supabase import Client

    from deltanotes.core.models.note import Note


class SupabaseTagRepository(TagRepository):
    """Supabase implementation of the TagRepository.

    Tags live in `tags`; associations in the `note_tags` join table.
    `usage_count` is maintained by triggers on `note_tags` and deleting a tag
    or a note cascades to its associations.
    """

    TABLE_NAME = "tags"
    JOIN_TABLE_NAME = "note_tags"

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    async def list(self) -> Sequence[Tag]:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .order("usage_count", desc=True)
            .execute()
        )
        return [self._row_to_tag(r) for r in resp.data or []]

    async def get(self, tag_id: str) -> Tag | None:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("id", tag_id)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        return self._row_to_tag(items[0]) if items else None

    async def create(self, row: dict[str, Any]) -> Tag:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .insert(row)
            .execute()
        )
        data = resp.data or []
        return self._row_to_tag(data[0] if isinstance(data, list) else data)

    async def update_fields(self, tag_id: str, changes: dict[str, Any]) -> Tag | None:
        sanitized = {k: v for k, v in changes.items() if k in {"name", "color", "icon", "description"}}
        if not sanitized:
            return await self.get(tag_id)
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .update(sanitized)
            .eq("id", tag_id)
            .execute()
        )
        items = resp.data or []
        return self._row_to_tag(items[0]) if items else None

    async def delete(self, tag_id: str) -> bool:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .delete()
            .eq("id", tag_id)
            .execute()
        )
        return len(resp.data or []) > 0

    async def add_to_note(self, *, note_id: str, tag_id: str) -> None:
        await self._run(
            lambda: self._client.table(self.JOIN_TABLE_NAME)
            .insert({"note_id": note_id, "tag_id": tag_id})
            .execute()
        )

    async def remove_from_note(self, *, note_id: str, tag_id: str) -> None:
        await self._run(
            lambda: self._client.table(self.JOIN_TABLE_NAME)
            .delete()
            .eq("note_id", note_id)
            .eq("tag_id", tag_id)
            .execute()
        )

    async def tags_for_note(self, note_id: str) -> Sequence[Tag]:
        resp = await self._run(
            lambda: self._client.table(self.JOIN_TABLE_NAME)
            .select("tags(*)")
            .eq("note_id", note_id)
            .execute()
        )
        return [self._row_to_tag(item["tags"]) for item in resp.data or [] if item.get("tags")]

    async def notes_for_tag(self, tag_id: str) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._client.table(self.JOIN_TABLE_NAME)
            .select("notes(*)")
            .eq("tag_id", tag_id)
            .execute()
        )
        return [
            note_from_row(item["notes"])
            for item in resp.data or []
            if item.get("notes")
        ]

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        return await asyncio.to_thread(func)

    @staticmethod
    def _row_to_tag(row: dict[str, Any]) -> Tag:
        normalized = dict(row)
        # Tag does not model the trigger-maintained updated_at column
        normalized.pop("updated_at", None)
        normalized["id"] = str(normalized["id"])
        normalized["user_id"] = str(normalized["user_id"])
        if normalized.get("usage_count") is None:
            normalized["usage_count"] = 0
        return Tag.model_validate(normalized)
