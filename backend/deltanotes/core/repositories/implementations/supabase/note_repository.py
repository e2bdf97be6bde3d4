from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from deltanotes.core.models.note import Note, NoteFilter, NoteSortOrder
from deltanotes.core.repositories.note_repository import NoteRepository
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from supabase import Client


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def note_from_row(row: dict[str, Any]) -> Note:
    """Map a `notes` row (or an embedded `notes` object) to a Note."""
    normalized = dict(row)

    # Columns that only exist for search: the generated tsvector and the RPC's rank
    for field in ("search_vector", "rank"):
        normalized.pop(field, None)

    normalized["id"] = str(normalized["id"])
    normalized["user_id"] = str(normalized["user_id"])
    if normalized.get("content") is None:
        normalized["content"] = {"ops": []}
    return Note.model_validate(normalized)


class SupabaseNoteRepository(NoteRepository):
    """Supabase implementation of the NoteRepository.

    Uses Supabase's PostgREST client for CRUD on the `notes` table and the
    `search_notes` RPC for full-text search. Row ownership is enforced by RLS;
    `user_id` filters are still applied so admin clients behave the same.
    """

    TABLE_NAME = "notes"
    SEARCH_RPC = "search_notes"

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    async def create(self, row: dict[str, Any]) -> Note:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .insert(row)
            .execute()
        )
        data = self._first(resp.data)
        return note_from_row(data)

    async def get(self, note_id: str) -> Note | None:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("id", note_id)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return note_from_row(items[0])

    async def list(
        self,
        *,
        user_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Note]:
        def _query():
            q = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("user_id", user_id)
                .order("updated_at", desc=True)
            )
            if limit is not None:
                q = q.range(offset, offset + limit - 1)
            return q.execute()

        resp = await self._run(_query)
        return [note_from_row(i) for i in resp.data or []]

    async def update_fields(self, note_id: str, changes: dict[str, Any]) -> Note | None:
        # id, owner and timestamps are never client-writable; updated_at is set by trigger
        sanitized: dict[str, Any] = {
            k: v for k, v in (changes or {}).items()
            if k not in {"id", "user_id", "created_at", "updated_at"}
        }
        if not sanitized:
            return await self.get(note_id)

        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .update(sanitized)
            .eq("id", note_id)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return note_from_row(items[0])

    async def delete(self, note_id: str) -> bool:
        # note_tags rows are removed by ON DELETE CASCADE
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .delete()
            .eq("id", note_id)
            .execute()
        )
        return len(resp.data or []) > 0

    async def search(self, *, user_id: str, note_filter: NoteFilter) -> Sequence[Note]:
        params: dict[str, Any] = {"user_id_param": user_id}
        tsquery = note_filter.to_tsquery()
        if tsquery:
            params["search_query"] = tsquery
        if note_filter.has_tag_filters:
            params["tag_ids"] = note_filter.tag_ids
        logger.debug("search_notes params: %s", params)

        resp = await self._run(lambda: self._client.rpc(self.SEARCH_RPC, params=params).execute())
        notes = [note_from_row(r) for r in resp.data or []]
        return self._apply_filter(notes, note_filter)

    async def list_updated_since(self, *, user_id: str, since: datetime) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("user_id", user_id)
            .gt("updated_at", _aware(since).isoformat())
            .order("updated_at", desc=True)
            .execute()
        )
        return [note_from_row(i) for i in resp.data or []]

    async def count(self, *, user_id: str) -> int:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("id", count="exact")
            .eq("user_id", user_id)
            .execute()
        )
        return resp.count or 0

    async def list_by_language(
        self,
        *,
        user_id: str,
        language_code: str,
        min_confidence: float | None = None,
    ) -> Sequence[Note]:
        def _query():
            q = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("user_id", user_id)
                .eq("language", language_code)
            )
            if min_confidence is not None:
                q = q.gte("language_confidence", min_confidence)
            return q.order("updated_at", desc=True).execute()

        resp = await self._run(_query)
        return [note_from_row(i) for i in resp.data or []]

    @staticmethod
    def _apply_filter(notes: list[Note], note_filter: NoteFilter) -> list[Note]:
        """Apply the criteria the search RPC does not handle itself."""

        def _matches(note: Note) -> bool:
            if note_filter.has_language_filters and note.language not in note_filter.languages:
                return False
            if note_filter.min_language_confidence is not None and (
                note.language_confidence is None
                or note.language_confidence < note_filter.min_language_confidence
            ):
                return False
            created = _aware(note.created_at)
            updated = _aware(note.updated_at or note.created_at)
            if note_filter.created_after and created <= _aware(note_filter.created_after):
                return False
            if note_filter.created_before and created >= _aware(note_filter.created_before):
                return False
            if note_filter.updated_after and updated <= _aware(note_filter.updated_after):
                return False
            if note_filter.updated_before and updated >= _aware(note_filter.updated_before):
                return False
            return True

        matched = [n for n in notes if _matches(n)]

        # RELEVANCE keeps the RPC's rank ordering
        if note_filter.sort_order is not NoteSortOrder.RELEVANCE:
            matched.sort(
                key=lambda n: _aware(n.updated_at or n.created_at),
                reverse=note_filter.sort_order is NoteSortOrder.DATE_DESC,
            )

        start = note_filter.offset
        end = start + note_filter.limit if note_filter.limit is not None else None
        return matched[start:end]

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        import asyncio
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}
