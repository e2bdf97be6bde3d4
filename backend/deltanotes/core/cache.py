"""Memoized read views and their invalidation.

Services never touch the cache. Mutating service calls return the set of
``ReadViewKey`` they may have made stale and the cache owner applies it.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from deltanotes.core.result import Result
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ALL_TAGS = "all_tags"
TAGS_FOR_NOTE = "tags_for_note"


@dataclass(frozen=True)
class ReadViewKey:
    """Identity of a cached read query.

    A key whose ``arg`` is ``None`` also stands for the whole family of views
    sharing its ``name`` when used for invalidation.
    """

    name: str
    arg: str | None = None

    def covers(self, other: ReadViewKey) -> bool:
        return self.name == other.name and (self.arg is None or self.arg == other.arg)


def all_tags_view() -> ReadViewKey:
    return ReadViewKey(ALL_TAGS)


def tags_for_note_view(note_id: str | None = None) -> ReadViewKey:
    """View of one note's tags, or every note's tags when ``note_id`` is None."""
    return ReadViewKey(TAGS_FOR_NOTE, note_id)


@dataclass(frozen=True)
class Mutation(Generic[T]):
    """Outcome of a mutating call: its result plus the views it invalidated."""

    result: Result[T]
    invalidated: frozenset[ReadViewKey] = field(default_factory=frozenset)


class ReadViewCache:
    """Cache of successful read results keyed by query identity.

    One instance per session scope (the API keeps one per user). Failed loads
    are returned but never stored. A load that was in flight when its key got
    invalidated is returned to its caller but not stored. At most
    ``max_entries`` views are kept; the least recently used goes first.
    """

    def __init__(self, max_entries: int = 256) -> None:
        self._max_entries = max_entries
        self._entries: dict[ReadViewKey, Any] = {}
        # Bumped by invalidate() for keys with a load in flight
        self._generations: dict[ReadViewKey, int] = {}
        self._in_flight: dict[ReadViewKey, int] = {}

    def __contains__(self, key: ReadViewKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_load(self, key: ReadViewKey, loader: Callable[[], Awaitable[Result[T]]]) -> Result[T]:
        if key in self._entries:
            logger.debug("Read view cache hit: %s", key)
            self._entries[key] = self._entries.pop(key)
            return self._entries[key]

        generation = self._generations.get(key, 0)
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        try:
            result = await loader()
            if result.is_success:
                if self._generations.get(key, 0) == generation:
                    self._store(key, result)
                else:
                    logger.debug("Read view %s invalidated during load; not cached", key)
            return result
        finally:
            self._in_flight[key] -= 1
            if not self._in_flight[key]:
                del self._in_flight[key]
                self._generations.pop(key, None)

    def invalidate(self, keys: Iterable[ReadViewKey]) -> set[ReadViewKey]:
        """Drop every entry covered by ``keys``; return what was dropped."""
        keys = list(keys)
        for loading in self._in_flight:
            if any(k.covers(loading) for k in keys):
                self._generations[loading] = self._generations.get(loading, 0) + 1
        dropped = {cached for cached in self._entries if any(k.covers(cached) for k in keys)}
        for cached in dropped:
            del self._entries[cached]
        if dropped:
            logger.debug("Invalidated read views: %s", sorted(dropped, key=lambda k: (k.name, k.arg or "")))
        return dropped

    def apply(self, mutation: Mutation[Any]) -> Result[Any]:
        """Apply a mutation's invalidations and hand back its result."""
        self.invalidate(mutation.invalidated)
        return mutation.result

    def clear(self) -> None:
        for loading in self._in_flight:
            self._generations[loading] = self._generations.get(loading, 0) + 1
        self._entries.clear()

    def _store(self, key: ReadViewKey, result: Result[Any]) -> None:
        self._entries[key] = result
        while len(self._entries) > self._max_entries:
            evicted = next(iter(self._entries))
            del self._entries[evicted]
            logger.debug("Evicted read view: %s", evicted)
