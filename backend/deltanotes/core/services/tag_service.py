from __future__ import annotations

from typing import TYPE_CHECKING, Any

from deltanotes.config import settings
from deltanotes.core.cache import Mutation, all_tags_view, tags_for_note_view
from deltanotes.core.failures import (
    NOT_FOUND_CODE,
    DatabaseFailure,
    ValidationFailure,
    failure_from_exception,
    is_unique_violation,
)
from deltanotes.core.models.tag import validate_hex_color
from deltanotes.core.result import Failure, Result, Success
from deltanotes.utils.logging import get_logger

if TYPE_CHECKING:
    from deltanotes.core.models.note import Note
    from deltanotes.core.models.tag import Tag
    from deltanotes.core.repositories.tag_repository import TagRepository

logger = get_logger(__name__)

DUPLICATE_TAG_MESSAGE = "Tag name already exists"
DUPLICATE_ASSOCIATION_MESSAGE = "Tag is already associated with this note"


def _failed(failure: Any) -> Mutation[Any]:
    return Mutation(Failure(failure))


class TagService:
    """Tags and note-tag associations for the current user.

    Mutating methods return a ``Mutation``: the result plus the read views
    the change made stale. Failed mutations invalidate nothing.
    """

    def __init__(self, repo: TagRepository, user_id: str) -> None:
        self._repo = repo
        self._user_id = user_id

    async def get_all_tags(self) -> Result[list[Tag]]:
        logger.debug("Fetching all tags for user %s", self._user_id)
        try:
            tags = await self._repo.list()
        except Exception as err:
            logger.error("Error fetching tags", exc_info=err)
            return Failure(failure_from_exception(err, "fetch tags"))
        return Success(list(tags))

    async def create_tag(
        self,
        name: str,
        color: str | None = None,
        icon: str | None = None,
        description: str | None = None,
    ) -> Mutation[Tag]:
        validation = self._validate_fields(name=name, color=color)
        if validation is not None:
            return _failed(validation)

        row: dict[str, Any] = {
            "user_id": self._user_id,
            "name": name.strip(),
            "color": color or settings.default_tag_color,
        }
        if icon is not None:
            row["icon"] = icon
        if description is not None:
            row["description"] = description

        try:
            tag = await self._repo.create(row)
        except Exception as err:
            logger.error("Error creating tag", exc_info=err)
            if is_unique_violation(err):
                return _failed(ValidationFailure(message=DUPLICATE_TAG_MESSAGE, field="name"))
            return _failed(failure_from_exception(err, "create tag"))
        logger.info("Created tag: %s", tag.id)
        return Mutation(Success(tag), frozenset({all_tags_view()}))

    async def update_tag(
        self,
        tag_id: str,
        name: str | None = None,
        color: str | None = None,
        icon: str | None = None,
        description: str | None = None,
    ) -> Mutation[Tag]:
        validation = self._validate_fields(name=name, color=color)
        if validation is not None:
            return _failed(validation)

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name.strip()
        if color is not None:
            changes["color"] = color
        if icon is not None:
            changes["icon"] = icon
        if description is not None:
            changes["description"] = description
        if not changes:
            logger.warning("No fields to update for tag: %s", tag_id)

        try:
            tag = await self._repo.update_fields(tag_id, changes)
        except Exception as err:
            logger.error("Error updating tag", exc_info=err)
            if is_unique_violation(err):
                return _failed(ValidationFailure(message=DUPLICATE_TAG_MESSAGE, field="name"))
            return _failed(failure_from_exception(err, "update tag"))
        if tag is None:
            return _failed(DatabaseFailure(message=f"Tag with ID {tag_id} not found", code=NOT_FOUND_CODE))
        if not changes:
            return Mutation(Success(tag))
        logger.info("Updated tag: %s", tag.id)
        # Renames and recolors show up in every note's tag list
        return Mutation(Success(tag), frozenset({all_tags_view(), tags_for_note_view()}))

    async def delete_tag(self, tag_id: str) -> Mutation[None]:
        try:
            await self._repo.delete(tag_id)
        except Exception as err:
            logger.error("Error deleting tag", exc_info=err)
            return _failed(failure_from_exception(err, "delete tag"))
        logger.info("Deleted tag: %s", tag_id)
        # Associations cascade, so any note's tag list may have changed
        return Mutation(Success(None), frozenset({all_tags_view(), tags_for_note_view()}))

    async def add_tag_to_note(self, note_id: str, tag_id: str) -> Mutation[None]:
        try:
            await self._repo.add_to_note(note_id=note_id, tag_id=tag_id)
        except Exception as err:
            logger.error("Error adding tag to note", exc_info=err)
            if is_unique_violation(err):
                return _failed(ValidationFailure(message=DUPLICATE_ASSOCIATION_MESSAGE))
            return _failed(failure_from_exception(err, "add tag to note"))
        logger.info("Added tag %s to note %s", tag_id, note_id)
        return Mutation(Success(None), frozenset({all_tags_view(), tags_for_note_view(note_id)}))

    async def remove_tag_from_note(self, note_id: str, tag_id: str) -> Mutation[None]:
        try:
            await self._repo.remove_from_note(note_id=note_id, tag_id=tag_id)
        except Exception as err:
            logger.error("Error removing tag from note", exc_info=err)
            return _failed(failure_from_exception(err, "remove tag from note"))
        logger.info("Removed tag %s from note %s", tag_id, note_id)
        return Mutation(Success(None), frozenset({all_tags_view(), tags_for_note_view(note_id)}))

    async def get_tags_for_note(self, note_id: str) -> Result[list[Tag]]:
        try:
            tags = await self._repo.tags_for_note(note_id)
        except Exception as err:
            logger.error("Error fetching tags for note", exc_info=err)
            return Failure(failure_from_exception(err, "fetch tags for note"))
        return Success(list(tags))

    async def get_notes_for_tag(self, tag_id: str) -> Result[list[Note]]:
        try:
            notes = await self._repo.notes_for_tag(tag_id)
        except Exception as err:
            logger.error("Error fetching notes for tag", exc_info=err)
            return Failure(failure_from_exception(err, "fetch notes for tag"))
        return Success(list(notes))

    @staticmethod
    def _validate_fields(*, name: str | None, color: str | None) -> ValidationFailure | None:
        if name is not None and not name.strip():
            return ValidationFailure(message="Tag name cannot be empty", field="name")
        if color is not None:
            try:
                validate_hex_color(color)
            except ValueError as err:
                return ValidationFailure(message=str(err), field="color")
        return None
