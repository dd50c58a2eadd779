from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from msgspec import UNSET, UnsetType, field

from notekeeper.lib.exceptions import ValidationError
from notekeeper.lib.schemas import Struct

if TYPE_CHECKING:
    from typing import Any

    from notekeeper.db import models

__all__ = ("Note", "NoteCreate", "NoteFilter", "NotePatch")

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 50000
TAG_MAX_LENGTH = 30
CATEGORY_MAX_LENGTH = 50


class NoteFilter(enum.StrEnum):
    """Filters accepted when listing notes."""

    PUBLIC = "public"
    PRIVATE = "private"
    RECENT = "recent"


def _check_length(
    invalid_parameters: list[dict[str, Any]],
    name: str,
    value: str | UnsetType,
    maximum: int,
) -> None:
    if value is not UNSET and not 1 <= len(value) <= maximum:
        invalid_parameters.append(
            {
                "field": name,
                "message": f"{name} must be between 1 and {maximum} characters.",
            }
        )


def note_validation(self: NoteCreate | NotePatch) -> None:
    invalid_parameters: list[dict[str, Any]] = []

    _check_length(invalid_parameters, "title", self.title, TITLE_MAX_LENGTH)
    _check_length(invalid_parameters, "content", self.content, CONTENT_MAX_LENGTH)
    _check_length(invalid_parameters, "category", self.category, CATEGORY_MAX_LENGTH)

    tags: list[str] | UnsetType = self.tags
    if tags is not UNSET and any(not 1 <= len(t) <= TAG_MAX_LENGTH for t in tags):
        invalid_parameters.append(
            {
                "field": "tags",
                "message": f"each tag must be between 1 and {TAG_MAX_LENGTH} characters.",
            }
        )

    if invalid_parameters:
        raise ValidationError(
            detail="Validation failed for one or more fields.",
            invalid_parameters=invalid_parameters,
        )


class NoteCreate(Struct, gc=True, forbid_unknown_fields=True):
    """Note creation data."""

    title: str
    content: str
    is_public: bool = field(default=False)
    tags: list[str] = field(default_factory=list[str])
    category: str = field(default="General")

    __post_init__ = note_validation


class NotePatch(Struct, gc=True, forbid_unknown_fields=True):
    """Note update data, every field is optional."""

    title: str | UnsetType = UNSET
    content: str | UnsetType = UNSET
    is_public: bool | UnsetType = UNSET
    tags: list[str] | UnsetType = UNSET
    category: str | UnsetType = UNSET

    __post_init__ = note_validation


class Note(Struct, gc=True):
    """Note."""

    id: str
    owner_id: str
    title: str
    content: str
    is_public: bool
    tags: list[str]
    category: str
    views: int
    created_at: datetime
    updated_at: datetime

    # only filled in by the audit view
    deleted: bool | UnsetType = UNSET
    deleted_at: datetime | None | UnsetType = UNSET

    @classmethod
    def from_model(cls, note: models.Note, *, audit: bool = False) -> Note:
        """Public projection of a stored note."""
        return cls(
            id=note.id,
            owner_id=note.owner_id,
            title=note.title,
            content=note.content,
            is_public=note.is_public,
            tags=note.tags,
            category=note.category,
            views=note.views,
            created_at=note.created_at,
            updated_at=note.updated_at,
            deleted=note.deleted if audit else UNSET,
            deleted_at=note.deleted_at if audit else UNSET,
        )
