"""Models."""

# These are the records held by the in-memory stores. The stores own them and
# hand out copies, so a caller mutating a returned record never mutates the table.
# A durable backend only has to produce the same structs.

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import msgspec
from msgspec import field, structs

if TYPE_CHECKING:
    from typing import Self

__all__ = ("Note", "Record", "Session", "User")


class Record(msgspec.Struct, kw_only=True):
    """Base class for stored records."""

    def copy(self) -> Self:
        """Return a shallow copy that can safely leave the store."""
        return structs.replace(self)


class User(Record):
    """Represents a user in the credential store."""

    id: str
    username: str
    hashed_password: str
    created_at: datetime
    last_login: datetime | None = None
    active: bool = True


class Session(Record):
    """Represents a login session in the session registry."""

    id: str
    user_id: str
    username: str
    created_at: datetime
    last_activity: datetime
    active: bool = True


class Note(Record):
    """Represents a note in the note repository."""

    id: str
    owner_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    is_public: bool = False
    tags: list[str] = field(default_factory=list)
    category: str = "General"
    views: int = 0
    deleted: bool = False
    deleted_at: datetime | None = None

    def copy(self) -> Self:
        """Return a copy, including a copy of the tag list."""
        return structs.replace(self, tags=list(self.tags))
