from __future__ import annotations

import asyncio
import datetime
import logging
import uuid
from typing import TYPE_CHECKING

from notekeeper.db import models
from notekeeper.utils.sentinel import provided_fields
from notekeeper.utils.text import contains_folded, unique
from notekeeper.utils.time import utcnow

from .schemas import NoteFilter

if TYPE_CHECKING:
    from typing import Final

    from notekeeper.utils.time import Clock

    from .schemas import NoteCreate, NotePatch

__all__ = ("NoteRepository",)


LOGGER: Final = logging.getLogger(__name__)

RECENT_WINDOW: Final = datetime.timedelta(days=7)


class NoteRepository:
    """In-memory note table, every operation is scoped to an owner.

    A note that does not exist, belongs to another user or has been soft
    deleted looks the same to the caller: ``None`` (or ``False`` for
    :meth:`delete`). Deleted notes stay in the table and are only visible
    through :meth:`audit`.

    Parameters
    ----------
    clock : Clock, optional
        Source of the current time (the default is :func:`utcnow`).
    """

    __slots__ = ("_clock", "_lock", "_notes")

    _clock: Clock
    _lock: asyncio.Lock
    _notes: dict[str, models.Note]

    def __init__(self, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._notes = {}

    def _owned(self, owner_id: str, note_id: str) -> models.Note | None:
        note = self._notes.get(note_id)
        if note is None or note.owner_id != owner_id or note.deleted:
            return None
        return note

    async def create(self, owner_id: str, data: NoteCreate) -> models.Note:
        """Create a note owned by ``owner_id``."""
        now = self._clock()
        note = models.Note(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=data.title,
            content=data.content,
            created_at=now,
            updated_at=now,
            is_public=data.is_public,
            tags=unique(data.tags),
            category=data.category,
        )

        async with self._lock:
            self._notes[note.id] = note

        LOGGER.debug("Note id=%s created owner_id=%s", note.id, owner_id)
        return note.copy()

    async def get(self, owner_id: str, note_id: str) -> models.Note | None:
        """Fetch a note and count the view."""
        async with self._lock:
            note = self._owned(owner_id, note_id)
            if note is None:
                return None

            note.views += 1
            return note.copy()

    async def list(
        self,
        owner_id: str,
        *,
        search: str | None = None,
        filter: NoteFilter | None = None,  # noqa: A002
    ) -> list[models.Note]:
        """List the owner's live notes, most recently updated first.

        Parameters
        ----------
        owner_id : str
            The owner of the notes.
        search : str or None, optional
            Case-insensitive substring matched against the title, the
            content and every tag. Empty or None disables the search.
        filter : NoteFilter or None, optional
            ``public`` and ``private`` select on visibility, ``recent``
            keeps notes updated within the last 7 days.

        Returns
        -------
        list[models.Note]
            Copies of the matching notes.
        """
        needle = search.casefold() if search else None
        now = self._clock()

        async with self._lock:
            notes = [
                note.copy()
                for note in self._notes.values()
                if note.owner_id == owner_id and not note.deleted
            ]

        if needle is not None:
            notes = [
                n
                for n in notes
                if contains_folded(n.title, needle)
                or contains_folded(n.content, needle)
                or any(contains_folded(t, needle) for t in n.tags)
            ]

        if filter == NoteFilter.PUBLIC:
            notes = [n for n in notes if n.is_public]
        elif filter == NoteFilter.PRIVATE:
            notes = [n for n in notes if not n.is_public]
        elif filter == NoteFilter.RECENT:
            cutoff = now - RECENT_WINDOW
            notes = [n for n in notes if n.updated_at > cutoff]

        notes.sort(key=lambda n: n.updated_at, reverse=True)
        return notes

    async def update(
        self, owner_id: str, note_id: str, patch: NotePatch
    ) -> models.Note | None:
        """Apply the fields set in ``patch`` to a note.

        An empty patch leaves the note, including ``updated_at``, untouched.
        """
        changes = provided_fields(patch)
        if "tags" in changes:
            changes["tags"] = unique(changes["tags"])

        async with self._lock:
            note = self._owned(owner_id, note_id)
            if note is None:
                return None

            if changes:
                for name, value in changes.items():
                    setattr(note, name, value)
                note.updated_at = self._clock()

            return note.copy()

    async def delete(self, owner_id: str, note_id: str) -> bool:
        """Soft delete a note, returns whether a live note was deleted."""
        async with self._lock:
            note = self._owned(owner_id, note_id)
            if note is None:
                return False

            note.deleted = True
            note.deleted_at = self._clock()

        LOGGER.debug("Note id=%s deleted owner_id=%s", note_id, owner_id)
        return True

    async def audit(self, owner_id: str, note_id: str) -> models.Note | None:
        """Fetch an owned note whether or not it is deleted, without counting a view."""
        async with self._lock:
            note = self._notes.get(note_id)
            if note is None or note.owner_id != owner_id:
                return None
            return note.copy()
