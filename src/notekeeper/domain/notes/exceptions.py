from __future__ import annotations

from notekeeper.lib.exceptions import NotFoundError

__all__ = ("NoteNotFoundError",)


class NoteNotFoundError(NotFoundError):
    """Raised when a note does not exist.

    Absent, foreign and deleted notes all raise the same error, so a caller
    cannot probe for the existence of other users' notes.
    """

    def __init__(self, note_id: str) -> None:
        msg = f"Note with id {note_id} does not exist."
        super().__init__(msg)
