from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.params import Body, Parameter

if TYPE_CHECKING:
    from typing import Any

__all__ = ("Filter", "NoteCreate", "NoteID", "NotePatch", "Search")


def NoteCreate() -> Any:
    """Note creation param."""
    return Body(
        title="Note Creation Data",
        description="Information required to create a new note.",
    )


def NotePatch() -> Any:
    """Note update param."""
    return Body(
        title="Note Update Data",
        description="The updated fields for the note, at least one is required.",
    )


def NoteID(*, action: str) -> Any:
    """Note Id param."""
    return Parameter(
        title="Note Identifier",
        description=f"The unique ID of the note to {action}.",
    )


def Search() -> Any:
    """Search param."""
    return Parameter(
        title="Search",
        description="Case-insensitive text matched against title, content and tags.",
        required=False,
    )


def Filter() -> Any:
    """Filter param."""
    return Parameter(
        title="Filter",
        description="Restrict the notes to public, private or recently updated ones.",
        required=False,
    )
