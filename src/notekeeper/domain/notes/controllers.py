from __future__ import annotations

from typing import Annotated

from litestar import Controller, delete, get, post, route, status_codes
from litestar.di import Provide

from notekeeper.config import APP_CONFIG
from notekeeper.domain.auth.schemas import AuthenticatedUser
from notekeeper.lib.dependencies import provide_note_repository
from notekeeper.lib.exceptions import NoFieldsToUpdateError
from notekeeper.lib.schemas import Message
from notekeeper.utils.sentinel import provided_fields

from . import exceptions, params, schemas, services

__all__ = ("NoteController",)


class NoteController(Controller):
    """Note controller, every route acts on the current user's notes."""

    tags = ["Notes"]
    path = f"{APP_CONFIG.base_url}/notes"
    dependencies = {
        "note_repository": Provide(provide_note_repository, sync_to_thread=False),
    }

    @get()
    async def list_notes(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        search: Annotated[str | None, params.Search()] = None,
        filter: Annotated[schemas.NoteFilter | None, params.Filter()] = None,  # noqa: A002
    ) -> list[schemas.Note]:
        """List, search and filter notes of the current user."""
        notes = await note_repository.list(current_user.id, search=search, filter=filter)
        return [schemas.Note.from_model(n) for n in notes]

    @post()
    async def create_note(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        data: Annotated[schemas.NoteCreate, params.NoteCreate()],
    ) -> schemas.Note:
        """Create a new note for the current user."""
        note = await note_repository.create(current_user.id, data)
        return schemas.Note.from_model(note)

    @get(path="/{note_id:str}")
    async def get_note(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        note_id: Annotated[str, params.NoteID(action="retrieve")],
    ) -> schemas.Note:
        """Get a note of the current user."""
        note = await note_repository.get(current_user.id, note_id)
        if note is None:
            raise exceptions.NoteNotFoundError(note_id)
        return schemas.Note.from_model(note)

    @get(path="/{note_id:str}/audit")
    async def audit_note(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        note_id: Annotated[str, params.NoteID(action="audit")],
    ) -> schemas.Note:
        """Get a note of the current user, including a deleted one."""
        note = await note_repository.audit(current_user.id, note_id)
        if note is None:
            raise exceptions.NoteNotFoundError(note_id)
        return schemas.Note.from_model(note, audit=True)

    @route(path="/{note_id:str}", http_method=["PUT", "PATCH"])
    async def update_note(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        note_id: Annotated[str, params.NoteID(action="update")],
        data: Annotated[schemas.NotePatch, params.NotePatch()],
    ) -> schemas.Note:
        """Update a note of the current user."""
        if not provided_fields(data):
            raise NoFieldsToUpdateError

        note = await note_repository.update(current_user.id, note_id, data)
        if note is None:
            raise exceptions.NoteNotFoundError(note_id)
        return schemas.Note.from_model(note)

    @delete(path="/{note_id:str}", status_code=status_codes.HTTP_200_OK)
    async def delete_note(
        self,
        note_repository: services.NoteRepository,
        current_user: AuthenticatedUser,
        note_id: Annotated[str, params.NoteID(action="delete")],
    ) -> Message:
        """Soft delete a note of the current user."""
        if not await note_repository.delete(current_user.id, note_id):
            raise exceptions.NoteNotFoundError(note_id)
        return Message(message="Note deleted successfully.")
