from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.datastructures import State

from notekeeper.domain.auth.schemas import AuthenticatedUser
from notekeeper.domain.auth.services import AuthGateway
from notekeeper.domain.notes.services import NoteRepository

if TYPE_CHECKING:
    from typing import Any

    from litestar import Request

__all__ = ("provide_auth_gateway", "provide_current_user", "provide_note_repository")


def provide_current_user(
    request: Request[AuthenticatedUser, str, Any],
) -> AuthenticatedUser:
    """Provide the currently authenticated user from the request.

    Parameters
    ----------
    request : Request[AuthenticatedUser, str, Any]
        The incoming request.

    Returns
    -------
    AuthenticatedUser
        The authenticated user.
    """
    return request.user


# Both services are built once per application by the init plugin and kept
# on the application state.
def provide_auth_gateway(state: State) -> AuthGateway:
    """Provide the auth gateway."""
    return state.auth_gateway


def provide_note_repository(state: State) -> NoteRepository:
    """Provide the note repository."""
    return state.note_repository
