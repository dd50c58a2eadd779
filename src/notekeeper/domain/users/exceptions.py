from __future__ import annotations

from notekeeper.lib.exceptions import ErrorKind, NotAuthorizedError, ValidationError

__all__ = ("DuplicateUsernameError", "InvalidCredentialsError")


class DuplicateUsernameError(ValidationError):
    """Raised when a username is already taken."""

    kind = ErrorKind.DUPLICATE_USERNAME

    def __init__(self, username: str) -> None:
        super().__init__(
            detail=f"Username {username!r} already exists.",
            invalid_parameters=[
                {"field": "username", "message": "Choose a different username."}
            ],
        )


class InvalidCredentialsError(NotAuthorizedError):
    """Raised when a username/password pair does not match an active user.

    The detail is the same whether the user is unknown, inactive or the
    password is wrong, so the response never reveals which usernames exist.
    """

    default_detail = "Invalid username or password."
    kind = ErrorKind.INVALID_CREDENTIALS
