from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from msgspec import UNSET, UnsetType

from notekeeper.lib.exceptions import ValidationError
from notekeeper.lib.schemas import Struct

if TYPE_CHECKING:
    from typing import Any

    from notekeeper.db import models

__all__ = (
    "USERNAME_MAX_LENGTH",
    "PASSWORD_MAX_LENGTH",
    "User",
    "UserLogin",
    "UserSignup",
    "UserStats",
)

USERNAME_MAX_LENGTH = 100
PASSWORD_MAX_LENGTH = 1024

# Not using "msgspec.Meta" for validation here due to two reasons:
# 1. This way we can write better error messages.
# 2. msgspec stops validation at the first failure, whereas here we check for all
#    parameters and raise a single error containing all validation issues at once.


def user_validation(self: UserSignup) -> None:
    invalid_parameters: list[dict[str, Any]] = []

    if not 1 <= len(self.username) <= USERNAME_MAX_LENGTH:
        invalid_parameters.append(
            {
                "field": "username",
                "message": f"username must be between 1 and {USERNAME_MAX_LENGTH} characters.",
            }
        )

    if not 1 <= len(self.password) <= PASSWORD_MAX_LENGTH:
        invalid_parameters.append(
            {
                "field": "password",
                "message": f"password must be between 1 and {PASSWORD_MAX_LENGTH} characters.",
            }
        )

    if invalid_parameters:
        raise ValidationError(
            detail="Validation failed for one or more fields.",
            invalid_parameters=invalid_parameters,
        )


class User(Struct):
    """Public projection of a user, never carries the password hash."""

    id: str
    username: str
    created_at: datetime | UnsetType = UNSET
    last_login: datetime | None | UnsetType = UNSET

    @classmethod
    def signed_up(cls, user: models.User) -> User:
        """Projection returned by signup."""
        return cls(id=user.id, username=user.username, created_at=user.created_at)

    @classmethod
    def logged_in(cls, user: models.User) -> User:
        """Projection returned by login."""
        return cls(id=user.id, username=user.username, last_login=user.last_login)


class UserSignup(Struct):
    """User signup data."""

    username: str
    password: str

    __post_init__ = user_validation


# Login is not validated beyond the types, a bad pair is simply rejected as
# invalid credentials.
class UserLogin(Struct):
    """User login data."""

    username: str
    password: str


class UserStats(Struct):
    """Counts of users in the credential store."""

    total_users: int
    active_users: int
    recent_users: int
