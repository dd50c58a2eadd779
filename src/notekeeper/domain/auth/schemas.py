from __future__ import annotations

from datetime import datetime

import msgspec

from notekeeper.domain.users.schemas import User
from notekeeper.lib.schemas import Struct

__all__ = (
    "AuthStats",
    "AuthenticatedUser",
    "LoginResponse",
    "Me",
    "SignupResponse",
    "TokenPayload",
)


class AuthenticatedUser(msgspec.Struct, frozen=True):
    """Represents an authenticated user.

    This structure stores the minimal information extracted from a verified
    token that identifies a user and the session the token belongs to.

    Parameters
    ----------
    id : str
        The unique identifier of the user.
    username : str
        The username at the time the token was issued.
    session_id : str
        The session the presented token is bound to.
    """

    id: str
    username: str
    session_id: str


class TokenPayload(msgspec.Struct, frozen=True):
    """Verified content of a bearer token."""

    user_id: str
    username: str
    session_id: str
    issued_at: datetime
    expires_at: datetime


class Me(Struct):
    """Identity of the current user."""

    id: str
    username: str


class SignupResponse(Struct, gc=True):
    """Signup response data."""

    message: str
    user: User


class LoginResponse(Struct, gc=True):
    """Login response data."""

    message: str
    token: str
    user: User
    session_id: str


class AuthStats(Struct):
    """Counts of users and live sessions."""

    total_users: int
    active_users: int
    recent_users: int
    active_sessions: int
