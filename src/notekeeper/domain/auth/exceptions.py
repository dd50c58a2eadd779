from __future__ import annotations

from notekeeper.lib.exceptions import ErrorKind, PermissionDeniedError

__all__ = ("ExpiredSessionError",)


class ExpiredSessionError(PermissionDeniedError):
    """Raised when a token references a session that was revoked or swept."""

    default_detail = "The session has expired or was logged out. Please log in again."
    kind = ErrorKind.EXPIRED_SESSION
