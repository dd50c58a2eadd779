from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import TypeAlias

    Clock: TypeAlias = Callable[[], datetime.datetime]

__all__ = ("Clock", "from_timestamp", "utcnow")


def utcnow() -> datetime.datetime:
    """Return the current UTC datetime.

    Every store in the application accepts a ``clock`` callable defaulting
    to this function, so tests can move time without patching.

    Returns
    -------
    datetime.datetime
        The current UTC datetime with timezone information.
    """
    return datetime.datetime.now(datetime.UTC)


def from_timestamp(value: float) -> datetime.datetime:
    """Convert a POSIX timestamp to an aware UTC datetime.

    Parameters
    ----------
    value : float
        Seconds since the epoch, as found in the ``iat``/``exp`` JWT claims.

    Returns
    -------
    datetime.datetime
        The corresponding UTC datetime.
    """
    return datetime.datetime.fromtimestamp(value, tz=datetime.UTC)
