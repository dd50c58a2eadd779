from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.params import Parameter

from notekeeper.config import APP_CONFIG

if TYPE_CHECKING:
    from typing import Any


__all__ = ("SessionID",)


def SessionID() -> Any:
    """Session id header param."""
    return Parameter(
        title="Session Identifier",
        description="The session to act on, defaults to the session of the token.",
        header=APP_CONFIG.sessions.header,
        required=False,
    )
